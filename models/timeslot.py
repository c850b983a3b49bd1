"""Wochentage und Uhrzeit-Hilfsfunktionen für das Wochenraster."""

import re
from enum import Enum


class DayCode(str, Enum):
    """Wochentags-Kürzel, wie sie der Buchungsdienst liefert (MO..SO)."""

    MO = "MO"
    DI = "DI"
    MI = "MI"
    DO = "DO"
    FR = "FR"
    SA = "SA"
    SO = "SO"

    @property
    def order(self) -> int:
        """Position in der Woche (0=Montag, 6=Sonntag)."""
        return DAY_ORDER.index(self)

    @property
    def long_name(self) -> str:
        """Ausgeschriebener Tagesname."""
        return _LONG_NAMES[self]

    def __str__(self) -> str:
        return self.value


DAY_ORDER: list[DayCode] = [
    DayCode.MO, DayCode.DI, DayCode.MI, DayCode.DO,
    DayCode.FR, DayCode.SA, DayCode.SO,
]

_LONG_NAMES = {
    DayCode.MO: "Montag",
    DayCode.DI: "Dienstag",
    DayCode.MI: "Mittwoch",
    DayCode.DO: "Donnerstag",
    DayCode.FR: "Freitag",
    DayCode.SA: "Samstag",
    DayCode.SO: "Sonntag",
}

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Wandelt "HH:MM" in Minuten seit Mitternacht um ("19:30" → 1170).

    Wirft ValueError bei ungültigem Format oder Werten außerhalb des Tages.
    """
    match = _HHMM.match(value or "")
    if not match:
        raise ValueError(f"Ungültige Uhrzeit: {value!r} (erwartet HH:MM)")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Uhrzeit außerhalb des Tages: {value!r}")
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Minuten seit Mitternacht als "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def hours_to_minutes(hours: float) -> int:
    """Bruchteil-Stunden (19.5) in Minuten (1170), auf ganze Minuten gerundet."""
    return int(round(hours * 60))


def minutes_to_hours(minutes: int) -> float:
    return minutes / 60
