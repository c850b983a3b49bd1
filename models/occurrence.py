"""Datenmodell für einen einzelnen wöchentlichen Kurstermin (Pydantic v2)."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from models.exceptions import InvalidCatalog
from models.timeslot import DayCode, MINUTES_PER_DAY, format_minutes, hours_to_minutes, parse_hhmm


class CourseOccurrence(BaseModel):
    """Ein konkreter Wochentermin eines Kurses (Tag + Beginn + Ende).

    Immutable (frozen=True): wird einmal geladen und vom Katalog gehalten.
    """

    model_config = ConfigDict(frozen=True)

    id: str                            # Stabile Termin-ID des Buchungsdienstes
    name: str                          # Anzeigename ("Salsa")
    level: Optional[str] = None        # Vereinfachte Stufe ("1"), optional
    day: DayCode
    start_minute: int                  # Minuten seit Mitternacht
    end_minute: Optional[int] = None   # None = Dauer aus course_duration_minutes
    location: str = ""
    room: str = ""
    teacher: str = ""
    course_type: str = ""
    pair_only: bool = False            # Nur mit Tanzpartner buchbar
    registered: bool = False           # Nur informativ, nicht constraint-relevant

    @field_validator("id", "name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("darf nicht leer sein")
        return v

    @field_validator("day", mode="before")
    @classmethod
    def _normalize_day(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("start_minute")
    @classmethod
    def _start_in_day(cls, v: int) -> int:
        if not 0 <= v < MINUTES_PER_DAY:
            raise ValueError(f"Beginn {v} liegt außerhalb des Tages")
        return v

    @model_validator(mode="after")
    def _check_end(self):
        if self.end_minute is not None:
            if self.end_minute <= self.start_minute:
                raise ValueError(
                    f"Ende ({format_minutes(self.end_minute % MINUTES_PER_DAY)}) "
                    f"liegt nicht nach Beginn ({format_minutes(self.start_minute)})"
                )
            if self.end_minute > MINUTES_PER_DAY:
                raise ValueError("Ende liegt nach Mitternacht")
        return self

    # ─── Abgeleitete Werte ───

    @property
    def group_name(self) -> str:
        """Logischer Kursname inkl. Stufe, z.B. "Salsa (1)"."""
        if self.level and self.level.lower() not in self.name.lower():
            return f"{self.name} ({self.level})"
        return self.name

    @property
    def base_name(self) -> str:
        """Anzeigename ohne Stufe (für die Gleicher-Kurs-gleicher-Tag-Regel)."""
        return self.name.strip()

    def effective_end(self, duration_minutes: int) -> int:
        """Ende in Minuten; ohne explizites Ende gilt Beginn + Kursdauer."""
        if self.end_minute is not None:
            return self.end_minute
        return self.start_minute + duration_minutes

    @property
    def start_hours(self) -> float:
        return self.start_minute / 60

    @property
    def label(self) -> str:
        """Kurzbezeichnung, z.B. "Salsa (1) MI 19:00"."""
        return f"{self.group_name} {self.day.value} {format_minutes(self.start_minute)}"

    # ─── Konstruktion aus Rohdaten ───

    @classmethod
    def from_raw(cls, data: dict[str, Any]) -> "CourseOccurrence":
        """Erzeugt einen Termin aus einem Dictionary.

        start/end: "HH:MM" oder Bruchteil-Stunden (19.5 = 19:30).
        start_minute/end_minute: Minuten seit Mitternacht (int), haben Vorrang.
        Jeder Fehler wird als InvalidCatalog gemeldet.
        """
        occ_id = data.get("id")
        occ_id = str(occ_id) if occ_id is not None else None
        if not occ_id:
            raise InvalidCatalog("Termin ohne ID", occurrence_id=None)

        try:
            start = _time_field(data, "start")
            if start is None:
                raise ValueError("Uhrzeit fehlt")
            end = _time_field(data, "end")
        except ValueError as e:
            raise InvalidCatalog(str(e), occurrence_id=occ_id) from e

        try:
            return cls(
                id=occ_id,
                name=data.get("name") or "",
                level=data.get("level") or None,
                day=data.get("day"),
                start_minute=start,
                end_minute=end,
                location=data.get("location") or "",
                room=data.get("room") or "",
                teacher=data.get("teacher") or "",
                course_type=data.get("course_type") or "",
                pair_only=bool(data.get("pair_only", data.get("pairOnly", False))),
                registered=bool(data.get("registered", False)),
            )
        except ValidationError as e:
            raise InvalidCatalog(
                "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()),
                occurrence_id=occ_id,
            ) from e


def _time_field(data: dict[str, Any], key: str) -> Optional[int]:
    """Uhrzeit aus "<key>_minute" (Minuten) oder "<key>" ("HH:MM" bzw. Stunden)."""
    minutes = data.get(f"{key}_minute")
    if minutes not in (None, ""):
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            raise ValueError(f"Ungültige Minutenangabe: {minutes!r}")
        return minutes
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Ungültige Uhrzeit: {value!r}")
    if isinstance(value, (int, float)):
        if not 0 <= value < 24:
            raise ValueError(f"Stundenangabe außerhalb des Tages: {value!r}")
        return hours_to_minutes(value)
    return parse_hhmm(str(value))
