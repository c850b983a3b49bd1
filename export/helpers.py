"""Gemeinsame Hilfsfunktionen für Terminal- und Excel-Export."""

import hashlib
from datetime import date

from models.schedule import ScheduleAssignment, ScheduledCourse
from models.timeslot import DAY_ORDER, DayCode, format_minutes

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "free":         "F5F5F5",
    "pair_only":    "FFD4B3",
    "registered":   "B3FFB3",
    "header":       "4472C4",
    "day_header":   "D9E1F2",
}

# Kursfarben, zugeordnet über den Kursnamen (stabil zwischen Läufen)
COURSE_PALETTE: list[str] = [
    "B3D4FF", "FFF2B3", "B3FFB3", "FFB3E6", "D4B3FF",
    "B3FFF0", "FFE0B3", "E0E0E0", "C6EFCE", "F8CBAD",
]


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


def get_course_color(course_name: str) -> str:
    """Feste Farbe pro Kurs (Hash des Namens, unabhängig von PYTHONHASHSEED)."""
    digest = hashlib.md5(course_name.encode("utf-8")).hexdigest()
    return COURSE_PALETTE[int(digest, 16) % len(COURSE_PALETTE)]


# ─── Wochenraster ─────────────────────────────────────────────────────────────

def week_days(assignment: ScheduleAssignment, all_days: bool = True) -> list[DayCode]:
    """Spalten des Wochenrasters: alle Tage oder nur belegte."""
    if all_days:
        return list(DAY_ORDER)
    return list(assignment.by_day())


def start_times(assignment: ScheduleAssignment) -> list[int]:
    """Alle vorkommenden Startzeiten (Minuten), aufsteigend."""
    return sorted({e.occurrence.start_minute for e in assignment.entries})


def format_entry(entry: ScheduledCourse, duration: int, with_location: bool = False) -> str:
    """Zelleninhalt: Kursname, Uhrzeit und optional Standort."""
    occ = entry.occurrence
    lines = [
        entry.course_name,
        f"{format_minutes(occ.start_minute)}–{format_minutes(occ.effective_end(duration))}",
    ]
    if with_location and occ.location:
        lines.append(occ.location)
    if occ.pair_only:
        lines.append("nur mit Partner")
    return "\n".join(lines)
