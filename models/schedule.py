"""Ergebnis-Modelle: ein fertiger Wochenplan und sein Fingerprint."""

from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, ConfigDict

from models.occurrence import CourseOccurrence
from models.timeslot import DAY_ORDER, DayCode


class ScheduledCourse(BaseModel):
    """Ein belegter Termin: Kurs + Slot-Nummer (bei Mehrfachbelegung) + Termin."""

    model_config = ConfigDict(frozen=True)

    course_name: str       # group_name des Kurses
    slot_index: int        # 0-basiert; >0 nur bei multiplicity > 1
    occurrence: CourseOccurrence


def schedule_fingerprint(entries: Iterable[ScheduledCourse]) -> str:
    """Kanonische Identität eines Plans, unabhängig von der Belegungsreihenfolge.

    Format: sortierte "<kurs>|<tag>|<startminute>"-Einträge, verbunden mit "||".
    """
    items = sorted(
        f"{e.course_name}|{e.occurrence.day.value}|{e.occurrence.start_minute}"
        for e in entries
    )
    return "||".join(items) if items else "empty"


class ScheduleAssignment(BaseModel):
    """Ein vollständiger, gültiger Wochenplan.

    Einträge stehen in Belegungsreihenfolge der Suche. Nach der Erzeugung
    unveränderlich; Speichern/Teilen nutzt Kopien (model_dump).
    """

    model_config = ConfigDict(frozen=True)

    entries: tuple[ScheduledCourse, ...]

    @property
    def fingerprint(self) -> str:
        return schedule_fingerprint(self.entries)

    @property
    def occurrences(self) -> list[CourseOccurrence]:
        return [e.occurrence for e in self.entries]

    def sorted_entries(self) -> list[ScheduledCourse]:
        """Einträge nach Wochentag und Beginn sortiert."""
        return sorted(
            self.entries,
            key=lambda e: (e.occurrence.day.order, e.occurrence.start_minute, e.course_name),
        )

    def by_day(self) -> dict[DayCode, list[ScheduledCourse]]:
        """Tag → Einträge (nach Beginn sortiert); nur belegte Tage, Wochenreihenfolge."""
        result: dict[DayCode, list[ScheduledCourse]] = {}
        for entry in self.sorted_entries():
            result.setdefault(entry.occurrence.day, []).append(entry)
        return {d: result[d] for d in DAY_ORDER if d in result}

    @property
    def days_used(self) -> int:
        return len({e.occurrence.day for e in self.entries})

    def courses(self, course_name: str) -> list[ScheduledCourse]:
        return [e for e in self.entries if e.course_name == course_name]

    def save_json(self, path: Path) -> None:
        """Speichert den Plan als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "ScheduleAssignment":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Plan nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())

    def __len__(self) -> int:
        return len(self.entries)
