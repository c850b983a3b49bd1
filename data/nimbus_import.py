"""Import des Kursplans aus dem Buchungssystem (schedule.json-Export).

Erwartete Struktur:
    {"content": {"days": [{"dayShort": "MO", "events": [{...}, ...]}, ...]}}

Nur Ereignisse mit type == "course" werden übernommen. Start/Ende sind
Unix-Zeitstempel (Sekunden) und werden in der konfigurierten Zeitzone
als Uhrzeit interpretiert. Es wird nur eine lokale Datei gelesen.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from models.exceptions import InvalidCatalog
from models.occurrence import CourseOccurrence
from models.timeslot import DAY_ORDER, DayCode

logger = logging.getLogger(__name__)

# "Grundstufe (Level 1)" → "1", "Aufbaustufe (WTP 2)" → "2", "Club 3" → "3"
_LEVEL_RE = re.compile(r"(?:Level|WTP|Club)?\s*\(?(\d+)\)?", re.IGNORECASE)


def extract_level_number(level_name: Optional[str]) -> Optional[str]:
    """Stufen-Nummer aus dem Stufennamen; None wenn keine Stufe angegeben."""
    if not level_name or level_name == "null" or level_name.lower() == "unspecified":
        return None
    match = _LEVEL_RE.search(level_name)
    if match:
        return match.group(1)
    return None


class ImportReport(BaseModel):
    """Bericht über den Katalog-Import."""
    warnings: list[str] = []
    occurrences_imported: int = 0
    events_skipped: int = 0
    courses: int = 0
    locations: list[str] = []

    def record(self, occurrences: list[CourseOccurrence]) -> None:
        """Zählt Termine, Kurse und Standorte der übernommenen Termine."""
        self.occurrences_imported = len(occurrences)
        self.courses = len({o.group_name for o in occurrences})
        self.locations = list(dict.fromkeys(o.location for o in occurrences if o.location))

    def print_rich(self) -> None:
        from rich.console import Console
        from rich.panel import Panel
        console = Console()
        lines = [f"[green]Termine: {self.occurrences_imported}[/green]  "
                 f"[green]Kurse: {self.courses}[/green]  "
                 f"[dim]Übersprungen: {self.events_skipped}[/dim]"]
        if self.locations:
            lines.append(f"Standorte: {', '.join(self.locations)}")
        if self.warnings:
            lines.append("\n[yellow]Warnungen:[/yellow]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        console.print(Panel("\n".join(lines), title="Kurskatalog-Import", border_style="cyan"))


class NimbusScheduleImporter:
    """Liest einen schedule.json-Export und erzeugt CourseOccurrence-Objekte."""

    def __init__(
        self,
        path: Path,
        timezone: str = "Europe/Berlin",
        location: Optional[str] = None,
    ) -> None:
        self.path = Path(path)
        self.tz = ZoneInfo(timezone)
        self.location = location
        self.report = ImportReport()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            raise FileNotFoundError(f"Datei nicht gefunden: {self.path}")
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidCatalog(f"JSON-Parse-Fehler in {self.path}: {e}") from e

    def import_occurrences(self) -> list[CourseOccurrence]:
        """Alle Kurstermine (optional gefiltert nach Standort)."""
        return self.parse(self._load())

    def parse(self, data: dict[str, Any]) -> list[CourseOccurrence]:
        """Wandelt die bereits geladene JSON-Struktur um."""
        days = (data.get("content") or {}).get("days")
        if not isinstance(days, list):
            raise InvalidCatalog("Erwartet content.days als Liste")

        occurrences: list[CourseOccurrence] = []
        seen_ids: set[str] = set()
        for day in days:
            for event in day.get("events") or []:
                if event.get("type") != "course":
                    self.report.events_skipped += 1
                    continue
                if self.location and event.get("location") != self.location:
                    self.report.events_skipped += 1
                    continue
                occ = self._convert(event, day.get("dayShort"))
                if occ.id in seen_ids:
                    # Gleicher Termin in mehreren Wochen des Exports
                    self.report.events_skipped += 1
                    continue
                seen_ids.add(occ.id)
                occurrences.append(occ)

        self.report.record(occurrences)
        logger.info(
            f"Import {self.path.name}: {len(occurrences)} Termine, "
            f"{self.report.courses} Kurse, {self.report.events_skipped} übersprungen"
        )
        return occurrences

    def _convert(self, event: dict[str, Any], day_short: Optional[str]) -> CourseOccurrence:
        occ_id = event.get("id")
        if occ_id in (None, ""):
            raise InvalidCatalog("Kurs-Ereignis ohne ID")
        occ_id = str(occ_id)

        try:
            start = datetime.fromtimestamp(int(event["start"]), tz=self.tz)
            end = datetime.fromtimestamp(int(event["end"]), tz=self.tz) if event.get("end") else None
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidCatalog(f"Zeitstempel unlesbar: {e}", occurrence_id=occ_id) from e

        day = self._day_code(day_short, start)
        end_minute = None
        if end is not None and end.date() == start.date():
            end_minute = end.hour * 60 + end.minute

        teachers = event.get("teacherNames") or []
        return CourseOccurrence.from_raw({
            "id": occ_id,
            "name": event.get("displayName") or event.get("name") or "",
            "level": extract_level_number(event.get("levelName")),
            "day": day.value,
            "start_minute": start.hour * 60 + start.minute,
            "end_minute": end_minute,
            "location": event.get("location") or "",
            "room": event.get("room") or "",
            "teacher": ", ".join(teachers) if isinstance(teachers, list) else str(teachers),
            "course_type": event.get("typeName") or "",
            "pair_only": bool(event.get("pairOnly", False)),
            "registered": bool(event.get("visitExists", False)),
        })

    def _day_code(self, day_short: Optional[str], start: datetime) -> DayCode:
        """Tag aus dayShort; sonst aus dem Zeitstempel abgeleitet."""
        if day_short:
            code = day_short.strip().rstrip(".").upper()[:2]
            if code in DayCode.__members__:
                return DayCode(code)
            self.report.warnings.append(f"Unbekannter Tag '{day_short}', verwende Datum")
        return DAY_ORDER[start.weekday()]


def import_from_nimbus(
    path: Path,
    timezone: str = "Europe/Berlin",
    location: Optional[str] = None,
) -> tuple[list[CourseOccurrence], ImportReport]:
    """Convenience-Funktion: Import in einem Aufruf."""
    importer = NimbusScheduleImporter(path, timezone=timezone, location=location)
    occurrences = importer.import_occurrences()
    return occurrences, importer.report


def load_catalog_with_report(
    path: Path,
    timezone: str = "Europe/Berlin",
    location: Optional[str] = None,
) -> tuple[list[CourseOccurrence], ImportReport]:
    """Lädt einen Katalog: schedule.json-Export oder einfache Terminliste.

    Einfache Liste: [{"id": ..., "name": ..., "day": "MO", "start": "19:00", ...}]
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Katalog nicht gefunden: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidCatalog(f"JSON-Parse-Fehler in {path}: {e}") from e

    if not isinstance(data, list):
        importer = NimbusScheduleImporter(path, timezone=timezone, location=location)
        return importer.parse(data), importer.report

    report = ImportReport()
    occurrences = [CourseOccurrence.from_raw(item) for item in data]
    if location:
        kept = [o for o in occurrences if o.location == location]
        report.events_skipped = len(occurrences) - len(kept)
        occurrences = kept
    report.record(occurrences)
    return occurrences, report


def load_catalog_file(
    path: Path,
    timezone: str = "Europe/Berlin",
    location: Optional[str] = None,
) -> list[CourseOccurrence]:
    return load_catalog_with_report(path, timezone=timezone, location=location)[0]
