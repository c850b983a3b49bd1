"""Testdaten-Generator für den Tanzkurs-Wochenplaner.

Erzeugt einen realistischen Kurskatalog mit absichtlichen Engpässen:

  1. Einzeltermin: "Tango (1)" gibt es nur Donnerstag 20:30
  2. Partnerkurse: alle "Discofox"-Termine sind nur mit Partner buchbar
  3. Überschneidung: "Salsa (1)" und "Bachata (1)" liegen am Montag versetzt
     übereinander (19:00 / 19:30)
  4. Wochenende: "West Coast Swing (2)" nur Samstag/Sonntag nachmittags

Der Rest wird zufällig (aber per seed reproduzierbar) auf Abendslots verteilt.
"""

import random
from typing import Optional

from models.occurrence import CourseOccurrence
from models.timeslot import DAY_ORDER, DayCode, format_minutes

# ─── Stammdaten ───────────────────────────────────────────────────────────────

_DANCES = [
    "Salsa", "Bachata", "Kizomba", "Lindy Hop", "Tango", "Walzer",
    "Cha-Cha-Cha", "Rumba", "Jive", "Foxtrott", "Discofox", "West Coast Swing",
]

_TEACHERS = [
    "Anna", "Carlos", "Elena", "Jonas", "Lea", "Marco", "Nina", "Paul", "Sofia",
]

_LOCATIONS = ["Tanzschule Mitte", "Studio Süd"]

# Abendraster: 70 min Kurs inkl. Wechsel
_EVENING_STARTS = [17 * 60 + 50, 19 * 60, 20 * 60 + 10, 21 * 60 + 20]

_COURSE_LENGTH = 60


class FakeCatalogGenerator:
    """Generiert einen Demo-Kurskatalog (Liste von CourseOccurrence)."""

    def __init__(self, seed: Optional[int] = None, courses: int = 10) -> None:
        self.seed = seed
        self.rng = random.Random(seed)
        self.courses = max(4, min(courses, len(_DANCES) * 2))
        self._next_id = 1000

    def _occ(
        self,
        name: str,
        level: str,
        day: DayCode,
        start: int,
        location: Optional[str] = None,
        pair_only: bool = False,
    ) -> CourseOccurrence:
        self._next_id += 1
        occ_id = str(self._next_id)
        return CourseOccurrence(
            id=occ_id,
            name=name,
            level=level,
            day=day,
            start_minute=start,
            end_minute=start + _COURSE_LENGTH,
            location=location or _LOCATIONS[0],
            room=f"Saal {self.rng.randint(1, 3)}",
            teacher=self.rng.choice(_TEACHERS),
            course_type="Kurs",
            pair_only=pair_only,
        )

    # ─── Feste Engpässe ───────────────────────────────────────────────────────

    def _fixed_courses(self) -> list[CourseOccurrence]:
        return [
            self._occ("Salsa", "1", DayCode.MO, 19 * 60),
            self._occ("Salsa", "1", DayCode.MI, 19 * 60),
            self._occ("Bachata", "1", DayCode.MO, 19 * 60 + 30),
            self._occ("Tango", "1", DayCode.DO, 20 * 60 + 30),
            self._occ("Discofox", "1", DayCode.DI, 20 * 60 + 10, pair_only=True),
            self._occ("Discofox", "1", DayCode.FR, 19 * 60, pair_only=True),
            self._occ("West Coast Swing", "2", DayCode.SA, 15 * 60 + 10),
            self._occ("West Coast Swing", "2", DayCode.SO, 14 * 60),
        ]

    # ─── Zufällige Kurse ──────────────────────────────────────────────────────

    def _random_courses(self, count: int) -> list[CourseOccurrence]:
        fixed = {("Salsa", "1"), ("Bachata", "1"), ("Tango", "1"),
                 ("Discofox", "1"), ("West Coast Swing", "2")}
        pool = [(d, str(lvl)) for d in _DANCES for lvl in (1, 2) if (d, str(lvl)) not in fixed]
        self.rng.shuffle(pool)

        result: list[CourseOccurrence] = []
        weekdays = DAY_ORDER[:5]
        for dance, level in pool[:count]:
            n_terms = self.rng.choice([1, 2, 2, 3])
            days = self.rng.sample(weekdays, n_terms)
            location = self.rng.choice(_LOCATIONS)
            for day in sorted(days, key=lambda d: d.order):
                start = self.rng.choice(_EVENING_STARTS)
                result.append(self._occ(dance, level, day, start, location=location))
        return result

    def generate(self) -> list[CourseOccurrence]:
        """Vollständiger Katalog: feste Engpässe + zufällige Kurse (gleicher seed, gleicher Katalog)."""
        self.rng = random.Random(self.seed)
        self._next_id = 1000
        fixed = self._fixed_courses()
        extra = self._random_courses(max(0, self.courses - 5))
        return fixed + extra

    def generate_raw(self) -> list[dict]:
        """Katalog als JSON-fähige Liste (Format von load_catalog_file)."""
        return [
            {
                "id": o.id,
                "name": o.name,
                "level": o.level,
                "day": o.day.value,
                "start": format_minutes(o.start_minute),
                "end": format_minutes(o.end_minute) if o.end_minute is not None else None,
                "location": o.location,
                "room": o.room,
                "teacher": o.teacher,
                "course_type": o.course_type,
                "pair_only": o.pair_only,
            }
            for o in self.generate()
        ]

    def print_summary(self, occurrences: list[CourseOccurrence]) -> None:
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Demo-Kurskatalog", box=box.ROUNDED)
        table.add_column("Kurs", style="bold")
        table.add_column("Termine")
        table.add_column("Standort")
        grouped: dict[str, list[CourseOccurrence]] = {}
        for o in occurrences:
            grouped.setdefault(o.group_name, []).append(o)
        for name, occs in grouped.items():
            terms = ", ".join(
                f"{o.day.value} {format_minutes(o.start_minute)}" + (" ⚭" if o.pair_only else "")
                for o in occs
            )
            table.add_row(name, terms, occs[0].location)
        console.print(table)
