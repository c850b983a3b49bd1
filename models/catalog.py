"""Kurskatalog: Gruppierung aller Wochentermine nach logischem Kursnamen."""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from models.exceptions import InvalidCatalog
from models.occurrence import CourseOccurrence
from models.timeslot import DAY_ORDER, DayCode


@dataclass(frozen=True)
class CourseGroup:
    """Alle Wochentermine eines benannten Kurses (read-only Sicht)."""

    name: str
    occurrences: tuple[CourseOccurrence, ...]

    @property
    def pair_only(self) -> bool:
        """True wenn ALLE Termine nur mit Partner buchbar sind."""
        return bool(self.occurrences) and all(o.pair_only for o in self.occurrences)

    @property
    def locations(self) -> list[str]:
        seen: dict[str, None] = {}
        for o in self.occurrences:
            if o.location:
                seen.setdefault(o.location, None)
        return list(seen)

    @property
    def days(self) -> list[DayCode]:
        """Verschiedene Wochentage der Termine in Wochenreihenfolge."""
        present = {o.day for o in self.occurrences}
        return [d for d in DAY_ORDER if d in present]

    @property
    def distinct_day_count(self) -> int:
        return len(self.days)

    def __len__(self) -> int:
        return len(self.occurrences)


class CourseCatalogIndex:
    """Index über alle Termine, gruppiert nach group_name.

    Die Reihenfolge der Gruppen entspricht dem ersten Auftreten im Katalog;
    darauf basiert die reproduzierbare Suchreihenfolge.
    """

    def __init__(self, occurrences: Iterable[Union[CourseOccurrence, dict[str, Any]]]) -> None:
        self._occurrences: list[CourseOccurrence] = []
        self._by_id: dict[str, CourseOccurrence] = {}
        grouped: dict[str, list[CourseOccurrence]] = {}

        for raw in occurrences:
            occ = raw if isinstance(raw, CourseOccurrence) else CourseOccurrence.from_raw(raw)
            if occ.id in self._by_id:
                raise InvalidCatalog("Doppelte Termin-ID", occurrence_id=occ.id)
            self._by_id[occ.id] = occ
            self._occurrences.append(occ)
            grouped.setdefault(occ.group_name, []).append(occ)

        self._groups: dict[str, CourseGroup] = {
            name: CourseGroup(name=name, occurrences=tuple(occs))
            for name, occs in grouped.items()
        }

    # ─── Zugriff ───

    def groups(self) -> dict[str, CourseGroup]:
        """Kursname → CourseGroup (Kopie, Einfügereihenfolge)."""
        return dict(self._groups)

    def names(self) -> list[str]:
        return list(self._groups)

    def get(self, name: str) -> Optional[CourseGroup]:
        return self._groups.get(name)

    def occurrence(self, occurrence_id: str) -> Optional[CourseOccurrence]:
        return self._by_id.get(occurrence_id)

    @property
    def occurrences(self) -> list[CourseOccurrence]:
        return list(self._occurrences)

    def locations(self) -> list[str]:
        """Alle Standorte in Reihenfolge des ersten Auftretens."""
        seen: dict[str, None] = {}
        for o in self._occurrences:
            if o.location:
                seen.setdefault(o.location, None)
        return list(seen)

    def filter_location(self, location: Optional[str]) -> "CourseCatalogIndex":
        """Neuer Index nur mit Terminen eines Standorts (None = alle)."""
        if not location:
            return CourseCatalogIndex(self._occurrences)
        return CourseCatalogIndex(o for o in self._occurrences if o.location == location)

    def __len__(self) -> int:
        return len(self._occurrences)

    def __contains__(self, name: object) -> bool:
        return name in self._groups

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Katalog."""
        pair_only = sum(1 for o in self._occurrences if o.pair_only)
        registered = sum(1 for o in self._occurrences if o.registered)
        days = {o.day for o in self._occurrences}
        lines = [
            f"Termine: {len(self._occurrences)}",
            f"Kurse: {len(self._groups)}",
            f"Wochentage: {', '.join(d.value for d in DAY_ORDER if d in days)}" if days else "",
            f"Standorte: {', '.join(self.locations())}" if self.locations() else "",
            f"Nur mit Partner: {pair_only}" if pair_only else "",
            f"Bereits gebucht: {registered}" if registered else "",
        ]
        return "\n".join(l for l in lines if l)

    def __repr__(self) -> str:
        return f"CourseCatalogIndex({len(self._groups)} Kurse, {len(self._occurrences)} Termine)"
