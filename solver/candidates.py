"""Kandidaten-Ermittlung: welche Termine eines Kurses sind überhaupt belegbar?

Filter (in dieser Reihenfolge):
  a) Wochentag: in allowed_days und nicht in blocked_days
  b) Uhrzeit: tagesweise Startzeiten (falls für den Tag definiert),
     sonst globales Zeitfenster earliest_time / latest_time
  c) Partnerkurse: pair_only-Termine fallen bei disable_pair_courses weg

Ein leeres Ergebnis ist kein Fehler, sondern macht die Anfrage unlösbar.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from models.catalog import CourseGroup
from models.constraints import ConstraintSet
from models.occurrence import CourseOccurrence


class FilterReason(str, Enum):
    """Erster Filter, der einen Termin ausgeschlossen hat."""

    DAY_BLOCKED = "day_blocked"
    DAY_NOT_ALLOWED = "day_not_allowed"
    DAY_CLOSED = "day_closed"              # per_day_time_slots[tag] == []
    SLOT_NOT_SELECTED = "slot_not_selected"
    BEFORE_EARLIEST = "before_earliest"
    AFTER_LATEST = "after_latest"
    PAIR_ONLY = "pair_only"


@dataclass
class CandidateReport:
    """Filterprotokoll eines Kurses (für die Vorschlags-Diagnose)."""

    course_name: str
    candidates: list[CourseOccurrence] = field(default_factory=list)
    dropped: list[tuple[CourseOccurrence, FilterReason]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.candidates) + len(self.dropped)

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    def reason_counts(self) -> Counter:
        return Counter(reason for _, reason in self.dropped)

    def dropped_by(self, reason: FilterReason) -> list[CourseOccurrence]:
        return [o for o, r in self.dropped if r == reason]


class CandidateEnumerator:
    """Ermittelt die belegbaren Termine pro Kurs."""

    def __init__(self, constraints: ConstraintSet) -> None:
        self.constraints = constraints
        self._effective_days = set(constraints.effective_days())
        self._earliest = constraints.earliest_minute
        self._latest = constraints.latest_minute

    def enumerate(self, group: CourseGroup) -> list[CourseOccurrence]:
        """Belegbare Termine in Katalogreihenfolge."""
        return [o for o in group.occurrences if self.reject_reason(o) is None]

    def explain(self, group: CourseGroup) -> CandidateReport:
        """Wie enumerate(), protokolliert aber den Grund jedes Ausschlusses."""
        report = CandidateReport(course_name=group.name)
        for occ in group.occurrences:
            reason = self.reject_reason(occ)
            if reason is None:
                report.candidates.append(occ)
            else:
                report.dropped.append((occ, reason))
        return report

    def reject_reason(self, occ: CourseOccurrence) -> Optional[FilterReason]:
        """None wenn der Termin belegbar ist, sonst der erste zutreffende Filter."""
        c = self.constraints

        # a) Wochentag
        if occ.day in c.blocked_days:
            return FilterReason.DAY_BLOCKED
        if occ.day not in self._effective_days:
            return FilterReason.DAY_NOT_ALLOWED

        # b) Uhrzeit – tagesweise Vorgabe ersetzt das globale Fenster
        day_slots = c.per_day_time_slots.get(occ.day)
        if day_slots is not None:
            if not day_slots:
                return FilterReason.DAY_CLOSED
            if occ.start_minute not in day_slots:
                return FilterReason.SLOT_NOT_SELECTED
        else:
            if self._earliest is not None and occ.start_minute < self._earliest:
                return FilterReason.BEFORE_EARLIEST
            if (
                self._latest is not None
                and occ.effective_end(c.course_duration_minutes) > self._latest
            ):
                return FilterReason.AFTER_LATEST

        # c) Partnerkurse
        if c.disable_pair_courses and occ.pair_only:
            return FilterReason.PAIR_ONLY

        return None
