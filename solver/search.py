"""Backtracking-Suche über (Kurs, Slot)-Einheiten.

Architektur:
  - Einheit = (Kurs, Slot-Nummer); ein Kurs mit multiplicity k erzeugt k Einheiten
  - Reihenfolge: wenigste Kandidaten zuerst, dann Auswahlreihenfolge, dann Slot
  - Iterative Tiefensuche über einen Index-Stack (ein Zeiger pro Einheit)
  - Vor jedem Abstieg werden nur die Regeln geprüft, die der neue Termin
    verletzen kann (Tag des neuen Termins)
  - Die Lücken-Regel wird erst geprüft, wenn ein Tag keine weiteren Termine
    mehr bekommen kann; ein später belegter Termin könnte die Lücke sonst füllen
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from models.constraints import ConstraintSet
from models.occurrence import CourseOccurrence
from models.schedule import ScheduleAssignment, ScheduledCourse
from models.timeslot import DayCode

logger = logging.getLogger(__name__)

# Abbruch-Token wird zusätzlich alle N Knoten geprüft (lange erfolglose Suchen)
CANCEL_CHECK_INTERVAL = 2048


class CancelToken:
    """Thread-sicheres Abbruch-Flag. Pro Eingabe-Burst ein neues Token."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"


class RejectKind(str, Enum):
    """Grund, warum ein Kandidat an einer Stelle verworfen wurde."""

    ALREADY_USED = "already_used"            # Termin schon von anderer Einheit belegt
    SAME_COURSE_DAY = "same_course_day"      # Mehrfachbelegung am selben Tag
    DUPLICATE_PER_DAY = "duplicate_per_day"  # no_duplicate_courses_per_day
    MAX_PER_DAY = "max_per_day"              # max_courses_per_day
    OVERLAP = "overlap"                      # prevent_overlaps
    MAX_GAP = "max_gap"                      # max_time_between_courses


@dataclass
class SearchUnit:
    """Eine zu belegende Einheit mit ihren Kandidaten."""

    course_name: str
    slot_index: int
    selection_index: int
    candidates: list[CourseOccurrence]


@dataclass
class SearchStats:
    """Zähler eines Suchlaufs (Grundlage der Vorschlags-Diagnose)."""

    nodes: int = 0
    solutions: int = 0
    rejections: Counter = field(default_factory=Counter)
    cap_reached: bool = False    # vom Planner gesetzt (Ergebnis-Limit erreicht)
    cancelled: bool = False
    exhausted: bool = False

    def dominant_rejection(self) -> Optional[RejectKind]:
        """Häufigster Verwerfungsgrund (ALREADY_USED zählt nicht als Regel)."""
        relevant = [(k, n) for k, n in self.rejections.items() if k != RejectKind.ALREADY_USED]
        if not relevant:
            return None
        return max(relevant, key=lambda kv: kv[1])[0]


@dataclass
class _Placed:
    start: int
    end: int
    base_name: str
    course_name: str


class BacktrackingSearch:
    """Findet alle gültigen Belegungen, deterministisch in fester Reihenfolge.

    Verwendung:
        search = BacktrackingSearch(constraints, {"Salsa (1)": [...], ...})
        for assignment in search.iter_solutions():
            ...
    """

    def __init__(
        self,
        constraints: ConstraintSet,
        candidates: dict[str, list[CourseOccurrence]],
        cancel_token: Optional[CancelToken] = None,
    ) -> None:
        self.constraints = constraints
        self.cancel_token = cancel_token
        self.stats = SearchStats()
        self.units = self._build_units(candidates)

        self._duration = constraints.course_duration_minutes
        self._gap_check = constraints.max_time_between_courses > 0
        self._closing_days = self._build_closing_days()

        # Suchzustand
        self._day_entries: dict[DayCode, list[_Placed]] = {}
        self._used_ids: set[str] = set()

    # ─── Aufbau ───────────────────────────────────────────────────────────────

    def _build_units(self, candidates: dict[str, list[CourseOccurrence]]) -> list[SearchUnit]:
        units: list[SearchUnit] = []
        for sel_idx, name in enumerate(self.constraints.selected_courses):
            occs = list(candidates.get(name, []))
            for slot in range(self.constraints.multiplicity_for(name)):
                units.append(SearchUnit(
                    course_name=name,
                    slot_index=slot,
                    selection_index=sel_idx,
                    candidates=occs,
                ))
        # Wenigste Optionen zuerst → frühes Scheitern; Slots eines Kurses bleiben benachbart
        units.sort(key=lambda u: (len(u.candidates), u.selection_index, u.slot_index))
        return units

    def _build_closing_days(self) -> list[set[DayCode]]:
        """Pro Tiefe: Tage, die ab dieser Einheit keine weiteren Termine bekommen können."""
        n = len(self.units)
        remaining: list[set[DayCode]] = [set() for _ in range(n)]
        acc: set[DayCode] = set()
        for depth in range(n - 1, -1, -1):
            remaining[depth] = set(acc)   # Tage der Einheiten NACH depth
            acc |= {o.day for o in self.units[depth].candidates}

        closing: list[set[DayCode]] = []
        before = acc  # alle Tage, die überhaupt vorkommen können
        for depth in range(n):
            closing.append(before - remaining[depth])
            before = remaining[depth]
        return closing

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def run(self, limit: Optional[int] = None) -> list[ScheduleAssignment]:
        """Sammelt Lösungen (roh, nicht dedupliziert) bis limit oder Erschöpfung."""
        results: list[ScheduleAssignment] = []
        for assignment in self.iter_solutions():
            results.append(assignment)
            if limit is not None and len(results) >= limit:
                break
        return results

    def iter_solutions(self) -> Iterator[ScheduleAssignment]:
        """Liefert vollständige Belegungen nacheinander (lazy)."""
        n = len(self.units)
        self.stats = SearchStats()
        self._day_entries = {}
        self._used_ids = set()
        if n == 0:
            self.stats.exhausted = True
            return

        logger.debug(
            "Suchreihenfolge: "
            + ", ".join(f"{u.course_name}#{u.slot_index}({len(u.candidates)})" for u in self.units)
        )

        pointers = [-1] * n
        chosen: list[Optional[CourseOccurrence]] = [None] * n
        depth = 0

        while depth >= 0:
            if self._is_cancelled():
                return

            unit = self.units[depth]
            if chosen[depth] is not None:
                self._remove(chosen[depth])
                chosen[depth] = None

            placed = False
            for idx in range(pointers[depth] + 1, len(unit.candidates)):
                occ = unit.candidates[idx]
                self.stats.nodes += 1
                if self.stats.nodes % CANCEL_CHECK_INTERVAL == 0 and self._is_cancelled():
                    return
                reason = self._check(unit, occ, depth)
                if reason is not None:
                    self.stats.rejections[reason] += 1
                    continue
                pointers[depth] = idx
                chosen[depth] = occ
                self._place(unit, occ)
                placed = True
                break

            if not placed:
                # Alle Kandidaten dieser Einheit erschöpft → zurück zur vorherigen
                pointers[depth] = -1
                depth -= 1
                continue

            if depth == n - 1:
                self.stats.solutions += 1
                yield self._snapshot(chosen)
                if self._is_cancelled():
                    return
                continue  # gleiche Tiefe: nächster Kandidat

            depth += 1
            chosen[depth] = None
            nxt = self.units[depth]
            # Slots desselben Kurses nur in aufsteigender Kandidaten-Reihenfolge
            if nxt.course_name == unit.course_name:
                pointers[depth] = pointers[depth - 1]
            else:
                pointers[depth] = -1

        self.stats.exhausted = True

    # ─── Prüfung ──────────────────────────────────────────────────────────────

    def _check(self, unit: SearchUnit, occ: CourseOccurrence, depth: int) -> Optional[RejectKind]:
        c = self.constraints
        if occ.id in self._used_ids:
            return RejectKind.ALREADY_USED

        day_list = self._day_entries.get(occ.day, [])
        start = occ.start_minute
        end = occ.effective_end(self._duration)

        for e in day_list:
            if e.course_name == unit.course_name:
                return RejectKind.SAME_COURSE_DAY
        if c.no_duplicate_courses_per_day:
            for e in day_list:
                if e.base_name == occ.base_name:
                    return RejectKind.DUPLICATE_PER_DAY
        if c.max_courses_per_day is not None and len(day_list) + 1 > c.max_courses_per_day:
            return RejectKind.MAX_PER_DAY
        if c.prevent_overlaps:
            for e in day_list:
                # Halboffene Intervalle: Ende == Beginn ist keine Überschneidung
                if start < e.end and e.start < end:
                    return RejectKind.OVERLAP

        if self._gap_check and self._closing_days[depth]:
            new = _Placed(start, end, occ.base_name, unit.course_name)
            for day in self._closing_days[depth]:
                entries = list(self._day_entries.get(day, []))
                if day == occ.day:
                    entries.append(new)
                if not self._gaps_ok(entries):
                    return RejectKind.MAX_GAP
        return None

    def _gaps_ok(self, entries: list[_Placed]) -> bool:
        """Alle Lücken eines Tages ≤ max_time_between_courses (in Slot-Einheiten)."""
        if len(entries) < 2:
            return True
        limit = self.constraints.max_time_between_courses
        ordered = sorted(entries, key=lambda e: (e.start, e.end))
        latest_end = ordered[0].end
        for e in ordered[1:]:
            gap = e.start - latest_end
            # Lücke ≤ 0 (direkt anschließend oder überlappend) ist immer erlaubt
            if gap > 0 and gap // self._duration > limit:
                return False
            latest_end = max(latest_end, e.end)
        return True

    # ─── Zustand ──────────────────────────────────────────────────────────────

    def _place(self, unit: SearchUnit, occ: CourseOccurrence) -> None:
        self._used_ids.add(occ.id)
        self._day_entries.setdefault(occ.day, []).append(_Placed(
            start=occ.start_minute,
            end=occ.effective_end(self._duration),
            base_name=occ.base_name,
            course_name=unit.course_name,
        ))

    def _remove(self, occ: CourseOccurrence) -> None:
        self._used_ids.discard(occ.id)
        # Zuletzt hinzugefügter Eintrag des Tages gehört zur tiefsten Einheit (Stack)
        day_list = self._day_entries[occ.day]
        day_list.pop()
        if not day_list:
            del self._day_entries[occ.day]

    def _snapshot(self, chosen: list[Optional[CourseOccurrence]]) -> ScheduleAssignment:
        return ScheduleAssignment(entries=tuple(
            ScheduledCourse(course_name=u.course_name, slot_index=u.slot_index, occurrence=occ)
            for u, occ in zip(self.units, chosen)
        ))

    def _is_cancelled(self) -> bool:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            if not self.stats.cancelled:
                logger.warning(
                    f"Suche abgebrochen nach {self.stats.solutions} Lösungen "
                    f"({self.stats.nodes} Knoten)"
                )
            self.stats.cancelled = True
            return True
        return False
