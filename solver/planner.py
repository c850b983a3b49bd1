"""Einstiegspunkt des Solvers: Katalog laden, Pläne berechnen, Vorschläge liefern."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from config.schema import SolverSettings
from models.catalog import CourseCatalogIndex, CourseGroup
from models.constraints import ConstraintSet
from models.exceptions import InvalidConstraint
from models.occurrence import CourseOccurrence
from models.schedule import ScheduleAssignment
from models.suggestion import Suggestion
from solver.candidates import CandidateEnumerator
from solver.dedup import ScheduleDeduplicator
from solver.search import BacktrackingSearch, CancelToken, SearchStats
from solver.suggestions import SuggestionEngine

logger = logging.getLogger(__name__)


# ─── Ergebnis-Modell ──────────────────────────────────────────────────────────

@dataclass
class PlanningResult:
    """Ergebnis einer Berechnung inkl. Diagnose."""

    schedules: list[ScheduleAssignment]
    cap_reached: bool = False     # Liste ist nicht erschöpfend
    cancelled: bool = False       # Durch neueren Auftrag abgelöst
    solve_time_seconds: float = 0.0
    suggestions: list[Suggestion] = field(default_factory=list)  # nur bei leerem Ergebnis
    stats: SearchStats = field(default_factory=SearchStats)

    @property
    def is_empty(self) -> bool:
        return not self.schedules

    def __len__(self) -> int:
        return len(self.schedules)


# ─── SchedulePlanner ──────────────────────────────────────────────────────────

class SchedulePlanner:
    """Fassade über Kandidaten-Ermittlung, Suche, Deduplizierung und Diagnose.

    Verwendung:
        planner = SchedulePlanner()
        planner.initialize(occurrences)
        schedules = planner.generate_schedules(constraints)
        if not schedules:
            suggestions = planner.suggest_relaxations(constraints)
    """

    def __init__(self, settings: Optional[SolverSettings] = None) -> None:
        self.settings = settings or SolverSettings()
        self._index: Optional[CourseCatalogIndex] = None

    # ─── Katalog ──────────────────────────────────────────────────────────────

    def initialize(
        self, catalog: Iterable[Union[CourseOccurrence, dict[str, Any]]]
    ) -> CourseCatalogIndex:
        """Baut den Katalog-Index auf. InvalidCatalog bei fehlerhaften Terminen."""
        self._index = CourseCatalogIndex(catalog)
        logger.info(f"Katalog geladen: {self._index!r}")
        return self._index

    @property
    def index(self) -> CourseCatalogIndex:
        if self._index is None:
            raise RuntimeError("SchedulePlanner.initialize() wurde noch nicht aufgerufen")
        return self._index

    def list_course_groups(self) -> dict[str, CourseGroup]:
        return self.index.groups()

    def list_course_names(self) -> list[str]:
        return self.index.names()

    # ─── Berechnung ───────────────────────────────────────────────────────────

    def generate_schedules(
        self,
        constraints: Union[ConstraintSet, dict[str, Any]],
        cancel_token: Optional[CancelToken] = None,
    ) -> list[ScheduleAssignment]:
        """Alle verschiedenen gültigen Pläne (bis result_cap). [] wenn unlösbar."""
        return self._run(constraints, cancel_token).schedules

    def solve(
        self,
        constraints: Union[ConstraintSet, dict[str, Any]],
        cancel_token: Optional[CancelToken] = None,
    ) -> PlanningResult:
        """Wie generate_schedules, aber mit Diagnose und Vorschlägen bei leerem Ergebnis."""
        result = self._run(constraints, cancel_token)
        if result.is_empty and not result.cancelled:
            result.suggestions = self.suggest_relaxations(constraints)
        return result

    def suggest_relaxations(
        self, constraints: Union[ConstraintSet, dict[str, Any]]
    ) -> list[Suggestion]:
        """Lockerungs-Vorschläge; zu hohe Mehrfachbelegung wird zum Vorschlag statt Fehler."""
        constraints = self.prepare(constraints)
        self._check_selection(constraints)
        engine = SuggestionEngine(self.index.groups(), self.settings)
        return engine.suggest(constraints)

    def prepare(self, constraints: Union[ConstraintSet, dict[str, Any]]) -> ConstraintSet:
        """Validierte Vorgaben; ohne eigene Kursdauer gilt default_course_duration_minutes."""
        constraints = self._coerce(constraints)
        if "course_duration_minutes" not in constraints.model_fields_set:
            constraints = constraints.with_changes(
                course_duration_minutes=self.settings.default_course_duration_minutes
            )
        return constraints

    # ─── Intern ───────────────────────────────────────────────────────────────

    def _run(
        self,
        constraints: Union[ConstraintSet, dict[str, Any]],
        cancel_token: Optional[CancelToken],
    ) -> PlanningResult:
        constraints = self.prepare(constraints)
        self._check_selection(constraints)
        self._check_multiplicity(constraints)

        t0 = time.time()
        if not constraints.selected_courses:
            return PlanningResult(schedules=[], solve_time_seconds=0.0)

        enumerator = CandidateEnumerator(constraints)
        candidates = {
            name: enumerator.enumerate(self.index.get(name))
            for name in constraints.selected_courses
        }
        for name, occs in candidates.items():
            logger.debug(f"Kandidaten '{name}': {len(occs)}")

        search = BacktrackingSearch(constraints, candidates, cancel_token=cancel_token)
        dedup = ScheduleDeduplicator()
        cap = self.settings.result_cap

        if all(candidates.values()):
            for assignment in search.iter_solutions():
                dedup.add(assignment)
                if len(dedup) >= cap:
                    search.stats.cap_reached = True
                    break

        elapsed = time.time() - t0
        stats = search.stats
        logger.info(
            f"Suche beendet: {len(dedup)} Pläne | "
            f"Knoten: {stats.nodes} | "
            f"Duplikate: {dedup.duplicates_dropped} | "
            f"Zeit: {elapsed:.3f}s"
        )
        if stats.cap_reached:
            logger.warning(f"Ergebnis-Limit von {cap} Plänen erreicht, Liste ist nicht vollständig")

        return PlanningResult(
            schedules=dedup.results,
            cap_reached=stats.cap_reached,
            cancelled=stats.cancelled,
            solve_time_seconds=elapsed,
            stats=stats,
        )

    def _coerce(self, constraints: Union[ConstraintSet, dict[str, Any]]) -> ConstraintSet:
        """Rohdaten an der Grenze validieren (ValidationError → InvalidConstraint)."""
        if isinstance(constraints, ConstraintSet):
            return constraints
        try:
            return ConstraintSet.model_validate(constraints)
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first.get("loc", ())) or None
            raise InvalidConstraint(first.get("msg", str(e)), field=loc) from e

    def _check_selection(self, constraints: ConstraintSet) -> None:
        unknown = [n for n in constraints.selected_courses if n not in self.index]
        if unknown:
            raise InvalidConstraint(
                f"Unbekannte Kurse: {', '.join(unknown)}", field="selected_courses"
            )

    def _check_multiplicity(self, constraints: ConstraintSet) -> None:
        for name in constraints.selected_courses:
            k = constraints.multiplicity_for(name)
            group = self.index.get(name)
            if k > group.distinct_day_count:
                raise InvalidConstraint(
                    f"'{name}' soll {k}x pro Woche belegt werden, findet aber nur an "
                    f"{group.distinct_day_count} Tag(en) statt",
                    field="multiplicity",
                )
