"""Diagnose unlösbarer Vorgaben durch gezielte, überprüfte Lockerungen."""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from config.schema import SolverSettings
from models.catalog import CourseGroup
from models.constraints import ConstraintSet
from models.occurrence import CourseOccurrence
from models.suggestion import Suggestion, SuggestionKind
from models.timeslot import DAY_ORDER, DayCode, format_minutes, minutes_to_hours
from solver.candidates import CandidateEnumerator, FilterReason
from solver.search import BacktrackingSearch, RejectKind, SearchStats

logger = logging.getLogger(__name__)

# Lockerungen pro Filtergrund (Schritt 1)
_FILTER_KINDS = {
    FilterReason.DAY_BLOCKED: SuggestionKind.ADD_DAY,
    FilterReason.DAY_NOT_ALLOWED: SuggestionKind.ADD_DAY,
    FilterReason.DAY_CLOSED: SuggestionKind.ADD_TIME_SLOT,
    FilterReason.SLOT_NOT_SELECTED: SuggestionKind.ADD_TIME_SLOT,
    FilterReason.BEFORE_EARLIEST: SuggestionKind.WIDEN_TIME_WINDOW,
    FilterReason.AFTER_LATEST: SuggestionKind.WIDEN_TIME_WINDOW,
    FilterReason.PAIR_ONLY: SuggestionKind.ENABLE_PAIR_COURSES,
}

# Felder, die zur jeweiligen Art gehören; alles andere wird im Text erwähnt
_PRIMARY_FIELDS = {
    SuggestionKind.ADD_DAY: {"allowed_days", "blocked_days"},
    SuggestionKind.ADD_TIME_SLOT: {"per_day_time_slots"},
    SuggestionKind.WIDEN_TIME_WINDOW: {"earliest_time", "latest_time"},
    SuggestionKind.ENABLE_PAIR_COURSES: {"disable_pair_courses"},
}


def _days(values) -> list[str]:
    """Tage in Wochenreihenfolge als Codes (für ConstraintSet.with_changes)."""
    present = {DayCode(v) for v in values}
    return [d.value for d in DAY_ORDER if d in present]


# ─── SuggestionEngine ─────────────────────────────────────────────────────────

class SuggestionEngine:
    """Schlägt konkrete Lockerungen vor, wenn die Suche keinen Plan findet.

    Vorgehen:
      1. Kurse ohne belegbaren Termin → Tag freigeben, Zeitfenster erweitern,
         Startzeit ergänzen, Partnerkurse zulassen, Kurs abwählen
      2. Suche scheitert vor allem am Tageslimit → Limit schrittweise erhöhen
      3. Suche scheitert vor allem am Lückenlimit → Limit schrittweise erhöhen
      4. Sonst: Mehrfachbelegung senken, Kurs abwählen, Doppelungen bzw.
         Überschneidungen erlauben

    Jeder Vorschlag wird mit einer gelockerten Suche geprüft (verified).
    """

    def __init__(
        self,
        groups: dict[str, CourseGroup],
        settings: Optional[SolverSettings] = None,
    ) -> None:
        self.groups = groups
        self.settings = settings or SolverSettings()

    def suggest(self, constraints: ConstraintSet) -> list[Suggestion]:
        """Vorschläge, sortiert nach impact (absteigend) und fester Art-Priorität."""
        selected = [n for n in constraints.selected_courses if n in self.groups]
        if not selected:
            return []

        enumerator = CandidateEnumerator(constraints)
        reports = {name: enumerator.explain(self.groups[name]) for name in selected}

        suggestions: list[Suggestion] = []

        # 1. Kurse ohne Kandidaten
        empty = [name for name in selected if reports[name].is_empty]
        if empty:
            for name in empty:
                suggestions.extend(self._filter_suggestions(constraints, name, reports[name].dropped))
                suggestions.append(self._reduce_selection(constraints, name))
            return self._finalize(suggestions)

        # Mehrfachbelegung über die Zahl der Kandidaten-Tage hinaus
        for name in selected:
            k = constraints.multiplicity_for(name)
            day_count = len({o.day for o in reports[name].candidates})
            if k > day_count:
                suggestions.append(self._reduce_multiplicity(constraints, name, day_count))
        if suggestions:
            suggestions.append(self._reduce_selection(constraints, self._most_constrained(selected, reports)))
            return self._finalize(suggestions)

        stats = self._diagnose(constraints)
        dominant = stats.dominant_rejection()
        logger.info(
            f"SuggestionEngine: {stats.nodes} Knoten, Verwerfungen "
            f"{dict((k.value, n) for k, n in stats.rejections.items())}"
        )

        # 2. Tageslimit
        if dominant == RejectKind.MAX_PER_DAY and constraints.max_courses_per_day is not None:
            s = self._raise_limit(
                constraints, "max_courses_per_day", SuggestionKind.RAISE_MAX_PER_DAY,
                stats.rejections[RejectKind.MAX_PER_DAY],
            )
            if s is not None:
                suggestions.append(s)

        # 3. Lückenlimit
        elif dominant == RejectKind.MAX_GAP:
            s = self._raise_limit(
                constraints, "max_time_between_courses", SuggestionKind.RAISE_MAX_GAP,
                stats.rejections[RejectKind.MAX_GAP],
            )
            if s is not None:
                suggestions.append(s)

        # 4. Fallbacks
        if not suggestions:
            suggestions.extend(self._fallbacks(constraints, selected, reports, stats))

        return self._finalize(suggestions)

    # ─── Schritt 1: Filter-Lockerungen ────────────────────────────────────────

    def _filter_suggestions(
        self,
        constraints: ConstraintSet,
        course: str,
        dropped: list[tuple[CourseOccurrence, FilterReason]],
    ) -> list[Suggestion]:
        results: list[Suggestion] = []
        seen: set[str] = set()
        for occ, reason in dropped:
            changes = self._admit_changes(constraints, occ)
            if not changes:
                continue
            key = repr(sorted(changes.items()))
            if key in seen:
                continue
            seen.add(key)

            relaxed = self._apply(constraints, changes)
            if relaxed is None:
                continue
            kind = _FILTER_KINDS[reason]
            results.append(Suggestion(
                kind=kind,
                description=self._describe_admission(kind, course, occ, changes),
                courses=[course],
                days=[occ.day],
                changes=changes,
                impact=self._admitted(constraints, relaxed),
                verified=self._feasible(relaxed),
            ))
        return results

    def _admit_changes(self, constraints: ConstraintSet, occ: CourseOccurrence) -> dict[str, Any]:
        """Kleinste Änderung der Vorgaben, nach der occ belegbar ist."""
        changes: dict[str, Any] = {}
        current = constraints
        # Jeder Filter wird höchstens einmal gelockert
        for _ in range(len(FilterReason)):
            reason = CandidateEnumerator(current).reject_reason(occ)
            if reason is None:
                return changes
            step = self._relax_filter(current, occ, reason)
            changes.update(step)
            relaxed = self._apply(current, step)
            if relaxed is None:
                return {}
            current = relaxed
        return {}

    def _relax_filter(
        self, c: ConstraintSet, occ: CourseOccurrence, reason: FilterReason
    ) -> dict[str, Any]:
        day = occ.day
        if reason == FilterReason.DAY_BLOCKED:
            step: dict[str, Any] = {"blocked_days": _days(d for d in c.blocked_days if d != day)}
            if day not in c.allowed_days:
                step["allowed_days"] = _days([*c.allowed_days, day])
            return step
        if reason == FilterReason.DAY_NOT_ALLOWED:
            return {"allowed_days": _days([*c.allowed_days, day])}
        if reason in (FilterReason.DAY_CLOSED, FilterReason.SLOT_NOT_SELECTED):
            slots = {d.value: list(s) for d, s in c.per_day_time_slots.items()}
            slots[day.value] = sorted({*slots.get(day.value, []), occ.start_minute})
            return {"per_day_time_slots": slots}
        if reason == FilterReason.BEFORE_EARLIEST:
            return {"earliest_time": minutes_to_hours(occ.start_minute)}
        if reason == FilterReason.AFTER_LATEST:
            return {"latest_time": minutes_to_hours(occ.effective_end(c.course_duration_minutes))}
        return {"disable_pair_courses": False}

    def _describe_admission(
        self, kind: SuggestionKind, course: str, occ: CourseOccurrence, changes: dict[str, Any]
    ) -> str:
        when = f"{occ.day.long_name} {format_minutes(occ.start_minute)}"
        if kind == SuggestionKind.ADD_DAY:
            text = f"{occ.day.long_name} ({occ.day.value}) erlauben, dann ist '{course}' am {when} möglich"
        elif kind == SuggestionKind.ADD_TIME_SLOT:
            text = (
                f"Startzeit {format_minutes(occ.start_minute)} am {occ.day.long_name} hinzufügen "
                f"für '{course}'"
            )
        elif kind == SuggestionKind.WIDEN_TIME_WINDOW:
            parts = []
            if "earliest_time" in changes:
                parts.append(f"ab {format_minutes(round(changes['earliest_time'] * 60))}")
            if "latest_time" in changes:
                parts.append(f"bis {format_minutes(round(changes['latest_time'] * 60))}")
            text = f"Zeitfenster erweitern ({' '.join(parts)}) für '{course}' am {when}"
        else:
            text = f"Partnerkurse wieder zulassen: '{course}' am {when} ist nur mit Partner buchbar"
        extra = [k for k in changes if k not in _PRIMARY_FIELDS[kind]]
        if extra:
            text += f" (zusätzlich: {', '.join(extra)})"
        return text

    # ─── Schritte 2/3: Limits erhöhen ─────────────────────────────────────────

    def _raise_limit(
        self, constraints: ConstraintSet, field: str, kind: SuggestionKind, impact: int
    ) -> Optional[Suggestion]:
        current = getattr(constraints, field)
        for inc in range(1, self.settings.relax_attempts + 1):
            relaxed = self._apply(constraints, {field: current + inc})
            if relaxed is None or not self._feasible(relaxed):
                logger.info(f"  Lockerung {field}={current + inc}: weiterhin kein Plan")
                continue
            logger.info(f"  Lockerung {field}={current + inc}: Plan gefunden")
            if kind == SuggestionKind.RAISE_MAX_PER_DAY:
                text = f"Max. Kurse pro Tag von {current} auf {current + inc} erhöhen"
            else:
                text = f"Max. Lücke zwischen Kursen von {current} auf {current + inc} Kurslängen erhöhen"
            return Suggestion(
                kind=kind,
                description=text,
                courses=list(constraints.selected_courses),
                changes={field: current + inc},
                impact=impact,
                verified=True,
            )
        return None

    # ─── Schritt 4: Fallbacks ─────────────────────────────────────────────────

    def _fallbacks(self, constraints, selected, reports, stats: SearchStats) -> list[Suggestion]:
        results: list[Suggestion] = []

        for name in selected:
            k = constraints.multiplicity_for(name)
            if k > 1:
                s = self._reduce_multiplicity(
                    constraints, name, k - 1, impact=stats.rejections[RejectKind.SAME_COURSE_DAY]
                )
                if s.verified:
                    results.append(s)

        if constraints.no_duplicate_courses_per_day and stats.rejections[RejectKind.DUPLICATE_PER_DAY]:
            relaxed = self._apply(constraints, {"no_duplicate_courses_per_day": False})
            if relaxed is not None and self._feasible(relaxed):
                results.append(Suggestion(
                    kind=SuggestionKind.ALLOW_DUPLICATES,
                    description="Gleichen Kurs mehrmals am selben Tag erlauben",
                    courses=list(selected),
                    changes={"no_duplicate_courses_per_day": False},
                    impact=stats.rejections[RejectKind.DUPLICATE_PER_DAY],
                    verified=True,
                ))

        if constraints.prevent_overlaps and stats.rejections[RejectKind.OVERLAP]:
            relaxed = self._apply(constraints, {"prevent_overlaps": False})
            if relaxed is not None and self._feasible(relaxed):
                results.append(Suggestion(
                    kind=SuggestionKind.ALLOW_OVERLAPS,
                    description="Überschneidende Kurse erlauben",
                    courses=list(selected),
                    changes={"prevent_overlaps": False},
                    impact=stats.rejections[RejectKind.OVERLAP],
                    verified=True,
                ))

        # Kurs abwählen: Kurse mit wenigen Terminen zuerst
        order = sorted(selected, key=lambda n: (len(reports[n].candidates), selected.index(n)))
        for name in order:
            s = self._reduce_selection(constraints, name)
            if s.verified:
                results.append(s)
                break
        else:
            results.append(self._reduce_selection(constraints, order[0]))

        return results

    def _reduce_selection(self, constraints: ConstraintSet, course: str) -> Suggestion:
        remaining = [n for n in constraints.selected_courses if n != course]
        multiplicity = {n: k for n, k in constraints.multiplicity.items() if n != course}
        changes = {"selected_courses": remaining, "multiplicity": multiplicity}
        relaxed = self._apply(constraints, changes)
        verified = bool(remaining) and relaxed is not None and self._feasible(relaxed)
        return Suggestion(
            kind=SuggestionKind.REDUCE_SELECTION,
            description=f"Kurs '{course}' abwählen",
            courses=[course],
            changes=changes,
            impact=0,
            verified=verified,
        )

    def _reduce_multiplicity(
        self, constraints: ConstraintSet, course: str, target: int, impact: int = 0
    ) -> Suggestion:
        current = constraints.multiplicity_for(course)
        if target < 1:
            return self._reduce_selection(constraints, course)
        multiplicity = dict(constraints.multiplicity)
        multiplicity[course] = target
        changes = {"multiplicity": multiplicity}
        relaxed = self._apply(constraints, changes)
        group = self.groups[course]
        return Suggestion(
            kind=SuggestionKind.REDUCE_MULTIPLICITY,
            description=(
                f"'{course}' nur {target}x statt {current}x pro Woche belegen "
                f"(Termine an {group.distinct_day_count} Tagen: "
                f"{', '.join(d.value for d in group.days)})"
            ),
            courses=[course],
            days=list(group.days),
            changes=changes,
            impact=max(impact, current - target),
            verified=relaxed is not None and self._feasible(relaxed),
        )

    @staticmethod
    def _most_constrained(selected: list[str], reports) -> str:
        return min(selected, key=lambda n: (len(reports[n].candidates), selected.index(n)))

    # ─── Hilfen ───────────────────────────────────────────────────────────────

    def _candidates(self, constraints: ConstraintSet) -> Optional[dict[str, list[CourseOccurrence]]]:
        """Kandidaten pro Kurs oder None, wenn ein Kurs keine hat."""
        enumerator = CandidateEnumerator(constraints)
        result: dict[str, list[CourseOccurrence]] = {}
        for name in constraints.selected_courses:
            group = self.groups.get(name)
            occs = enumerator.enumerate(group) if group is not None else []
            if not occs:
                return None
            if constraints.multiplicity_for(name) > len({o.day for o in occs}):
                return None
            result[name] = occs
        return result

    def _feasible(self, constraints: ConstraintSet) -> bool:
        """True wenn mindestens ein Plan existiert."""
        if not constraints.selected_courses:
            return False
        candidates = self._candidates(constraints)
        if candidates is None:
            return False
        return bool(BacktrackingSearch(constraints, candidates).run(limit=1))

    def _diagnose(self, constraints: ConstraintSet) -> SearchStats:
        """Vollständige Suche, nur um die Verwerfungsgründe zu zählen."""
        candidates = self._candidates(constraints) or {}
        search = BacktrackingSearch(constraints, candidates)
        search.run(limit=1)
        return search.stats

    def _admitted(self, before: ConstraintSet, after: ConstraintSet) -> int:
        """Wie viele zusätzliche Termine der ausgewählten Kurse die Lockerung zulässt."""
        old, new = CandidateEnumerator(before), CandidateEnumerator(after)
        total = 0
        for name in before.selected_courses:
            group = self.groups.get(name)
            if group is not None:
                total += len(new.enumerate(group)) - len(old.enumerate(group))
        return max(total, 0)

    @staticmethod
    def _apply(constraints: ConstraintSet, changes: dict[str, Any]) -> Optional[ConstraintSet]:
        """Validierte Kopie oder None, wenn die Änderung die Vorgaben ungültig macht."""
        try:
            return constraints.with_changes(**changes)
        except ValidationError as e:
            logger.debug(f"Lockerung {changes} ungültig: {e}")
            return None

    def _finalize(self, suggestions: list[Suggestion]) -> list[Suggestion]:
        ordered = sorted(suggestions, key=lambda s: s.sort_key)
        unique: list[Suggestion] = []
        seen: set[str] = set()
        for s in ordered:
            key = f"{s.kind.value}|{s.description}"
            if key not in seen:
                seen.add(key)
                unique.append(s)
        result = unique[: self.settings.max_suggestions]
        for s in result:
            logger.info(f"Vorschlag [{s.kind.value}] {s.description} (impact={s.impact}, verified={s.verified})")
        return result
