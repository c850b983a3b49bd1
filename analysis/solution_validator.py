"""Nachträgliche Validierung fertiger Wochenpläne.

Prüft einen Plan auf Verletzungen der Vorgaben als Sicherheitsnetz
unabhängig von der Suche.
"""

from collections import defaultdict
from typing import Literal, Optional

from pydantic import BaseModel

from models.catalog import CourseCatalogIndex
from models.constraints import ConstraintSet
from models.schedule import ScheduleAssignment, ScheduledCourse
from models.timeslot import format_minutes
from solver.candidates import CandidateEnumerator


class ValidationViolation(BaseModel):
    """Eine einzelne Verletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "overlap"
    description: str
    entity: str          # Kursname oder Tag


class ValidationReport(BaseModel):
    """Ergebnis der Validierung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(errors)} | Warnungen: {len(warnings)}"]
        console.print(Panel("\n".join(lines), title="Plan-Validierung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Regel", width=24)
        table.add_column("Betrifft", width=20)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class SolutionValidator:
    """Prüft einen fertigen ScheduleAssignment gegen ConstraintSet und Katalog."""

    def validate(
        self,
        assignment: ScheduleAssignment,
        constraints: ConstraintSet,
        catalog: Optional[CourseCatalogIndex] = None,
    ) -> ValidationReport:
        """Führt alle Prüfungen durch und gibt einen ValidationReport zurück."""
        violations: list[ValidationViolation] = []

        if catalog is not None:
            violations.extend(self._check_catalog(assignment, catalog))
        violations.extend(self._check_unique_occurrences(assignment))
        violations.extend(self._check_multiplicity(assignment, constraints))
        violations.extend(self._check_filters(assignment, constraints))
        violations.extend(self._check_overlaps(assignment, constraints))
        violations.extend(self._check_duplicates(assignment, constraints))
        violations.extend(self._check_max_per_day(assignment, constraints))
        violations.extend(self._check_max_gap(assignment, constraints))
        violations.extend(self._check_registered(assignment))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_catalog(
        self, assignment: ScheduleAssignment, catalog: CourseCatalogIndex
    ) -> list[ValidationViolation]:
        """Jeder Termin stammt aus dem Katalog und gehört zum angegebenen Kurs."""
        violations: list[ValidationViolation] = []
        for e in assignment.entries:
            known = catalog.occurrence(e.occurrence.id)
            if known is None:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="unknown_occurrence",
                    entity=e.course_name,
                    description=f"Termin '{e.occurrence.id}' ist nicht im Katalog.",
                ))
            elif known.group_name != e.course_name:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="wrong_course",
                    entity=e.course_name,
                    description=(
                        f"Termin '{e.occurrence.id}' gehört zu '{known.group_name}'."
                    ),
                ))
        return violations

    def _check_unique_occurrences(
        self, assignment: ScheduleAssignment
    ) -> list[ValidationViolation]:
        """Kein Termin darf zweimal belegt sein."""
        counts: dict[str, int] = defaultdict(int)
        for e in assignment.entries:
            counts[e.occurrence.id] += 1
        return [
            ValidationViolation(
                severity="error",
                constraint="occurrence_reused",
                entity=occ_id,
                description=f"Termin '{occ_id}' ist {n}x belegt.",
            )
            for occ_id, n in counts.items() if n > 1
        ]

    def _check_multiplicity(
        self, assignment: ScheduleAssignment, constraints: ConstraintSet
    ) -> list[ValidationViolation]:
        """Jeder gewählte Kurs genau k-mal, an k verschiedenen Tagen; nichts Fremdes."""
        violations: list[ValidationViolation] = []
        selected = set(constraints.selected_courses)

        for name in constraints.selected_courses:
            k = constraints.multiplicity_for(name)
            entries = assignment.courses(name)
            days = {e.occurrence.day for e in entries}
            if len(entries) != k:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="multiplicity",
                    entity=name,
                    description=f"{len(entries)} statt {k} Termin(e) belegt.",
                ))
            elif len(days) != k:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="multiplicity_days",
                    entity=name,
                    description=f"{k} Termine, aber nur an {len(days)} verschiedenen Tagen.",
                ))

        for e in assignment.entries:
            if e.course_name not in selected:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="not_selected",
                    entity=e.course_name,
                    description="Kurs ist nicht ausgewählt.",
                ))
        return violations

    def _check_filters(
        self, assignment: ScheduleAssignment, constraints: ConstraintSet
    ) -> list[ValidationViolation]:
        """Tag, Zeitfenster und Partnerkurs-Regel für jeden Termin."""
        enumerator = CandidateEnumerator(constraints)
        violations: list[ValidationViolation] = []
        for e in assignment.entries:
            reason = enumerator.reject_reason(e.occurrence)
            if reason is not None:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint=reason.value,
                    entity=e.course_name,
                    description=f"{_when(e)} ist laut Vorgaben nicht belegbar.",
                ))
        return violations

    def _check_overlaps(
        self, assignment: ScheduleAssignment, constraints: ConstraintSet
    ) -> list[ValidationViolation]:
        """Keine zeitlichen Überschneidungen am selben Tag (halboffene Intervalle)."""
        if not constraints.prevent_overlaps:
            return []
        duration = constraints.course_duration_minutes
        violations: list[ValidationViolation] = []
        for day, entries in assignment.by_day().items():
            for i, a in enumerate(entries):
                for b in entries[i + 1:]:
                    a_end = a.occurrence.effective_end(duration)
                    b_end = b.occurrence.effective_end(duration)
                    if a.occurrence.start_minute < b_end and b.occurrence.start_minute < a_end:
                        violations.append(ValidationViolation(
                            severity="error",
                            constraint="overlap",
                            entity=day.value,
                            description=f"'{a.course_name}' überschneidet sich mit '{b.course_name}'.",
                        ))
        return violations

    def _check_duplicates(
        self, assignment: ScheduleAssignment, constraints: ConstraintSet
    ) -> list[ValidationViolation]:
        """Gleicher Kursname nicht zweimal am selben Tag."""
        if not constraints.no_duplicate_courses_per_day:
            return []
        violations: list[ValidationViolation] = []
        for day, entries in assignment.by_day().items():
            names: dict[str, int] = defaultdict(int)
            for e in entries:
                names[e.occurrence.base_name] += 1
            for name, n in names.items():
                if n > 1:
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="duplicate_per_day",
                        entity=day.value,
                        description=f"'{name}' liegt {n}x am {day.long_name}.",
                    ))
        return violations

    def _check_max_per_day(
        self, assignment: ScheduleAssignment, constraints: ConstraintSet
    ) -> list[ValidationViolation]:
        limit = constraints.max_courses_per_day
        if limit is None:
            return []
        return [
            ValidationViolation(
                severity="error",
                constraint="max_per_day",
                entity=day.value,
                description=f"{len(entries)} Kurse am {day.long_name} (max. {limit}).",
            )
            for day, entries in assignment.by_day().items() if len(entries) > limit
        ]

    def _check_max_gap(
        self, assignment: ScheduleAssignment, constraints: ConstraintSet
    ) -> list[ValidationViolation]:
        """Lücken zwischen Kursen eines Tages in Kurslängen ≤ max_time_between_courses."""
        limit = constraints.max_time_between_courses
        if limit <= 0:
            return []
        duration = constraints.course_duration_minutes
        violations: list[ValidationViolation] = []
        for day, entries in assignment.by_day().items():
            latest_end = None
            for e in entries:
                if latest_end is not None:
                    gap = e.occurrence.start_minute - latest_end
                    if gap > 0 and gap // duration > limit:
                        violations.append(ValidationViolation(
                            severity="error",
                            constraint="max_gap",
                            entity=day.value,
                            description=(
                                f"{gap} min Lücke vor '{e.course_name}' "
                                f"({gap // duration} Kurslängen, max. {limit})."
                            ),
                        ))
                end = e.occurrence.effective_end(duration)
                latest_end = end if latest_end is None else max(latest_end, end)
        return violations

    def _check_registered(self, assignment: ScheduleAssignment) -> list[ValidationViolation]:
        """Hinweis auf Termine, für die bereits eine Buchung existiert."""
        return [
            ValidationViolation(
                severity="warning",
                constraint="already_registered",
                entity=e.course_name,
                description=f"{_when(e)} ist bereits gebucht.",
            )
            for e in assignment.entries if e.occurrence.registered
        ]


def _when(entry: ScheduledCourse) -> str:
    occ = entry.occurrence
    return f"{occ.day.long_name} {format_minutes(occ.start_minute)}"
