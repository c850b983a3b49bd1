"""Kennzahlen für fertige Wochenpläne.

Pro Plan: belegte Tage, größte Lücke, Kurse am vollsten Tag und ein
Kompaktheits-Score. Die Reihenfolge der Suche bleibt davon unberührt;
rank_by_compactness() ist nur eine alternative Darstellung.
"""

from pydantic import BaseModel

from models.schedule import ScheduleAssignment


# ─── Metriken-Modelle ─────────────────────────────────────────────────────────

class ScheduleStats(BaseModel):
    """Kennzahlen eines einzelnen Plans."""

    fingerprint: str
    days: int                        # Anzahl belegter Tage
    max_gap_hours: float             # Größte Lücke (Beginn → Beginn), in ganzen Kurslängen
    courses_on_busiest_day: int
    courses_per_day: dict[str, int]  # "MO" → Anzahl
    score: float                     # days·2 + max_gap − busiest·2


class QualitySummary(BaseModel):
    """Zusammenfassung über alle Pläne einer Berechnung."""

    schedule_count: int
    min_days: int
    max_days: int
    best_score: float
    worst_score: float
    avg_score: float


# ─── Analyzer ─────────────────────────────────────────────────────────────────

class QualityAnalyzer:
    """Berechnet Kennzahlen für Pläne."""

    def __init__(self, course_duration_minutes: int = 70) -> None:
        self.duration = course_duration_minutes

    def analyze(self, assignment: ScheduleAssignment) -> ScheduleStats:
        """Kennzahlen für einen Plan."""
        by_day = assignment.by_day()
        max_gap = 0.0
        for entries in by_day.values():
            starts = sorted(e.occurrence.start_minute for e in entries)
            for prev, nxt in zip(starts, starts[1:]):
                # Lücke auf ganze Kurslängen abgerundet
                gap_slots = (nxt - prev) // self.duration
                max_gap = max(max_gap, gap_slots * self.duration / 60)

        per_day = {day.value: len(entries) for day, entries in by_day.items()}
        busiest = max(per_day.values(), default=0)
        score = len(by_day) * 2 + max_gap - busiest * 2

        return ScheduleStats(
            fingerprint=assignment.fingerprint,
            days=len(by_day),
            max_gap_hours=round(max_gap, 2),
            courses_on_busiest_day=busiest,
            courses_per_day=per_day,
            score=round(score, 2),
        )

    def summarize(self, assignments: list[ScheduleAssignment]) -> QualitySummary:
        stats = [self.analyze(a) for a in assignments]
        if not stats:
            return QualitySummary(
                schedule_count=0, min_days=0, max_days=0,
                best_score=0.0, worst_score=0.0, avg_score=0.0,
            )
        scores = [s.score for s in stats]
        return QualitySummary(
            schedule_count=len(stats),
            min_days=min(s.days for s in stats),
            max_days=max(s.days for s in stats),
            best_score=min(scores),
            worst_score=max(scores),
            avg_score=round(sum(scores) / len(scores), 2),
        )

    def rank_by_compactness(
        self, assignments: list[ScheduleAssignment]
    ) -> list[tuple[ScheduleAssignment, ScheduleStats]]:
        """Pläne nach Score aufsteigend (kompakt zuerst); stabil bei Gleichstand."""
        pairs = [(a, self.analyze(a)) for a in assignments]
        return sorted(pairs, key=lambda p: p[1].score)

    def print_rich(self, assignments: list[ScheduleAssignment], limit: int = 10) -> None:
        """Gibt die Kennzahlen formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        summary = self.summarize(assignments)
        console.print(Panel(
            f"Pläne: [bold]{summary.schedule_count}[/bold] | "
            f"Tage: {summary.min_days}–{summary.max_days}\n"
            f"Score: bester [green]{summary.best_score:.2f}[/green] | "
            f"Ø {summary.avg_score:.2f} | "
            f"schlechtester [red]{summary.worst_score:.2f}[/red] "
            f"(kleiner = kompakter)",
            title="Kennzahlen – Übersicht",
            border_style="cyan",
        ))

        table = Table(title="Kompakteste Pläne", box=box.ROUNDED, show_lines=False)
        table.add_column("#", justify="right", width=4)
        table.add_column("Tage", justify="right", width=5)
        table.add_column("Max. Lücke (h)", justify="right", width=14)
        table.add_column("Vollster Tag", justify="right", width=12)
        table.add_column("Score", justify="right", width=7)

        for i, (_, s) in enumerate(self.rank_by_compactness(assignments)[:limit], 1):
            table.add_row(
                str(i), str(s.days), f"{s.max_gap_hours:.2f}",
                str(s.courses_on_busiest_day), f"{s.score:.2f}",
            )
        console.print(table)
