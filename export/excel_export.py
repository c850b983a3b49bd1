"""Excel-Export für berechnete Wochenpläne (openpyxl)."""

from collections import defaultdict
from pathlib import Path
from typing import Optional

from analysis.quality_report import QualityAnalyzer
from models.constraints import ConstraintSet
from models.schedule import ScheduleAssignment, ScheduledCourse
from models.timeslot import DAY_ORDER, format_minutes

from export.helpers import COLORS, format_entry, get_course_color, start_times, today_str


class ExcelExporter:
    """Exportiert eine Liste von Wochenplänen: Übersicht + ein Blatt pro Plan."""

    # Spaltenbreiten (Excel-Einheiten)
    COL_ZEIT_W = 10
    COL_DAY_W  = 22

    # Zeilenhöhen (Punkte)
    ROW_HEADER_H = 22
    ROW_COURSE_H = 48

    # Excel begrenzt Arbeitsmappen nicht, aber sehr viele Blätter sind unbrauchbar
    MAX_PLAN_SHEETS = 50

    def __init__(
        self,
        schedules: list[ScheduleAssignment],
        constraints: Optional[ConstraintSet] = None,
        school_name: str = "Tanzschule",
    ):
        self.schedules   = list(schedules)
        self.constraints = constraints or ConstraintSet()
        self.school_name = school_name
        self.duration    = self.constraints.course_duration_minutes
        self.analyzer    = QualityAnalyzer(self.duration)

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path, limit: Optional[int] = None) -> int:
        """Erstellt die Excel-Datei; gibt die Anzahl der Planblätter zurück."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        self._sheet_uebersicht(wb)

        count = min(len(self.schedules), limit or self.MAX_PLAN_SHEETS)
        for i, assignment in enumerate(self.schedules[:count], 1):
            self._sheet_plan(wb, i, assignment)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        return count

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _setup_sheet(self, ws) -> None:
        """Setzt Spaltenbreiten für ein Planblatt."""
        from openpyxl.utils import get_column_letter
        ws.column_dimensions["A"].width = self.COL_ZEIT_W
        for col in range(2, 2 + len(DAY_ORDER)):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_DAY_W

    def _write_header_row(self, ws, headers: list[str], row: int = 1) -> None:
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    def _cell_color(self, entries: list[ScheduledCourse]) -> str:
        if not entries:
            return COLORS["free"]
        e = entries[0]
        if e.occurrence.pair_only:
            return COLORS["pair_only"]
        return get_course_color(e.course_name)

    # ─── Sheet: Übersicht ─────────────────────────────────────────────────────

    def _sheet_uebersicht(self, wb) -> None:
        from openpyxl.styles import Font

        ws = wb.create_sheet(title="Übersicht")
        ws.cell(row=1, column=1, value=f"{self.school_name} – Wochenpläne").font = Font(bold=True, size=13)
        ws.cell(row=2, column=1, value=f"Erstellt: {today_str()}")

        c = self.constraints
        ws.cell(row=3, column=1, value="Kurse:").font = Font(bold=True)
        ws.cell(row=3, column=2, value=", ".join(
            f"{n} ×{c.multiplicity_for(n)}" if c.multiplicity_for(n) > 1 else n
            for n in c.selected_courses
        ) or "–")
        ws.cell(row=4, column=1, value="Tage:").font = Font(bold=True)
        ws.cell(row=4, column=2, value=", ".join(d.value for d in c.effective_days()))

        row = 6
        headers = ["Plan", "Tage", "Max. Lücke (h)", "Vollster Tag", "Score", "Termine"]
        self._write_header_row(ws, headers, row=row)
        row += 1

        border = self._thin_border()
        for i, assignment in enumerate(self.schedules, 1):
            s = self.analyzer.analyze(assignment)
            values = [
                i, s.days, s.max_gap_hours, s.courses_on_busiest_day, s.score,
                "; ".join(e.occurrence.label for e in assignment.sorted_entries()),
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=row, column=col, value=value).border = border
            row += 1

        if not self.schedules:
            ws.cell(row=row, column=1, value="Keine gültigen Pläne gefunden.")

        ws.column_dimensions["A"].width = 10
        ws.column_dimensions["B"].width = 8
        ws.column_dimensions["C"].width = 14
        ws.column_dimensions["D"].width = 12
        ws.column_dimensions["E"].width = 8
        ws.column_dimensions["F"].width = 90

    # ─── Sheet: Plan ──────────────────────────────────────────────────────────

    def _sheet_plan(self, wb, number: int, assignment: ScheduleAssignment) -> None:
        from openpyxl.styles import Font

        ws = wb.create_sheet(title=f"Plan {number}"[:31])
        self._setup_sheet(ws)
        self._write_header_row(ws, ["Beginn"] + [d.long_name for d in DAY_ORDER])

        grid: dict[tuple, list[ScheduledCourse]] = defaultdict(list)
        for e in assignment.entries:
            grid[(e.occurrence.day, e.occurrence.start_minute)].append(e)

        border = self._thin_border()
        row = 2
        for start in start_times(assignment):
            ws.cell(row=row, column=1, value=format_minutes(start)).border = border
            for col, day in enumerate(DAY_ORDER, 2):
                here = grid.get((day, start), [])
                text = "\n".join(format_entry(e, self.duration, with_location=True) for e in here)
                cell = ws.cell(row=row, column=col, value=text or None)
                cell.fill = self._fill(self._cell_color(here))
                cell.alignment = self._center_align()
                cell.border = border
            ws.row_dimensions[row].height = self.ROW_COURSE_H
            row += 1

        stats = self.analyzer.analyze(assignment)
        row += 1
        ws.cell(row=row, column=1, value="Tage:").font = Font(bold=True)
        ws.cell(row=row, column=2, value=stats.days)
        ws.cell(row=row, column=3, value="Max. Lücke (h):").font = Font(bold=True)
        ws.cell(row=row, column=4, value=stats.max_gap_hours)
        ws.cell(row=row, column=5, value="Score:").font = Font(bold=True)
        ws.cell(row=row, column=6, value=stats.score)
