"""Tests für den Export: Terminal-Raster und Excel (openpyxl)."""

from pathlib import Path

import openpyxl

from export.excel_export import ExcelExporter
from export.helpers import COURSE_PALETTE, get_course_color, start_times, week_days
from export.tui_renderer import render_list_rows, render_suggestion_rows, render_week_rows
from models.constraints import ConstraintSet
from models.occurrence import CourseOccurrence
from models.schedule import ScheduleAssignment, ScheduledCourse
from models.suggestion import Suggestion, SuggestionKind
from models.timeslot import DayCode


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def occ(occ_id: str, name: str, day: str, start: str, **kwargs) -> CourseOccurrence:
    data = {"id": occ_id, "name": name, "day": day, "start": start}
    data.update(kwargs)
    return CourseOccurrence.from_raw(data)


def sample_plan() -> ScheduleAssignment:
    entries = (
        occ("1", "Salsa", "MI", "19:00", location="Mitte"),
        occ("2", "Bachata", "MO", "19:00"),
        occ("3", "Discofox", "MO", "20:10", pair_only=True),
    )
    return ScheduleAssignment(entries=tuple(
        ScheduledCourse(course_name=o.group_name, slot_index=0, occurrence=o) for o in entries
    ))


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

class TestHelpers:
    def test_course_color_stable(self):
        assert get_course_color("Salsa (1)") == get_course_color("Salsa (1)")
        assert get_course_color("Salsa (1)") in COURSE_PALETTE

    def test_start_times_sorted(self):
        assert start_times(sample_plan()) == [19 * 60, 20 * 60 + 10]

    def test_week_days(self):
        plan = sample_plan()
        assert len(week_days(plan)) == 7
        assert week_days(plan, all_days=False) == [DayCode.MO, DayCode.MI]


# ─── Terminal-Raster ──────────────────────────────────────────────────────────

class TestTuiRenderer:
    def test_week_rows_full_week(self):
        header, rows = render_week_rows(sample_plan(), duration=70)
        assert header == ["Beginn", "MO", "DI", "MI", "DO", "FR", "SA", "SO"]
        assert len(rows) == 2
        first = rows[0]
        assert first[0] == "19:00"
        assert first[1].startswith("Bachata")
        assert first[2] == "—"
        assert "Salsa" in first[3]
        assert "nur mit Partner" in rows[1][1]

    def test_week_rows_used_days_only(self):
        header, rows = render_week_rows(sample_plan(), all_days=False)
        assert header == ["Beginn", "MO", "MI"]
        assert all(len(r) == 3 for r in rows)

    def test_list_rows_week_order(self):
        rows = render_list_rows(sample_plan())
        assert [r[0] for r in rows] == ["MO", "MO", "MI"]
        assert rows[0][1] == "19:00–20:10"
        assert rows[1][4] == "Partner"
        assert rows[2][3] == "Mitte"

    def test_suggestion_rows(self):
        rows = render_suggestion_rows([
            Suggestion(kind=SuggestionKind.ADD_DAY, description="Samstag erlauben", verified=True),
        ])
        assert rows == [["1", "add-day", "Samstag erlauben", "✓"]]


# ─── Excel ────────────────────────────────────────────────────────────────────

class TestExcelExport:
    def test_sheets_created(self, tmp_path: Path):
        out = tmp_path / "plaene.xlsx"
        constraints = ConstraintSet(selected_courses=["Salsa", "Bachata", "Discofox"])
        count = ExcelExporter([sample_plan()], constraints).export(out)

        assert count == 1
        wb = openpyxl.load_workbook(out)
        assert wb.sheetnames == ["Übersicht", "Plan 1"]
        ws = wb["Plan 1"]
        assert ws.cell(row=1, column=1).value == "Beginn"
        assert ws.cell(row=1, column=2).value == "Montag"
        assert ws.cell(row=2, column=1).value == "19:00"
        assert ws.cell(row=2, column=2).value.startswith("Bachata")
        assert ws.cell(row=2, column=3).value is None

    def test_overview_lists_all_plans(self, tmp_path: Path):
        out = tmp_path / "plaene.xlsx"
        plans = [sample_plan(), sample_plan()]
        count = ExcelExporter(plans, school_name="Tanzhaus").export(out, limit=1)

        assert count == 1
        wb = openpyxl.load_workbook(out)
        ws = wb["Übersicht"]
        assert "Tanzhaus" in ws.cell(row=1, column=1).value
        assert ws.cell(row=6, column=1).value == "Plan"
        assert ws.cell(row=7, column=1).value == 1
        assert ws.cell(row=8, column=1).value == 2
        assert wb.sheetnames == ["Übersicht", "Plan 1"]

    def test_empty_result(self, tmp_path: Path):
        out = tmp_path / "leer.xlsx"
        assert ExcelExporter([]).export(out) == 0
        ws = openpyxl.load_workbook(out)["Übersicht"]
        assert ws.cell(row=7, column=1).value == "Keine gültigen Pläne gefunden."
