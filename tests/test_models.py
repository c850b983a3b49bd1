"""Tests für die Datenmodelle (Pydantic v2): Termine, Katalog, Vorgaben, Pläne."""

import pytest
from pathlib import Path
from pydantic import ValidationError

from models.catalog import CourseCatalogIndex
from models.constraints import ConstraintSet
from models.exceptions import InvalidCatalog
from models.occurrence import CourseOccurrence
from models.schedule import ScheduleAssignment, ScheduledCourse, schedule_fingerprint
from models.timeslot import DAY_ORDER, DayCode, format_minutes, minutes_to_hours, parse_hhmm
from solver.planner import SchedulePlanner


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def occ(occ_id: str, name: str, day: str, start, **kwargs) -> CourseOccurrence:
    data = {"id": occ_id, "name": name, "day": day, "start": start}
    data.update(kwargs)
    return CourseOccurrence.from_raw(data)


def entry(o: CourseOccurrence, slot: int = 0) -> ScheduledCourse:
    return ScheduledCourse(course_name=o.group_name, slot_index=slot, occurrence=o)


# ─── Zeit ─────────────────────────────────────────────────────────────────────

class TestTimeslot:
    def test_parse_and_format(self):
        assert parse_hhmm("19:30") == 1170
        assert format_minutes(1170) == "19:30"
        assert minutes_to_hours(1170) == 19.5

    @pytest.mark.parametrize("value", ["24:00", "7", "19:60", ""])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)

    def test_day_order_and_names(self):
        assert [d.value for d in DAY_ORDER] == ["MO", "DI", "MI", "DO", "FR", "SA", "SO"]
        assert DayCode.MI.order == 2
        assert DayCode.SO.long_name == "Sonntag"


# ─── Termine ──────────────────────────────────────────────────────────────────

class TestCourseOccurrence:
    def test_from_raw_hhmm(self):
        o = occ("1", "Salsa", "mo", "19:00", end="20:10", level="1")
        assert o.day == DayCode.MO
        assert o.start_minute == 19 * 60
        assert o.end_minute == 20 * 60 + 10
        assert o.group_name == "Salsa (1)"
        assert o.base_name == "Salsa"

    def test_level_already_in_name(self):
        o = occ("1", "Salsa 1", "MO", "19:00", level="1")
        assert o.group_name == "Salsa 1"

    def test_effective_end_default_duration(self):
        o = CourseOccurrence.from_raw({"id": "1", "name": "Salsa", "day": "MO", "start_minute": 1140})
        assert o.end_minute is None
        assert o.effective_end(70) == 1210

    def test_from_raw_fractional_hours(self):
        o = occ("1", "Salsa", "MO", 19.5, end=20.5)
        assert o.start_minute == 19 * 60 + 30
        assert o.end_minute == 20 * 60 + 30

    def test_from_raw_whole_hours(self):
        """Ganze Zahlen unter start/end sind Stunden, keine Minuten."""
        o = occ("1", "Salsa", "MO", 19, end=20)
        assert o.start_minute == 19 * 60
        assert o.end_minute == 20 * 60

    def test_from_raw_minute_keys(self):
        o = CourseOccurrence.from_raw({
            "id": "1", "name": "Salsa", "day": "MO", "start_minute": 1170, "end_minute": 1240,
        })
        assert o.start_minute == 1170
        assert o.end_minute == 1240

    def test_hours_out_of_day_rejected(self):
        with pytest.raises(InvalidCatalog):
            occ("1", "Salsa", "MO", 1140)

    def test_whole_hours_pass_time_window(self):
        planner = SchedulePlanner()
        planner.initialize([{"id": "1", "name": "Salsa", "day": "MO", "start": 19, "end": 20}])
        result = planner.generate_schedules(
            ConstraintSet(selected_courses=["Salsa"], earliest_time=18)
        )
        assert len(result) == 1

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidCatalog) as exc:
            occ("7", "Salsa", "MO", "20:00", end="19:00")
        assert exc.value.occurrence_id == "7"

    def test_missing_id_rejected(self):
        with pytest.raises(InvalidCatalog):
            CourseOccurrence.from_raw({"name": "Salsa", "day": "MO", "start": "19:00"})

    def test_bad_time_rejected(self):
        with pytest.raises(InvalidCatalog):
            occ("1", "Salsa", "MO", "abends")

    def test_unknown_day_rejected(self):
        with pytest.raises(InvalidCatalog):
            occ("1", "Salsa", "XX", "19:00")

    def test_frozen(self):
        o = occ("1", "Salsa", "MO", "19:00")
        with pytest.raises(ValidationError):
            o.start_minute = 0


# ─── Katalog ──────────────────────────────────────────────────────────────────

class TestCatalog:
    def test_grouping_keeps_first_appearance_order(self):
        index = CourseCatalogIndex([
            occ("1", "Tango", "DO", "20:00"),
            occ("2", "Salsa", "MO", "19:00"),
            occ("3", "Tango", "MO", "18:00"),
        ])
        assert index.names() == ["Tango", "Salsa"]
        assert [o.id for o in index.get("Tango").occurrences] == ["1", "3"]
        assert index.get("Tango").days == [DayCode.MO, DayCode.DO]
        assert index.get("Tango").distinct_day_count == 2

    def test_accepts_raw_dicts(self):
        index = CourseCatalogIndex([{"id": "1", "name": "Salsa", "day": "MO", "start": "19:00"}])
        assert "Salsa" in index
        assert index.occurrence("1").name == "Salsa"

    def test_pair_only_group(self):
        index = CourseCatalogIndex([
            occ("1", "Discofox", "DI", "20:00", pair_only=True),
            occ("2", "Discofox", "FR", "19:00", pair_only=True),
        ])
        assert index.get("Discofox").pair_only is True

    def test_filter_location(self):
        index = CourseCatalogIndex([
            occ("1", "Salsa", "MO", "19:00", location="Mitte"),
            occ("2", "Tango", "MO", "19:00", location="Süd"),
        ])
        assert index.locations() == ["Mitte", "Süd"]
        assert index.filter_location("Süd").names() == ["Tango"]
        assert len(index.filter_location(None)) == 2


# ─── Vorgaben ─────────────────────────────────────────────────────────────────

class TestConstraintSet:
    def test_defaults(self):
        c = ConstraintSet()
        assert c.allowed_days == DAY_ORDER
        assert c.max_courses_per_day == 3
        assert c.max_time_between_courses == 0
        assert c.no_duplicate_courses_per_day is True
        assert c.prevent_overlaps is True
        assert c.disable_pair_courses is False
        assert c.course_duration_minutes == 70

    def test_effective_days(self):
        c = ConstraintSet(allowed_days=["fr", "mo"], blocked_days=["FR"])
        assert c.effective_days() == [DayCode.MO]

    def test_duplicate_selection_rejected(self):
        with pytest.raises(ValidationError):
            ConstraintSet(selected_courses=["Salsa", "Salsa"])

    def test_multiplicity_must_be_positive(self):
        with pytest.raises(ValidationError):
            ConstraintSet(multiplicity={"Salsa": 0})

    def test_window_order(self):
        with pytest.raises(ValidationError):
            ConstraintSet(earliest_time=21.0, latest_time=19.0)

    def test_per_day_slots_from_strings(self):
        c = ConstraintSet(per_day_time_slots={"mi": ["19:00", "20:10"]})
        assert c.per_day_time_slots == {DayCode.MI: [1140, 1210]}

    def test_from_time_strings(self):
        c = ConstraintSet.from_time_strings("18:30", "22:00")
        assert c.earliest_time == 18.5
        assert c.earliest_minute == 1110
        assert c.latest_minute == 1320

    def test_required_units_and_with_changes(self):
        c = ConstraintSet(selected_courses=["A", "B"], multiplicity={"A": 2})
        assert c.required_units == 3
        changed = c.with_changes(max_courses_per_day=None)
        assert changed.max_courses_per_day is None
        assert c.max_courses_per_day == 3


# ─── Pläne ────────────────────────────────────────────────────────────────────

class TestScheduleAssignment:
    def test_fingerprint_order_independent(self):
        a, b = occ("1", "Salsa", "MI", "19:00"), occ("2", "Tango", "MO", "20:00")
        first = ScheduleAssignment(entries=(entry(a), entry(b)))
        second = ScheduleAssignment(entries=(entry(b), entry(a)))
        assert first.fingerprint == second.fingerprint
        assert first.fingerprint == "Salsa|MI|1140||Tango|MO|1200"

    def test_fingerprint_empty(self):
        assert schedule_fingerprint([]) == "empty"

    def test_by_day_in_week_order(self):
        a, b = occ("1", "Salsa", "MI", "19:00"), occ("2", "Tango", "MO", "20:00")
        plan = ScheduleAssignment(entries=(entry(a), entry(b)))
        assert list(plan.by_day()) == [DayCode.MO, DayCode.MI]
        assert plan.days_used == 2
        assert [e.course_name for e in plan.sorted_entries()] == ["Tango", "Salsa"]

    def test_json_roundtrip(self, tmp_path: Path):
        plan = ScheduleAssignment(entries=(entry(occ("1", "Salsa", "MI", "19:00")),))
        path = tmp_path / "plan.json"
        plan.save_json(path)
        loaded = ScheduleAssignment.load_json(path)
        assert loaded.fingerprint == plan.fingerprint
