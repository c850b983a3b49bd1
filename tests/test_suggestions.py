"""Tests für die Lockerungs-Vorschläge bei unlösbaren Vorgaben."""

from config.schema import SolverSettings
from models.constraints import ConstraintSet
from models.occurrence import CourseOccurrence
from models.suggestion import Suggestion, SuggestionKind
from models.timeslot import DayCode
from solver.planner import SchedulePlanner


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def occ(occ_id: str, name: str, day: str, start: str, **kwargs) -> CourseOccurrence:
    data = {"id": occ_id, "name": name, "day": day, "start": start}
    data.update(kwargs)
    return CourseOccurrence.from_raw(data)


def make_planner(catalog, **settings) -> SchedulePlanner:
    planner = SchedulePlanner(SolverSettings(**settings))
    planner.initialize(catalog)
    return planner


def kinds(suggestions: list[Suggestion]) -> list[SuggestionKind]:
    return [s.kind for s in suggestions]


# ─── Filter-Lockerungen ───────────────────────────────────────────────────────

class TestFilterSuggestions:
    def test_blocked_day_suggests_add_day(self):
        planner = make_planner([occ("1", "Tango", "DO", "20:00")])
        c = ConstraintSet(selected_courses=["Tango"], blocked_days=["DO"])
        suggestions = planner.suggest_relaxations(c)
        add_day = next(s for s in suggestions if s.kind == SuggestionKind.ADD_DAY)
        assert add_day.days == [DayCode.DO]
        assert add_day.changes == {"blocked_days": []}
        assert add_day.verified is True
        assert "Donnerstag" in add_day.description

    def test_day_not_allowed_adds_day(self):
        planner = make_planner([occ("1", "Tango", "SA", "15:00")])
        c = ConstraintSet(selected_courses=["Tango"], allowed_days=["MO", "DI"])
        s = planner.suggest_relaxations(c)[0]
        assert s.kind == SuggestionKind.ADD_DAY
        assert s.changes == {"allowed_days": ["MO", "DI", "SA"]}

    def test_time_window_widened(self):
        planner = make_planner([occ("1", "Tango", "MO", "17:00")])
        c = ConstraintSet(selected_courses=["Tango"], earliest_time=18.0)
        s = planner.suggest_relaxations(c)[0]
        assert s.kind == SuggestionKind.WIDEN_TIME_WINDOW
        assert s.changes == {"earliest_time": 17.0}
        assert "ab 17:00" in s.description

    def test_closed_day_adds_time_slot(self):
        planner = make_planner([occ("1", "Tango", "MO", "19:00")])
        c = ConstraintSet(selected_courses=["Tango"], per_day_time_slots={"MO": []})
        s = planner.suggest_relaxations(c)[0]
        assert s.kind == SuggestionKind.ADD_TIME_SLOT
        assert s.changes == {"per_day_time_slots": {"MO": [19 * 60]}}
        assert s.verified is True

    def test_several_filters_relaxed_together(self):
        """Ein Termin, der an zwei Filtern scheitert, braucht beide Lockerungen."""
        planner = make_planner([occ("1", "Discofox", "SA", "15:00", pair_only=True)])
        c = ConstraintSet(selected_courses=["Discofox"], blocked_days=["SA"], disable_pair_courses=True)
        s = next(s for s in planner.suggest_relaxations(c) if s.kind == SuggestionKind.ADD_DAY)
        assert s.changes["disable_pair_courses"] is False
        assert s.verified is True
        assert "zusätzlich" in s.description

    def test_impact_counts_admitted_occurrences(self):
        """Mehr zugelassene Termine → höherer impact → weiter vorne."""
        catalog = [
            occ("1", "Tango", "SA", "15:00"),
            occ("2", "Tango", "SO", "15:00"),
            occ("3", "Tango", "SO", "17:00"),
        ]
        planner = make_planner(catalog)
        c = ConstraintSet(selected_courses=["Tango"], blocked_days=["SA", "SO"])
        suggestions = planner.suggest_relaxations(c)
        assert suggestions[0].days == [DayCode.SO]
        assert suggestions[0].impact == 2

    def test_empty_course_also_offers_deselection(self):
        catalog = [occ("1", "Tango", "DO", "20:00"), occ("2", "Salsa", "MO", "19:00")]
        planner = make_planner(catalog)
        c = ConstraintSet(selected_courses=["Tango", "Salsa"], blocked_days=["DO"])
        reduce = next(s for s in planner.suggest_relaxations(c) if s.kind == SuggestionKind.REDUCE_SELECTION)
        assert reduce.courses == ["Tango"]
        assert reduce.changes["selected_courses"] == ["Salsa"]
        assert reduce.verified is True


# ─── Such-Lockerungen ─────────────────────────────────────────────────────────

class TestSearchSuggestions:
    def test_max_per_day_raised(self):
        catalog = [
            occ("1", "Salsa", "MO", "18:00"),
            occ("2", "Tango", "MO", "19:10"),
            occ("3", "Walzer", "MO", "20:20"),
        ]
        planner = make_planner(catalog)
        c = ConstraintSet(selected_courses=["Salsa", "Tango", "Walzer"], max_courses_per_day=1)
        suggestions = planner.suggest_relaxations(c)
        assert suggestions[0].kind == SuggestionKind.RAISE_MAX_PER_DAY
        assert suggestions[0].changes == {"max_courses_per_day": 3}
        assert suggestions[0].verified is True

    def test_relax_attempts_limit(self):
        """Reicht +relax_attempts nicht, gibt es keinen Tageslimit-Vorschlag."""
        catalog = [
            occ("1", "Salsa", "MO", "18:00"),
            occ("2", "Tango", "MO", "19:10"),
            occ("3", "Walzer", "MO", "20:20"),
        ]
        planner = make_planner(catalog, relax_attempts=1)
        c = ConstraintSet(selected_courses=["Salsa", "Tango", "Walzer"], max_courses_per_day=1)
        suggestions = planner.suggest_relaxations(c)
        assert SuggestionKind.RAISE_MAX_PER_DAY not in kinds(suggestions)
        assert SuggestionKind.REDUCE_SELECTION in kinds(suggestions)

    def test_overlap_fallbacks(self):
        catalog = [occ("1", "Salsa", "MO", "19:00"), occ("2", "Bachata", "MO", "19:30")]
        planner = make_planner(catalog)
        c = ConstraintSet(selected_courses=["Salsa", "Bachata"])
        suggestions = planner.suggest_relaxations(c)
        assert SuggestionKind.ALLOW_OVERLAPS in kinds(suggestions)
        assert SuggestionKind.REDUCE_SELECTION in kinds(suggestions)
        assert all(s.verified for s in suggestions)

    def test_reduce_multiplicity_fallback(self):
        catalog = [
            occ("1", "Salsa", "MO", "19:00"),
            occ("2", "Salsa", "MI", "19:00"),
            occ("3", "Bachata", "MO", "19:30"),
        ]
        planner = make_planner(catalog)
        c = ConstraintSet(selected_courses=["Salsa", "Bachata"], multiplicity={"Salsa": 2})
        suggestions = planner.suggest_relaxations(c)
        reduce = next(s for s in suggestions if s.kind == SuggestionKind.REDUCE_MULTIPLICITY)
        assert reduce.changes == {"multiplicity": {"Salsa": 1}}
        assert reduce.verified is True

    def test_max_suggestions_respected(self):
        catalog = [occ(str(i), "Tango", d, "19:00") for i, d in enumerate(["MO", "DI", "MI", "DO"])]
        planner = make_planner(catalog, max_suggestions=2)
        c = ConstraintSet(selected_courses=["Tango"], blocked_days=["MO", "DI", "MI", "DO"])
        assert len(planner.suggest_relaxations(c)) == 2

    def test_never_empty_for_unsolvable(self):
        """Für jede unlösbare Auswahl gibt es mindestens einen Vorschlag."""
        catalog = [occ("1", "Salsa", "MO", "19:00"), occ("2", "Bachata", "MO", "19:30")]
        planner = make_planner(catalog)
        c = ConstraintSet(selected_courses=["Salsa", "Bachata"], max_courses_per_day=1,
                          prevent_overlaps=False)
        result = planner.solve(c)
        assert result.is_empty
        assert result.suggestions

    def test_sorted_by_impact_then_verified(self):
        suggestions = [
            Suggestion(kind=SuggestionKind.REDUCE_SELECTION, description="a", impact=0, verified=True),
            Suggestion(kind=SuggestionKind.ADD_DAY, description="b", impact=3, verified=False),
            Suggestion(kind=SuggestionKind.ADD_TIME_SLOT, description="c", impact=3, verified=True),
        ]
        ordered = sorted(suggestions, key=lambda s: s.sort_key)
        assert [s.description for s in ordered] == ["c", "b", "a"]
