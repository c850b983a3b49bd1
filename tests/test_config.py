"""Tests für Konfiguration: Defaults, Pydantic-Validierung, YAML-Roundtrip, Szenarien."""

import pytest
from pathlib import Path
from pydantic import ValidationError

from config.defaults import DEFAULT_CONSTRAINTS, default_planner_config, default_solver_settings
from config.manager import ConfigManager
from config.schema import CatalogSettings, PlannerConfig, SolverSettings
from models.constraints import ConstraintSet
from models.timeslot import DayCode


def make_manager(tmp_path: Path) -> ConfigManager:
    mgr = ConfigManager()
    mgr.CONFIG_DIR = tmp_path
    mgr.DEFAULT_CONFIG = tmp_path / "planner_config.yaml"
    mgr.SCENARIOS_DIR = tmp_path / "scenarios"
    return mgr


# ─── DEFAULTS ─────────────────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_solver_settings(self):
        s = default_solver_settings()
        assert s.result_cap == 200
        assert s.default_course_duration_minutes == 70

    def test_default_planner_config_valid(self):
        config = default_planner_config()
        assert config.catalog.timezone == "Europe/Berlin"
        assert config.constraints == DEFAULT_CONSTRAINTS

    def test_default_constraints_all_days(self):
        assert len(DEFAULT_CONSTRAINTS.effective_days()) == 7
        assert DEFAULT_CONSTRAINTS.max_courses_per_day == 3


# ─── PYDANTIC-VALIDIERUNG ─────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_result_cap_bounds(self):
        with pytest.raises(ValidationError):
            SolverSettings(result_cap=0)
        with pytest.raises(ValidationError):
            SolverSettings(result_cap=5001)

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            CatalogSettings(timezone="Mars/Olympus")

    def test_nested_constraints(self):
        config = PlannerConfig.model_validate({"constraints": {"blocked_days": ["so"]}})
        assert config.constraints.blocked_days == [DayCode.SO]


# ─── YAML SPEICHERN / LADEN ───────────────────────────────────────────────────

class TestConfigManager:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern, laden und validieren — vollständiger Roundtrip."""
        config = default_planner_config().model_copy(update={
            "school_name": "Tanzhaus",
            "constraints": ConstraintSet(
                blocked_days=["SA"],
                earliest_time=18.5,
                per_day_time_slots={"MI": ["19:00", "20:10"]},
                max_courses_per_day=None,
            ),
        })
        mgr = make_manager(tmp_path)
        mgr.save(config)
        assert mgr.DEFAULT_CONFIG.exists()

        loaded = mgr.load()
        assert loaded.school_name == "Tanzhaus"
        assert loaded.constraints == config.constraints

    def test_yaml_contains_times_and_comments(self, tmp_path: Path):
        config = default_planner_config().model_copy(update={
            "constraints": ConstraintSet(per_day_time_slots={"MI": ["19:00"]}),
        })
        mgr = make_manager(tmp_path)
        mgr.save(config)
        text = mgr.DEFAULT_CONFIG.read_text(encoding="utf-8")
        assert "19:00" in text
        assert "Standard-Vorgaben" in text

    def test_first_run_check(self, tmp_path: Path):
        mgr = make_manager(tmp_path)
        assert mgr.first_run_check() is True
        mgr.save(default_planner_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        mgr = make_manager(tmp_path)
        with pytest.raises(FileNotFoundError):
            mgr.load(tmp_path / "not_there.yaml")

    def test_invalid_yaml_values_raise_value_error(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("solver:\n  result_cap: 0\n", encoding="utf-8")
        with pytest.raises(ValueError, match="ungültig"):
            make_manager(tmp_path).load(path)

    def test_constraints_file_roundtrip(self, tmp_path: Path):
        c = ConstraintSet(selected_courses=["Salsa (1)"], multiplicity={"Salsa (1)": 2})
        mgr = make_manager(tmp_path)
        path = tmp_path / "vorgaben.yaml"
        mgr.save_constraints(c, path)
        assert mgr.load_constraints(path) == c

    def test_invalid_constraints_file(self, tmp_path: Path):
        path = tmp_path / "vorgaben.yaml"
        path.write_text("selected_courses: [A, A]\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Vorgaben-Datei"):
            make_manager(tmp_path).load_constraints(path)


# ─── SZENARIEN ────────────────────────────────────────────────────────────────

class TestScenarios:
    def test_scenario_save_and_load(self, tmp_path: Path):
        """Szenario speichern und laden — Roundtrip."""
        c = ConstraintSet(selected_courses=["Tango (1)"], blocked_days=["SO"])
        mgr = make_manager(tmp_path)
        mgr.save_scenario(c, "wochenende_frei", "Nur unter der Woche")
        assert mgr.load_scenario("wochenende_frei") == c

        scenarios = mgr.list_scenarios()
        assert [s["name"] for s in scenarios] == ["wochenende_frei"]
        assert scenarios[0]["description"] == "Nur unter der Woche"

    def test_scenario_exists(self, tmp_path: Path):
        mgr = make_manager(tmp_path)
        mgr.save_scenario(ConstraintSet(), "basis")
        with pytest.raises(FileExistsError):
            mgr.save_scenario(ConstraintSet(), "basis")
        mgr.save_scenario(ConstraintSet(max_courses_per_day=2), "basis", overwrite=True)
        assert mgr.load_scenario("basis").max_courses_per_day == 2

    def test_list_scenarios_empty(self, tmp_path: Path):
        assert make_manager(tmp_path).list_scenarios() == []

    def test_load_missing_scenario(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            make_manager(tmp_path).load_scenario("gibt_es_nicht")
