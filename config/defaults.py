from config.schema import (
    CatalogSettings,
    PlannerConfig,
    SolverSettings,
)
from models.constraints import ConstraintSet
from models.timeslot import DAY_ORDER


# Vorgaben, mit denen die Oberfläche startet: alle Tage, max. 3 Kurse pro Tag,
# keine Lückenbegrenzung, keine Doppelungen, keine Überschneidungen.
DEFAULT_CONSTRAINTS = ConstraintSet(
    allowed_days=list(DAY_ORDER),
    max_courses_per_day=3,
    max_time_between_courses=0,
    no_duplicate_courses_per_day=True,
    prevent_overlaps=True,
    disable_pair_courses=False,
)


def default_solver_settings() -> SolverSettings:
    """Standard-Suchparameter.

    200 Pläne reichen für die Anzeige; darüber hinaus meldet das Ergebnis
    cap_reached=True. Kursdauer 70 min = 60 min Unterricht + 10 min Wechsel.
    """
    return SolverSettings(
        result_cap=200,
        default_course_duration_minutes=70,
        max_suggestions=5,
        relax_attempts=3,
    )


def default_planner_config() -> PlannerConfig:
    """Vollständige Standard-Konfiguration."""
    return PlannerConfig(
        school_name="Tanzschule",
        solver=default_solver_settings(),
        catalog=CatalogSettings(timezone="Europe/Berlin"),
        constraints=DEFAULT_CONSTRAINTS,
    )
