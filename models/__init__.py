from models.exceptions import PlannerError, InvalidCatalog, InvalidConstraint
from models.timeslot import DayCode, DAY_ORDER
from models.occurrence import CourseOccurrence
from models.catalog import CourseGroup, CourseCatalogIndex
from models.constraints import ConstraintSet
from models.schedule import ScheduledCourse, ScheduleAssignment, schedule_fingerprint
from models.suggestion import Suggestion, SuggestionKind

__all__ = [
    "PlannerError",
    "InvalidCatalog",
    "InvalidConstraint",
    "DayCode",
    "DAY_ORDER",
    "CourseOccurrence",
    "CourseGroup",
    "CourseCatalogIndex",
    "ConstraintSet",
    "ScheduledCourse",
    "ScheduleAssignment",
    "schedule_fingerprint",
    "Suggestion",
    "SuggestionKind",
]
