"""Solver-Modul (Backtracking-Suche über Kurstermine)."""

from models.exceptions import PlannerError, InvalidCatalog, InvalidConstraint
from .candidates import CandidateEnumerator, CandidateReport, FilterReason
from .search import BacktrackingSearch, CancelToken, RejectKind, SearchStats
from .dedup import ScheduleDeduplicator
from .suggestions import SuggestionEngine
from .planner import PlanningResult, SchedulePlanner
from .session import PlannerSession
from .saved import SavedSchedule, SavedScheduleStore

__all__ = [
    "PlannerError",
    "InvalidCatalog",
    "InvalidConstraint",
    "CandidateEnumerator",
    "CandidateReport",
    "FilterReason",
    "BacktrackingSearch",
    "CancelToken",
    "RejectKind",
    "SearchStats",
    "ScheduleDeduplicator",
    "SuggestionEngine",
    "PlanningResult",
    "SchedulePlanner",
    "PlannerSession",
    "SavedSchedule",
    "SavedScheduleStore",
]
