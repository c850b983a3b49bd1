"""Datenmodell für Lockerungs-Vorschläge bei unlösbaren Vorgaben."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from models.timeslot import DayCode


class SuggestionKind(str, Enum):
    WIDEN_TIME_WINDOW = "widen-time-window"
    ADD_DAY = "add-day"
    ADD_TIME_SLOT = "add-time-slot"
    ENABLE_PAIR_COURSES = "enable-pair-courses"
    RAISE_MAX_PER_DAY = "raise-max-per-day"
    RAISE_MAX_GAP = "raise-max-gap"
    REDUCE_SELECTION = "reduce-selection"
    REDUCE_MULTIPLICITY = "reduce-multiplicity"
    ALLOW_DUPLICATES = "allow-duplicates"
    ALLOW_OVERLAPS = "allow-overlaps"


# Feste Reihenfolge bei gleichem impact (kleiner = wichtiger)
KIND_PRIORITY: dict[SuggestionKind, int] = {
    SuggestionKind.ADD_TIME_SLOT: 1,
    SuggestionKind.WIDEN_TIME_WINDOW: 2,
    SuggestionKind.ADD_DAY: 3,
    SuggestionKind.ENABLE_PAIR_COURSES: 4,
    SuggestionKind.RAISE_MAX_PER_DAY: 5,
    SuggestionKind.RAISE_MAX_GAP: 6,
    SuggestionKind.REDUCE_MULTIPLICITY: 7,
    SuggestionKind.ALLOW_DUPLICATES: 8,
    SuggestionKind.ALLOW_OVERLAPS: 9,
    SuggestionKind.REDUCE_SELECTION: 10,
}


class Suggestion(BaseModel):
    """Eine konkrete Lockerung der Vorgaben."""

    kind: SuggestionKind
    description: str                                  # Menschenlesbar, nennt Kurs/Tag
    courses: list[str] = Field(default_factory=list)  # Betroffene Kurse
    days: list[DayCode] = Field(default_factory=list) # Betroffene Tage
    changes: dict[str, Any] = Field(default_factory=dict)  # ConstraintSet-Felder → neuer Wert
    impact: int = 0        # Anzahl durch die Regel ausgeschlossener Kandidaten/Kombinationen
    verified: bool = False # True = gelockerte Suche hat mind. einen Plan gefunden

    @property
    def sort_key(self) -> tuple:
        return (-self.impact, not self.verified, KIND_PRIORITY[self.kind])
