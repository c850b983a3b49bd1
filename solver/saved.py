"""SavedScheduleStore – gemerkte Pläne, die eine Neuberechnung überleben.

Pläne werden als Kopie gespeichert (nicht per Referenz auf die Ergebnisliste)
und über ihren Fingerprint identifiziert. Neueste zuerst, höchstens MAX_SAVED.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from models.schedule import ScheduleAssignment

MAX_SAVED = 10


class SavedSchedule(BaseModel):
    """Ein gemerkter Plan mit Zeitpunkt."""

    fingerprint: str
    assignment: ScheduleAssignment
    saved_at: datetime = Field(default_factory=datetime.now)
    note: str = ""


class SavedScheduleStore:
    """Verwaltet gemerkte Pläne (Merkliste)."""

    def __init__(self, max_saved: int = MAX_SAVED) -> None:
        self.max_saved = max_saved
        self._saved: list[SavedSchedule] = []

    def save(self, assignment: ScheduleAssignment, note: str = "") -> SavedSchedule:
        """Merkt einen Plan vor. Ein bereits gemerkter Plan rückt nach vorne."""
        fp = assignment.fingerprint
        self._saved = [s for s in self._saved if s.fingerprint != fp]
        entry = SavedSchedule(
            fingerprint=fp,
            assignment=assignment.model_copy(deep=True),
            note=note,
        )
        self._saved.insert(0, entry)
        del self._saved[self.max_saved:]
        return entry

    def remove(self, fingerprint: str) -> bool:
        """Entfernt einen Plan. Gibt True zurück wenn ein Plan entfernt wurde."""
        before = len(self._saved)
        self._saved = [s for s in self._saved if s.fingerprint != fingerprint]
        return len(self._saved) < before

    def toggle(self, assignment: ScheduleAssignment) -> bool:
        """Merken bzw. Entfernen. Gibt True zurück wenn der Plan jetzt gemerkt ist."""
        if self.is_saved(assignment.fingerprint):
            self.remove(assignment.fingerprint)
            return False
        self.save(assignment)
        return True

    def is_saved(self, fingerprint: str) -> bool:
        return any(s.fingerprint == fingerprint for s in self._saved)

    def get(self, fingerprint: str) -> Optional[SavedSchedule]:
        for s in self._saved:
            if s.fingerprint == fingerprint:
                return s
        return None

    def get_saved(self) -> list[SavedSchedule]:
        """Alle gemerkten Pläne, neueste zuerst."""
        return list(self._saved)

    def clear(self) -> None:
        self._saved = []

    def save_json(self, path: Path) -> None:
        """Speichert die Merkliste als JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = [s.model_dump(mode="json") for s in self._saved]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def load_json(self, path: Path) -> None:
        """Lädt die Merkliste aus einer JSON-Datei (überschreibt die aktuelle)."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Merkliste nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self._saved = [SavedSchedule.model_validate(item) for item in data][: self.max_saved]

    def __len__(self) -> int:
        return len(self._saved)

    def __repr__(self) -> str:
        return f"SavedScheduleStore({len(self._saved)} Pläne)"
