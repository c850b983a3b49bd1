"""Entfernt inhaltsgleiche Pläne (gleicher Fingerprint, erster gewinnt)."""

import logging
from typing import Iterable

from models.schedule import ScheduleAssignment

logger = logging.getLogger(__name__)


class ScheduleDeduplicator:
    """Sammelt Pläne in Eingangsreihenfolge und verwirft Duplikate.

    Zwei Pläne gelten als gleich, wenn jeder Kurs an denselben
    (Tag, Beginn)-Terminen liegt, unabhängig von der Belegungsreihenfolge.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._results: list[ScheduleAssignment] = []
        self.duplicates_dropped = 0

    def add(self, assignment: ScheduleAssignment) -> bool:
        """True wenn der Plan neu war und übernommen wurde."""
        fp = assignment.fingerprint
        if fp in self._seen:
            self.duplicates_dropped += 1
            logger.debug(f"Duplikat verworfen: {fp}")
            return False
        self._seen.add(fp)
        self._results.append(assignment)
        return True

    def extend(self, assignments: Iterable[ScheduleAssignment]) -> int:
        """Fügt mehrere Pläne hinzu; gibt die Anzahl neuer Pläne zurück."""
        return sum(1 for a in assignments if self.add(a))

    def seen(self, fingerprint: str) -> bool:
        return fingerprint in self._seen

    @property
    def results(self) -> list[ScheduleAssignment]:
        return list(self._results)

    def __len__(self) -> int:
        return len(self._results)
