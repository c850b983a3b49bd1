"""PlannerSession – höchstens eine Berechnung gleichzeitig, die neueste gewinnt.

Die aufrufende Schicht entprellt Eingaben selbst (keine Timer hier). Jede neue
Anfrage bricht eine noch laufende ab, statt sich dahinter einzureihen.
"""

import logging
import threading
from typing import Any, Optional, Union

from models.constraints import ConstraintSet
from solver.planner import PlanningResult, SchedulePlanner
from solver.search import CancelToken

logger = logging.getLogger(__name__)


class PlannerSession:
    """Hält den aktuellen Auftrag und das letzte vollständige Ergebnis."""

    def __init__(self, planner: SchedulePlanner) -> None:
        self.planner = planner
        self._lock = threading.Lock()
        self._current: Optional[CancelToken] = None
        self._generation = 0
        self.last_result: Optional[PlanningResult] = None

    def submit(self, constraints: Union[ConstraintSet, dict[str, Any]]) -> PlanningResult:
        """Startet eine Berechnung; bricht einen noch laufenden Auftrag ab."""
        token = CancelToken()
        with self._lock:
            if self._current is not None and not self._current.cancelled:
                logger.info(f"Laufende Berechnung #{self._generation} wird abgelöst")
                self._current.cancel()
            self._current = token
            self._generation += 1
            generation = self._generation

        result = self.planner.solve(constraints, cancel_token=token)

        with self._lock:
            # Nur das Ergebnis des neuesten Auftrags wird übernommen
            if generation == self._generation and not result.cancelled:
                self.last_result = result
                self._current = None
        return result

    def cancel(self) -> None:
        """Bricht den laufenden Auftrag ab (falls vorhanden)."""
        with self._lock:
            if self._current is not None:
                self._current.cancel()

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._current is not None and not self._current.cancelled

    def __repr__(self) -> str:
        return f"PlannerSession(auftrag=#{self._generation}, busy={self.busy})"
