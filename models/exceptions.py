"""Fehlerklassen des Kursplaners.

Nur fehlerhafte Eingaben sind echte Fehler. Ein unlösbarer Constraint-Satz
ist KEIN Fehler: er liefert eine leere Ergebnisliste plus Vorschläge.
"""

from typing import Optional


class PlannerError(Exception):
    """Basisklasse aller Planer-Fehler."""

    pass


class InvalidCatalog(PlannerError):
    """Kursdaten sind fehlerhaft (fehlende ID, unlesbare Uhrzeit, ...)."""

    def __init__(self, reason: str, occurrence_id: Optional[str] = None):
        self.reason = reason
        self.occurrence_id = occurrence_id
        location = f" (Termin '{occurrence_id}')" if occurrence_id else ""
        super().__init__(f"Ungültiger Kurskatalog{location}: {reason}")


class InvalidConstraint(PlannerError):
    """Constraint-Satz ist ungültig oder per Konstruktion unerfüllbar."""

    def __init__(self, reason: str, field: Optional[str] = None):
        self.reason = reason
        self.field = field
        location = f" [{field}]" if field else ""
        super().__init__(f"Ungültige Vorgaben{location}: {reason}")
