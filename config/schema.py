from pydantic import BaseModel, Field, field_validator
from typing import Optional

from models.constraints import ConstraintSet


# ─── SOLVER ───

class SolverSettings(BaseModel):
    """Laufzeit-Einstellungen der Suche und der Vorschlags-Diagnose."""
    # Maximale Anzahl verschiedener Pläne pro Berechnung
    result_cap: int = Field(200, ge=1, le=5000,
        description="Max. Anzahl Pläne pro Berechnung")
    # Kursdauer, wenn ein Termin kein eigenes Ende hat (60 min + 10 min Pause)
    default_course_duration_minutes: int = Field(70, ge=1, le=600,
        description="Standard-Kursdauer in Minuten")
    # Wie viele Lockerungs-Vorschläge höchstens ausgegeben werden
    max_suggestions: int = Field(5, ge=1, le=50,
        description="Max. Anzahl Vorschläge")
    # Schrittweise Erhöhung von Tageslimit / Lückenlimit (+1 .. +N)
    relax_attempts: int = Field(3, ge=1, le=10,
        description="Lockerungs-Versuche pro Regel")


# ─── KATALOG ───

class CatalogSettings(BaseModel):
    """Einstellungen für den Import des Kurskatalogs."""
    # Zeitzone für Unix-Zeitstempel aus dem Buchungssystem
    timezone: str = Field("Europe/Berlin",
        description="Zeitzone der Kurszeiten")
    # Nur Termine dieses Standorts verwenden (leer = alle)
    default_location: Optional[str] = Field(None,
        description="Standort-Filter (leer = alle)")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unbekannte Zeitzone: '{v}'")
        return v


# ─── GESAMT-CONFIG ───

class PlannerConfig(BaseModel):
    """Gesamtkonfiguration des Wochenplaners."""
    # Name der Tanzschule (nur Anzeige)
    school_name: str = Field("Tanzschule",
        description="Name der Tanzschule")
    # Such- und Diagnose-Einstellungen
    solver: SolverSettings = Field(default_factory=SolverSettings)
    # Katalog-Import
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    # Standard-Vorgaben (werden von CLI-Optionen überschrieben)
    constraints: ConstraintSet = Field(default_factory=ConstraintSet)
