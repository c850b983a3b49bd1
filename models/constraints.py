"""Constraint-Satz des Nutzers: explizite, validierte Vorgaben (Pydantic v2).

Alle optionalen Felder haben dokumentierte Defaults. Die Validierung passiert
einmal beim Erzeugen; Solver-Code liest nur noch fertige Werte.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.timeslot import DAY_ORDER, DayCode, hours_to_minutes, minutes_to_hours, parse_hhmm


class ConstraintSet(BaseModel):
    """Alle Vorgaben für eine Wochenplan-Berechnung."""

    model_config = ConfigDict(frozen=True)

    # Ausgewählte Kurse (group_name); Reihenfolge = Auswahlreihenfolge
    selected_courses: list[str] = Field(default_factory=list)
    # Wie oft pro Woche ein Kurs belegt werden soll (Default 1)
    multiplicity: dict[str, int] = Field(default_factory=dict)
    # Erlaubte Wochentage
    allowed_days: list[DayCode] = Field(default_factory=lambda: list(DAY_ORDER))
    # Gesperrte Wochentage (haben Vorrang vor allowed_days)
    blocked_days: list[DayCode] = Field(default_factory=list)
    # Globales Zeitfenster in Bruchteil-Stunden (18.5 = 18:30)
    earliest_time: Optional[float] = Field(None, ge=0, le=24)
    latest_time: Optional[float] = Field(None, ge=0, le=24)
    # Tagesweise Startzeiten (Minuten); ersetzt für diesen Tag das globale Fenster.
    # Leere Liste = an diesem Tag keine Kurse.
    per_day_time_slots: dict[DayCode, list[int]] = Field(default_factory=dict)
    # Max. Kurse pro Tag (None = unbegrenzt)
    max_courses_per_day: Optional[int] = Field(3, ge=1)
    # Max. Lücke zwischen Kursen am selben Tag in Slot-Einheiten (0 = aus)
    max_time_between_courses: int = Field(0, ge=0)
    # Gleichen Kurs (Anzeigename) nicht zweimal am selben Tag
    no_duplicate_courses_per_day: bool = True
    # Keine zeitlich überlappenden Termine
    prevent_overlaps: bool = True
    # Termine "nur mit Partner" ausschließen
    disable_pair_courses: bool = False
    # Angenommene Kursdauer (60 min Kurs + 10 min Pause)
    course_duration_minutes: int = Field(70, ge=1, le=600)

    @field_validator("selected_courses")
    @classmethod
    def _unique_selection(cls, v: list[str]) -> list[str]:
        seen: set[str] = set()
        for name in v:
            if name in seen:
                raise ValueError(f"Kurs '{name}' ist doppelt ausgewählt")
            seen.add(name)
        return v

    @field_validator("multiplicity")
    @classmethod
    def _positive_multiplicity(cls, v: dict[str, int]) -> dict[str, int]:
        for name, count in v.items():
            if count < 1:
                raise ValueError(f"Anzahl für '{name}' muss >= 1 sein (ist {count})")
        return v

    @field_validator("allowed_days", "blocked_days", mode="before")
    @classmethod
    def _upper_days(cls, v):
        if isinstance(v, (list, tuple)):
            return [d.strip().upper() if isinstance(d, str) else d for d in v]
        return v

    @field_validator("per_day_time_slots", mode="before")
    @classmethod
    def _parse_slot_times(cls, v):
        if not isinstance(v, dict):
            return v
        parsed: dict = {}
        for day, slots in v.items():
            key = day.strip().upper() if isinstance(day, str) else day
            parsed[key] = [parse_hhmm(s) if isinstance(s, str) else s for s in (slots or [])]
        return parsed

    @model_validator(mode="after")
    def _check_window(self):
        if (
            self.earliest_time is not None
            and self.latest_time is not None
            and self.earliest_time >= self.latest_time
        ):
            raise ValueError(
                f"earliest_time ({self.earliest_time}) muss vor latest_time ({self.latest_time}) liegen"
            )
        return self

    # ─── Abgeleitete Werte ───

    def multiplicity_for(self, course_name: str) -> int:
        return self.multiplicity.get(course_name, 1)

    def effective_days(self) -> list[DayCode]:
        """Erlaubte minus gesperrte Tage, in Wochenreihenfolge."""
        allowed = set(self.allowed_days) - set(self.blocked_days)
        return [d for d in DAY_ORDER if d in allowed]

    @property
    def earliest_minute(self) -> Optional[int]:
        return hours_to_minutes(self.earliest_time) if self.earliest_time is not None else None

    @property
    def latest_minute(self) -> Optional[int]:
        return hours_to_minutes(self.latest_time) if self.latest_time is not None else None

    @property
    def required_units(self) -> int:
        """Anzahl zu belegender (Kurs, Slot)-Einheiten."""
        return sum(self.multiplicity_for(n) for n in self.selected_courses)

    def with_changes(self, **changes: Any) -> "ConstraintSet":
        """Validierte Kopie mit geänderten Feldern."""
        data = self.model_dump(exclude_unset=True)
        data.update(changes)
        return ConstraintSet.model_validate(data)

    @classmethod
    def from_time_strings(
        cls,
        earliest: Optional[str] = None,
        latest: Optional[str] = None,
        **kwargs: Any,
    ) -> "ConstraintSet":
        """Wie der Konstruktor, aber mit Zeitfenster als "HH:MM"-Strings."""
        if earliest:
            kwargs["earliest_time"] = minutes_to_hours(parse_hhmm(earliest))
        if latest:
            kwargs["latest_time"] = minutes_to_hours(parse_hhmm(latest))
        return cls(**kwargs)
