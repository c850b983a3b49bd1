"""Konfigurationsmanager: Laden, Speichern und Validieren von Konfiguration und Vorgaben.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import PlannerConfig
from models.constraints import ConstraintSet

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Tanzkurs-Wochenplaner: Konfiguration
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "solver": (
        "Suche",
        "result_cap begrenzt die Anzahl Pläne; relax_attempts die Lockerungsschritte.",
    ),
    "catalog": (
        "Kurskatalog",
        "Zeitzone für Zeitstempel des Buchungssystems.",
    ),
    "constraints": (
        "Standard-Vorgaben",
        "Tage: MO DI MI DO FR SA SO. Zeiten in Stunden (18.5 = 18:30).\n"
        "per_day_time_slots: Startzeiten pro Tag, leere Liste = Tag gesperrt.",
    ),
}

_CONSTRAINT_COMMENTS = {
    "max_courses_per_day": "leer = unbegrenzt",
    "max_time_between_courses": "in Kurslängen, 0 = aus",
    "course_duration_minutes": "60 min Kurs + 10 min Pause",
}


def _constraints_to_yaml(constraints: ConstraintSet) -> CommentedMap:
    """ConstraintSet als YAML-Map; Startzeiten als "HH:MM" statt Minuten."""
    from models.timeslot import format_minutes

    raw = json.loads(constraints.model_dump_json())
    # Ohne eigene Kursdauer gilt solver.default_course_duration_minutes
    if "course_duration_minutes" not in constraints.model_fields_set:
        raw.pop("course_duration_minutes", None)
    raw["per_day_time_slots"] = {
        day: [format_minutes(m) for m in slots]
        for day, slots in raw.get("per_day_time_slots", {}).items()
    }
    cm = CommentedMap(raw)
    for key, comment in _CONSTRAINT_COMMENTS.items():
        if key in cm:
            cm.yaml_add_eol_comment(comment, key)
    return cm


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "planner_config.yaml"
    SCENARIOS_DIR = Path("scenarios")

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> PlannerConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = Path(path) if path else self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py config init' aus, um eine Standard-Konfiguration anzulegen."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return PlannerConfig.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    def load_constraints(self, path: Path) -> ConstraintSet:
        """Lädt eine Vorgaben-Datei (nur ConstraintSet-Felder)."""
        target = Path(path)
        if not target.exists():
            raise FileNotFoundError(f"Vorgaben-Datei nicht gefunden: {target}")
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return ConstraintSet.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Vorgaben-Datei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    # ─── Speichern ───

    def save(self, config: PlannerConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit deutschen Kommentaren."""
        target = Path(path) if path else self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def save_constraints(self, constraints: ConstraintSet, path: Path) -> None:
        """Speichert Vorgaben als eigenständige YAML-Datei."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            yaml.dump(_constraints_to_yaml(constraints), f)

    def _build_commented_yaml(self, config: PlannerConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)
        cm["constraints"] = _constraints_to_yaml(config.constraints)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )
        return cm

    # ─── Szenarios (benannte Vorgaben) ───

    def _scenario_path(self, name: str) -> Path:
        return self.SCENARIOS_DIR / f"{name}.yaml"

    def save_scenario(self, constraints: ConstraintSet, name: str,
                      description: str = "", overwrite: bool = False) -> Path:
        """Speichert Vorgaben samt Beschreibung als benanntes Szenario (eine Datei)."""
        path = self._scenario_path(name)
        if path.exists() and not overwrite:
            raise FileExistsError(f"Szenario '{name}' existiert bereits: {path}")
        self.SCENARIOS_DIR.mkdir(parents=True, exist_ok=True)

        doc = CommentedMap()
        doc["scenario"] = CommentedMap(
            name=name, description=description, created=date.today().isoformat(),
        )
        doc["constraints"] = _constraints_to_yaml(constraints)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(doc, f)
        console.print(f"[green]✓[/green] Szenario '{name}' gespeichert.")
        return path

    def list_scenarios(self) -> list[dict]:
        """Name, Pfad, Beschreibung und Datum aller Szenarien (alphabetisch)."""
        if not self.SCENARIOS_DIR.exists():
            return []
        result = []
        for path in sorted(self.SCENARIOS_DIR.glob("*.yaml")):
            with open(path, "r", encoding="utf-8") as f:
                doc = yaml.load(f) or {}
            info = doc.get("scenario") or {}
            result.append({
                "name": path.stem,
                "path": str(path),
                "description": info.get("description", ""),
                "created": str(info.get("created", "")),
            })
        return result

    def load_scenario(self, name: str) -> ConstraintSet:
        """Vorgaben eines gespeicherten Szenarios."""
        path = self._scenario_path(name)
        if not path.exists():
            known = ", ".join(s["name"] for s in self.list_scenarios()) or "keine"
            raise FileNotFoundError(f"Szenario '{name}' nicht gefunden (vorhanden: {known})")
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml.load(f) or {}
        try:
            return ConstraintSet.model_validate(dict(doc.get("constraints") or {}))
        except Exception as e:
            raise ValueError(f"Szenario '{name}' ungültig: {path}\n{e}") from e
