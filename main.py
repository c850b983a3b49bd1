"""Tanzkurs-Wochenplaner — Haupt-CLI.

Verwendung:
  python main.py config init                      Standard-Konfiguration anlegen
  python main.py config show                      Konfiguration anzeigen
  python main.py courses <katalog.json>           Kurse im Katalog auflisten
  python main.py solve <katalog.json> -s "Salsa (1)" -s "Tango (1)"
                                                  Wochenpläne berechnen
  python main.py suggest <katalog.json> ...       Nur Lockerungs-Vorschläge
  python main.py demo                             Demo-Katalog erzeugen und lösen
  python main.py scenario save <name> ...         Vorgaben als Szenario speichern
  python main.py scenario list                    Szenarien auflisten
"""

import functools
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

# Standard-Anzahl Pläne, die im Terminal ausgegeben werden
DEFAULT_SHOW = 3


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py config init[/bold] aus."
        )
        sys.exit(1)
    return mgr, mgr.load()


def _load_config_or_default():
    """Lädt die Konfiguration; ohne Datei gelten die Standardwerte."""
    from config.defaults import default_planner_config
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        return mgr, default_planner_config()
    return mgr, mgr.load()


def _handle_errors(func):
    """Fehlerhafte Eingaben als rote Meldung ausgeben, Exit-Code 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from models.exceptions import PlannerError
        try:
            return func(*args, **kwargs)
        except (PlannerError, ValueError, FileNotFoundError, FileExistsError) as e:
            console.print(f"[red bold]Fehler:[/red bold] {e}")
            sys.exit(1)
    return wrapper


# ─── VORGABEN-OPTIONEN ────────────────────────────────────────────────────────

_CONSTRAINT_OPTIONS = [
    click.option("--constraints", "constraints_file", type=click.Path(path_type=Path),
                 default=None, help="Vorgaben aus YAML-Datei laden."),
    click.option("--scenario", default=None, help="Gespeichertes Szenario als Vorgaben verwenden."),
    click.option("--select", "-s", "selected", multiple=True,
                 help="Kurs auswählen (mehrfach möglich), z.B. 'Salsa (1)'."),
    click.option("--times", "-t", "times", multiple=True,
                 help="Mehrfachbelegung: 'Salsa (1)=2'."),
    click.option("--days", default=None, help="Erlaubte Tage, z.B. MO,DI,MI."),
    click.option("--block", default=None, help="Gesperrte Tage, z.B. SA,SO."),
    click.option("--earliest", default=None, help="Frühester Beginn (HH:MM)."),
    click.option("--latest", default=None, help="Spätestes Ende (HH:MM)."),
    click.option("--max-per-day", type=int, default=None, help="Max. Kurse pro Tag (0 = unbegrenzt)."),
    click.option("--max-gap", type=int, default=None, help="Max. Lücke in Kurslängen (0 = aus)."),
    click.option("--allow-duplicates", is_flag=True, default=False,
                 help="Gleichen Kurs mehrmals am selben Tag erlauben."),
    click.option("--allow-overlaps", is_flag=True, default=False,
                 help="Überschneidungen erlauben."),
    click.option("--no-pair", is_flag=True, default=False,
                 help="Termine 'nur mit Partner' ausschließen."),
]


def constraint_options(func):
    for option in reversed(_CONSTRAINT_OPTIONS):
        func = option(func)
    return func


def _parse_days(value: Optional[str]) -> list[str]:
    return [d.strip().upper() for d in value.split(",") if d.strip()]


def _parse_times(values: tuple[str, ...]) -> dict[str, int]:
    result: dict[str, int] = {}
    for item in values:
        name, sep, count = item.rpartition("=")
        if not sep or not name.strip():
            raise ValueError(f"Ungültige Mehrfachbelegung: '{item}' (erwartet 'Kurs=Anzahl')")
        try:
            result[name.strip()] = int(count)
        except ValueError as e:
            raise ValueError(f"Ungültige Anzahl in '{item}'") from e
    return result


def _build_constraints(mgr, config, opts: dict):
    """Vorgaben: Datei/Szenario/Config-Standard, überschrieben durch CLI-Optionen."""
    from models.timeslot import minutes_to_hours, parse_hhmm

    if opts["constraints_file"]:
        base = mgr.load_constraints(opts["constraints_file"])
    elif opts["scenario"]:
        base = mgr.load_scenario(opts["scenario"])
    else:
        base = config.constraints

    changes: dict = {}
    if opts["selected"]:
        changes["selected_courses"] = list(opts["selected"])
    if opts["times"]:
        changes["multiplicity"] = {**base.multiplicity, **_parse_times(opts["times"])}
    if opts["days"]:
        changes["allowed_days"] = _parse_days(opts["days"])
    if opts["block"]:
        changes["blocked_days"] = _parse_days(opts["block"])
    if opts["earliest"]:
        changes["earliest_time"] = minutes_to_hours(parse_hhmm(opts["earliest"]))
    if opts["latest"]:
        changes["latest_time"] = minutes_to_hours(parse_hhmm(opts["latest"]))
    if opts["max_per_day"] is not None:
        changes["max_courses_per_day"] = opts["max_per_day"] or None
    if opts["max_gap"] is not None:
        changes["max_time_between_courses"] = opts["max_gap"]
    if opts["allow_duplicates"]:
        changes["no_duplicate_courses_per_day"] = False
    if opts["allow_overlaps"]:
        changes["prevent_overlaps"] = False
    if opts["no_pair"]:
        changes["disable_pair_courses"] = True

    if not changes:
        return base
    from pydantic import ValidationError
    from models.exceptions import InvalidConstraint
    try:
        return base.with_changes(**changes)
    except ValidationError as e:
        first = e.errors()[0]
        raise InvalidConstraint(first.get("msg", str(e)),
                                field=".".join(str(p) for p in first.get("loc", ())) or None) from e


def _make_planner(config, catalog_path: Path, location: Optional[str], show_report: bool = False):
    from data.nimbus_import import load_catalog_with_report
    from solver.planner import SchedulePlanner

    occurrences, report = load_catalog_with_report(
        catalog_path,
        timezone=config.catalog.timezone,
        location=location or config.catalog.default_location,
    )
    if show_report:
        report.print_rich()
    planner = SchedulePlanner(config.solver)
    planner.initialize(occurrences)
    return planner


# ─── AUSGABE ──────────────────────────────────────────────────────────────────

def _print_schedule(number: int, assignment, duration: int) -> None:
    from export.tui_renderer import render_week_rows

    header, rows = render_week_rows(assignment, duration, all_days=False)
    table = Table(title=f"Plan {number}", box=box.ROUNDED, show_lines=True)
    for col in header:
        table.add_column(col, justify="center")
    for row in rows:
        table.add_row(*row)
    console.print(table)


def _print_suggestions(suggestions) -> None:
    from export.tui_renderer import render_suggestion_rows

    if not suggestions:
        console.print("[dim]Keine Vorschläge verfügbar.[/dim]")
        return
    table = Table(title="Vorschläge zur Lockerung", box=box.ROUNDED)
    table.add_column("#", justify="right", width=3)
    table.add_column("Art", style="cyan")
    table.add_column("Vorschlag")
    table.add_column("geprüft", justify="center")
    for row in render_suggestion_rows(suggestions):
        table.add_row(*row)
    console.print(table)


def _print_result(result, constraints, show: int, rank: bool, check: bool, catalog=None) -> None:
    from analysis.quality_report import QualityAnalyzer
    from analysis.solution_validator import SolutionValidator

    duration = constraints.course_duration_minutes
    if result.is_empty:
        console.print(Panel(
            "[yellow]Mit diesen Vorgaben gibt es keinen gültigen Wochenplan.[/yellow]",
            border_style="yellow",
        ))
        _print_suggestions(result.suggestions)
        return

    more = " (Limit erreicht, weitere möglich)" if result.cap_reached else ""
    console.print(
        f"[green]✓[/green] [bold]{len(result)}[/bold] Pläne gefunden{more} "
        f"in {result.solve_time_seconds:.3f}s"
    )

    schedules = result.schedules
    analyzer = QualityAnalyzer(duration)
    if rank:
        schedules = [a for a, _ in analyzer.rank_by_compactness(schedules)]
    for i, assignment in enumerate(schedules[:show], 1):
        _print_schedule(i, assignment, duration)

    if check:
        validator = SolutionValidator()
        invalid = 0
        for assignment in result.schedules:
            report = validator.validate(assignment, constraints, catalog)
            if not report.is_valid:
                invalid += 1
                report.print_rich()
        if invalid:
            console.print(f"[red]{invalid} Pläne verletzen Vorgaben![/red]")
        else:
            console.print("[green]✓[/green] Alle Pläne erfüllen die Vorgaben.")

    analyzer.print_rich(schedules, limit=show)


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder anlegen."""


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False, help="Bestehende Datei überschreiben.")
def config_init(force: bool):
    """Legt die Standard-Konfiguration an."""
    from config.defaults import default_planner_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Mit [bold]--force[/bold] überschreiben."
        )
        return
    mgr.save(default_planner_config())


@cmd_config.command("show")
@_handle_errors
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    from models.timeslot import format_minutes

    mgr, config = _load_config_or_abort()

    console.print(Panel(
        f"[bold]{config.school_name}[/bold]  |  Zeitzone {config.catalog.timezone}"
        + (f"  |  Standort {config.catalog.default_location}" if config.catalog.default_location else ""),
        title="Konfiguration",
        border_style="cyan",
    ))

    sc = config.solver
    console.print(
        f"[bold]Suche:[/bold] max. {sc.result_cap} Pläne | "
        f"Kursdauer {sc.default_course_duration_minutes} min | "
        f"{sc.max_suggestions} Vorschläge | {sc.relax_attempts} Lockerungsschritte"
    )

    c = config.constraints
    table = Table(title="Standard-Vorgaben", box=box.ROUNDED)
    table.add_column("Vorgabe")
    table.add_column("Wert")
    table.add_row("Tage", ", ".join(d.value for d in c.effective_days()) or "–")
    table.add_row("Zeitfenster", f"{c.earliest_time or '–'} bis {c.latest_time or '–'}")
    for day, slots in c.per_day_time_slots.items():
        table.add_row(f"Startzeiten {day.value}", ", ".join(format_minutes(m) for m in slots) or "keine")
    table.add_row("Max. Kurse pro Tag", str(c.max_courses_per_day or "unbegrenzt"))
    table.add_row("Max. Lücke (Kurslängen)", str(c.max_time_between_courses or "aus"))
    table.add_row("Keine Doppelungen pro Tag", "ja" if c.no_duplicate_courses_per_day else "nein")
    table.add_row("Keine Überschneidungen", "ja" if c.prevent_overlaps else "nein")
    table.add_row("Ohne Partnerkurse", "ja" if c.disable_pair_courses else "nein")
    if "course_duration_minutes" in c.model_fields_set:
        table.add_row("Kursdauer", f"{c.course_duration_minutes} min")
    else:
        table.add_row("Kursdauer", f"{sc.default_course_duration_minutes} min (Standard)")
    console.print(table)


# ─── COURSES ──────────────────────────────────────────────────────────────────

@click.command("courses")
@click.argument("katalog", type=click.Path(exists=True, path_type=Path))
@click.option("--location", "-l", default=None, help="Nur Termine dieses Standorts.")
@_handle_errors
def cmd_courses(katalog: Path, location: Optional[str]):
    """Listet alle Kurse eines Katalogs mit ihren Terminen auf."""
    from models.timeslot import format_minutes

    _, config = _load_config_or_default()
    planner = _make_planner(config, katalog, location, show_report=True)

    table = Table(title=f"Kurse in {katalog.name}", box=box.ROUNDED)
    table.add_column("Kurs", style="bold")
    table.add_column("Termine")
    table.add_column("Tage", justify="right")
    table.add_column("Standort")
    for name, group in planner.list_course_groups().items():
        terms = ", ".join(
            f"{o.day.value} {format_minutes(o.start_minute)}" + (" ⚭" if o.pair_only else "")
            for o in group.occurrences
        )
        table.add_row(name, terms, str(group.distinct_day_count), ", ".join(group.locations))
    console.print(table)
    console.print(f"\n[dim]{planner.index.summary()}[/dim]")


# ─── SOLVE ────────────────────────────────────────────────────────────────────

@click.command("solve")
@click.argument("katalog", type=click.Path(exists=True, path_type=Path))
@click.option("--location", "-l", default=None, help="Nur Termine dieses Standorts.")
@constraint_options
@click.option("--show", type=int, default=DEFAULT_SHOW, help="Anzahl angezeigter Pläne.")
@click.option("--rank", is_flag=True, default=False, help="Kompakteste Pläne zuerst anzeigen.")
@click.option("--check", is_flag=True, default=False, help="Pläne zusätzlich unabhängig prüfen.")
@click.option("--export", "export_path", type=click.Path(path_type=Path), default=None,
              help="Pläne als Excel-Datei (.xlsx) speichern.")
@_handle_errors
def cmd_solve(katalog: Path, location: Optional[str], show: int, rank: bool, check: bool,
              export_path: Optional[Path], **opts):
    """Berechnet alle gültigen Wochenpläne für die ausgewählten Kurse."""
    mgr, config = _load_config_or_default()
    planner = _make_planner(config, katalog, location)
    constraints = planner.prepare(_build_constraints(mgr, config, opts))

    if not constraints.selected_courses:
        console.print("[yellow]Keine Kurse ausgewählt (Option --select).[/yellow]")
        return

    with console.status("[bold]Suche läuft...[/bold]"):
        result = planner.solve(constraints)
    _print_result(result, constraints, show, rank, check, catalog=planner.index)

    if export_path and not result.is_empty:
        from export.excel_export import ExcelExporter
        exporter = ExcelExporter(result.schedules, constraints, school_name=config.school_name)
        sheets = exporter.export(export_path)
        console.print(f"[green]✓[/green] Excel gespeichert: {export_path} ({sheets} Pläne)")


# ─── SUGGEST ──────────────────────────────────────────────────────────────────

@click.command("suggest")
@click.argument("katalog", type=click.Path(exists=True, path_type=Path))
@click.option("--location", "-l", default=None, help="Nur Termine dieses Standorts.")
@constraint_options
@_handle_errors
def cmd_suggest(katalog: Path, location: Optional[str], **opts):
    """Zeigt Lockerungs-Vorschläge für die gegebenen Vorgaben."""
    mgr, config = _load_config_or_default()
    planner = _make_planner(config, katalog, location)
    constraints = _build_constraints(mgr, config, opts)
    _print_suggestions(planner.suggest_relaxations(constraints))


# ─── DEMO ─────────────────────────────────────────────────────────────────────

@click.command("demo")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--courses", default=10, help="Anzahl Kurse im Demo-Katalog.")
@click.option("--save-json", type=click.Path(path_type=Path), default=None,
              help="Demo-Katalog als JSON speichern.")
@_handle_errors
def cmd_demo(seed: int, courses: int, save_json: Optional[Path]):
    """Erzeugt einen Demo-Katalog und berechnet Pläne für vier Kurse."""
    import json
    from data.fake_data import FakeCatalogGenerator
    from solver.planner import SchedulePlanner

    _, config = _load_config_or_default()
    gen = FakeCatalogGenerator(seed=seed, courses=courses)
    occurrences = gen.generate()
    gen.print_summary(occurrences)

    if save_json:
        save_json.parent.mkdir(parents=True, exist_ok=True)
        with open(save_json, "w", encoding="utf-8") as f:
            json.dump(gen.generate_raw(), f, ensure_ascii=False, indent=2)
        console.print(f"[green]✓[/green] Katalog gespeichert: {save_json}")

    planner = SchedulePlanner(config.solver)
    planner.initialize(occurrences)
    constraints = planner.prepare(config.constraints.with_changes(
        selected_courses=["Salsa (1)", "Bachata (1)", "Tango (1)", "Discofox (1)"],
    ))
    result = planner.solve(constraints)
    _print_result(result, constraints, DEFAULT_SHOW, rank=True, check=True, catalog=planner.index)


# ─── SCENARIO ─────────────────────────────────────────────────────────────────

@click.group("scenario")
def cmd_scenario():
    """Vorgaben als Szenarien speichern und auflisten."""


@cmd_scenario.command("save")
@click.argument("name")
@constraint_options
@click.option("--description", "-d", default="", help="Beschreibung des Szenarios.")
@click.option("--overwrite", is_flag=True, default=False, help="Bestehendes Szenario ersetzen.")
@_handle_errors
def scenario_save(name: str, description: str, overwrite: bool, **opts):
    """Speichert die Vorgaben (Config + Optionen) als Szenario."""
    mgr, config = _load_config_or_default()
    constraints = _build_constraints(mgr, config, opts)
    mgr.save_scenario(constraints, name, description, overwrite=overwrite)


@cmd_scenario.command("list")
def scenario_list():
    """Listet alle gespeicherten Szenarien auf."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    scenarios = mgr.list_scenarios()

    if not scenarios:
        console.print("[dim]Keine Szenarien vorhanden.[/dim]")
        return

    table = Table(title="Gespeicherte Szenarien", box=box.ROUNDED)
    table.add_column("Name", style="bold")
    table.add_column("Erstellt")
    table.add_column("Beschreibung")
    for s in scenarios:
        table.add_row(s["name"], str(s.get("created", "")), s.get("description", ""))
    console.print(table)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Ausführliche Log-Ausgabe.")
def cli(verbose: bool):
    """Tanzkurs-Wochenplaner: alle gültigen Wochenpläne für ausgewählte Kurse.

    Starten Sie mit: python main.py demo
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_courses)
cli.add_command(cmd_solve)
cli.add_command(cmd_suggest)
cli.add_command(cmd_demo)
cli.add_command(cmd_scenario)


if __name__ == "__main__":
    main()
