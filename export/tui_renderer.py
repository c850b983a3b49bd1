"""Gemeinsamer Renderer für die Terminal-Anzeige eines Wochenplans.

Wird von den CLI-Befehlen solve und demo (Rich-Tabellen) verwendet.
"""

from typing import TYPE_CHECKING

from models.timeslot import format_minutes

if TYPE_CHECKING:
    from models.schedule import ScheduleAssignment
    from models.suggestion import Suggestion


def render_week_rows(
    assignment: "ScheduleAssignment",
    duration: int = 70,
    all_days: bool = True,
) -> tuple[list[str], list[list[str]]]:
    """Gibt (Kopfzeile, Tabellenzeilen) für das Wochenraster zurück.

    Jede Zeile: [Startzeit, MO, DI, MI, DO, FR, SA, SO]; eine Zeile pro
    vorkommender Startzeit. Leere Zellen enthalten '—'.
    """
    from export.helpers import format_entry, start_times, week_days

    days = week_days(assignment, all_days=all_days)
    header = ["Beginn"] + [d.value for d in days]

    cell_map: dict = {}
    for e in assignment.entries:
        key = (e.occurrence.day, e.occurrence.start_minute)
        cell_map.setdefault(key, []).append(e)

    rows: list[list[str]] = []
    for start in start_times(assignment):
        cells = [format_minutes(start)]
        for day in days:
            here = cell_map.get((day, start), [])
            if not here:
                cells.append("—")
            else:
                cells.append("\n".join(format_entry(e, duration) for e in here))
        rows.append(cells)
    return header, rows


def render_list_rows(assignment: "ScheduleAssignment", duration: int = 70) -> list[list[str]]:
    """Kompakte Liste: [Tag, Zeit, Kurs, Standort, Hinweis] in Wochenreihenfolge."""
    rows: list[list[str]] = []
    for e in assignment.sorted_entries():
        occ = e.occurrence
        hints = []
        if occ.pair_only:
            hints.append("Partner")
        if occ.registered:
            hints.append("gebucht")
        rows.append([
            occ.day.value,
            f"{format_minutes(occ.start_minute)}–{format_minutes(occ.effective_end(duration))}",
            e.course_name,
            occ.location or "—",
            ", ".join(hints),
        ])
    return rows


def render_suggestion_rows(suggestions: list["Suggestion"]) -> list[list[str]]:
    """Zeilen für die Vorschlagstabelle: [#, Art, Beschreibung, geprüft]."""
    return [
        [str(i), s.kind.value, s.description, "✓" if s.verified else "?"]
        for i, s in enumerate(suggestions, 1)
    ]
