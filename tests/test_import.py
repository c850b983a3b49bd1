"""Tests für den Katalog-Import (schedule.json-Export und einfache Terminliste)."""

import json
import pytest
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from data.fake_data import FakeCatalogGenerator
from data.nimbus_import import (
    NimbusScheduleImporter, extract_level_number, import_from_nimbus, load_catalog_file,
    load_catalog_with_report,
)
from models.exceptions import InvalidCatalog
from models.timeslot import DayCode

BERLIN = ZoneInfo("Europe/Berlin")


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def ts(day: int, hour: int, minute: int = 0) -> int:
    """Unix-Zeitstempel für Januar 2024 in Berlin (8. Januar = Montag)."""
    return int(datetime(2024, 1, day, hour, minute, tzinfo=BERLIN).timestamp())


def event(event_id, name="Salsa", level="Grundstufe (Level 1)", start=None, end=None, **extra) -> dict:
    data = {
        "id": event_id,
        "type": "course",
        "displayName": name,
        "levelName": level,
        "start": start if start is not None else ts(8, 19),
        "end": end if end is not None else ts(8, 20, 10),
        "location": "Tanzschule Mitte",
        "room": "Saal 1",
        "teacherNames": ["Anna", "Carlos"],
        "typeName": "Kurs",
    }
    data.update(extra)
    return data


def export_doc(*days) -> dict:
    return {"content": {"days": list(days)}}


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


# ─── Stufen ───────────────────────────────────────────────────────────────────

class TestLevelExtraction:
    @pytest.mark.parametrize("name,expected", [
        ("Grundstufe (Level 1)", "1"),
        ("Aufbaustufe (WTP 2)", "2"),
        ("Club 3", "3"),
        ("Level 4", "4"),
        ("Unspecified", None),
        ("null", None),
        (None, None),
        ("Offenes Training", None),
    ])
    def test_extract_level_number(self, name, expected):
        assert extract_level_number(name) == expected


# ─── schedule.json ────────────────────────────────────────────────────────────

class TestNimbusImport:
    def test_parse_course_events(self, tmp_path: Path):
        doc = export_doc(
            {"dayShort": "MO", "events": [event(101), {"id": 5, "type": "party"}]},
            {"dayShort": "MI", "events": [event(102, start=ts(10, 19), end=ts(10, 20, 10))]},
        )
        occurrences, report = import_from_nimbus(write_json(tmp_path / "schedule.json", doc))
        assert [o.id for o in occurrences] == ["101", "102"]
        first = occurrences[0]
        assert first.day == DayCode.MO
        assert first.start_minute == 19 * 60
        assert first.end_minute == 20 * 60 + 10
        assert first.group_name == "Salsa (1)"
        assert first.teacher == "Anna, Carlos"
        assert report.occurrences_imported == 2
        assert report.events_skipped == 1
        assert report.courses == 1

    def test_timezone_applied(self):
        """Zeitstempel 18:00 UTC = 19:00 in Berlin (Winterzeit)."""
        utc_ts = int(datetime(2024, 1, 8, 18, 0, tzinfo=ZoneInfo("UTC")).timestamp())
        importer = NimbusScheduleImporter(Path("unused.json"), timezone="Europe/Berlin")
        occs = importer.parse(export_doc({"dayShort": "MO", "events": [event(1, start=utc_ts, end=None)]}))
        assert occs[0].start_minute == 19 * 60

    def test_end_on_next_day_ignored(self):
        importer = NimbusScheduleImporter(Path("unused.json"))
        doc = export_doc({"dayShort": "FR", "events": [event(1, start=ts(12, 23), end=ts(13, 0, 30))]})
        assert importer.parse(doc)[0].end_minute is None

    def test_day_from_timestamp_when_missing(self):
        importer = NimbusScheduleImporter(Path("unused.json"))
        doc = export_doc({"events": [event(1, start=ts(11, 19), end=ts(11, 20))]})
        assert importer.parse(doc)[0].day == DayCode.DO

    def test_duplicate_ids_skipped(self):
        importer = NimbusScheduleImporter(Path("unused.json"))
        doc = export_doc(
            {"dayShort": "MO", "events": [event(1)]},
            {"dayShort": "MO", "events": [event(1)]},
        )
        assert len(importer.parse(doc)) == 1
        assert importer.report.events_skipped == 1

    def test_location_filter(self):
        importer = NimbusScheduleImporter(Path("unused.json"), location="Studio Süd")
        doc = export_doc({"dayShort": "MO", "events": [
            event(1), event(2, location="Studio Süd"),
        ]})
        assert [o.id for o in importer.parse(doc)] == ["2"]

    def test_pair_only_and_registered(self):
        importer = NimbusScheduleImporter(Path("unused.json"))
        doc = export_doc({"dayShort": "DI", "events": [event(1, pairOnly=True, visitExists=True)]})
        o = importer.parse(doc)[0]
        assert o.pair_only is True
        assert o.registered is True

    def test_missing_days_raises(self):
        importer = NimbusScheduleImporter(Path("unused.json"))
        with pytest.raises(InvalidCatalog):
            importer.parse({"content": {}})

    def test_event_without_id_raises(self):
        importer = NimbusScheduleImporter(Path("unused.json"))
        with pytest.raises(InvalidCatalog):
            importer.parse(export_doc({"dayShort": "MO", "events": [event(None)]}))

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            import_from_nimbus(tmp_path / "fehlt.json")

    def test_broken_json(self, tmp_path: Path):
        path = tmp_path / "kaputt.json"
        path.write_text("{nicht json", encoding="utf-8")
        with pytest.raises(InvalidCatalog):
            import_from_nimbus(path)


# ─── Einfache Terminliste ─────────────────────────────────────────────────────

class TestCatalogFile:
    def test_plain_list(self, tmp_path: Path):
        path = write_json(tmp_path / "katalog.json", [
            {"id": "1", "name": "Tango", "day": "DO", "start": "20:30"},
            {"id": "2", "name": "Tango", "day": "SA", "start": "15:00", "location": "Studio Süd"},
        ])
        assert len(load_catalog_file(path)) == 2
        assert [o.id for o in load_catalog_file(path, location="Studio Süd")] == ["2"]

    def test_plain_list_report(self, tmp_path: Path):
        path = write_json(tmp_path / "katalog.json", [
            {"id": "1", "name": "Tango", "day": "DO", "start": "20:30", "location": "Mitte"},
            {"id": "2", "name": "Tango", "day": "SA", "start": "15:00", "location": "Studio Süd"},
            {"id": "3", "name": "Salsa", "day": "MO", "start": 19.5, "location": "Studio Süd"},
        ])
        occurrences, report = load_catalog_with_report(path, location="Studio Süd")
        assert [o.id for o in occurrences] == ["2", "3"]
        assert occurrences[1].start_minute == 19 * 60 + 30
        assert report.occurrences_imported == 2
        assert report.events_skipped == 1
        assert report.courses == 2
        assert report.locations == ["Studio Süd"]

    def test_export_format_detected(self, tmp_path: Path):
        path = write_json(tmp_path / "schedule.json", export_doc({"dayShort": "MO", "events": [event(7)]}))
        assert [o.id for o in load_catalog_file(path)] == ["7"]

    def test_fake_catalog_raw_roundtrip(self, tmp_path: Path):
        gen = FakeCatalogGenerator(seed=3, courses=8)
        path = write_json(tmp_path / "demo.json", gen.generate_raw())
        loaded = load_catalog_file(path)
        assert [o.id for o in loaded] == [o.id for o in gen.generate()]


# ─── Demo-Daten ───────────────────────────────────────────────────────────────

class TestFakeData:
    def test_same_seed_same_catalog(self):
        a = FakeCatalogGenerator(seed=42).generate()
        b = FakeCatalogGenerator(seed=42).generate()
        assert a == b

    def test_bottlenecks_present(self):
        occs = FakeCatalogGenerator(seed=1).generate()
        tango = [o for o in occs if o.group_name == "Tango (1)"]
        assert len(tango) == 1 and tango[0].day == DayCode.DO
        assert all(o.pair_only for o in occs if o.group_name == "Discofox (1)")

    def test_ids_unique(self):
        occs = FakeCatalogGenerator(seed=5, courses=20).generate()
        assert len({o.id for o in occs}) == len(occs)
