import json
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from familyspots.catalog.loader import CatalogError, load_snapshot, read_snapshot_rows
from familyspots.catalog.source import LocalCatalog

AMS = ZoneInfo("Europe/Amsterdam")


def _write_snapshot(tmp_path, payload) -> str:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


SNAPSHOT = {
    "venues": [
        {
            "id": "low",
            "place": {"name": "Kinderboerderij", "city": "Utrecht", "location_lat": 52.09, "location_lng": 5.12},
            "average_rating": 3.9,
            "is_free": True,
            "venue_category_links": [{"category_id": "animals"}],
        },
        {
            "id": "high",
            "place": {"name": "Speeltuin Zuid", "city": "Amsterdam", "location_lat": 52.34, "location_lng": 4.89},
            "average_rating": 4.8,
            "is_featured": True,
            "venue_category_links": [{"category_id": "playground"}],
        },
        {"id": "broken", "place": {"name": "No coords"}},
    ],
    "events": [
        {
            "id": "later",
            "custom_location_name": "Lampionnenoptocht",
            "custom_city": "Utrecht",
            "custom_lat": 52.09,
            "custom_lng": 5.12,
            "event_start_datetime": "2026-11-11T18:00:00+01:00",
            "is_featured": True,
            "event_category_links": [{"category_id": "festival"}],
        },
        {
            "id": "sooner",
            "custom_location_name": "Herfstwandeling",
            "custom_city": "Amsterdam",
            "custom_lat": 52.35,
            "custom_lng": 4.86,
            "event_start_datetime": "2026-10-20T10:00:00+02:00",
        },
    ],
}


def test_load_snapshot_maps_rows_and_skips_broken_ones(tmp_path):
    snap = load_snapshot(_write_snapshot(tmp_path, SNAPSHOT))
    assert sorted(v.id for v in snap.venues) == ["high", "low"]
    assert sorted(e.id for e in snap.events) == ["later", "sooner"]


def test_missing_or_malformed_snapshot_raises_catalog_error(tmp_path):
    with pytest.raises(CatalogError, match="not found"):
        read_snapshot_rows(tmp_path / "nope.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogError, match="not valid JSON"):
        read_snapshot_rows(bad)

    with pytest.raises(CatalogError, match="must be a list"):
        read_snapshot_rows(_write_snapshot(tmp_path, {"venues": {"id": "x"}}))


def test_local_catalog_orders_like_the_backend(tmp_path):
    catalog = LocalCatalog(load_snapshot(_write_snapshot(tmp_path, SNAPSHOT)), timezone="Europe/Amsterdam")

    assert [v.id for v in catalog.list_venues()] == ["high", "low"]
    assert [e.id for e in catalog.list_events()] == ["sooner", "later"]


def test_local_catalog_lookups(tmp_path):
    catalog = LocalCatalog(load_snapshot(_write_snapshot(tmp_path, SNAPSHOT)), timezone="Europe/Amsterdam")

    assert catalog.get_venue("low").name == "Kinderboerderij"
    assert catalog.get_venue("missing") is None
    assert catalog.get_event("later").city == "Utrecht"
    assert [v.id for v in catalog.venues_by_ids(["low", "missing"])] == ["low"]
    assert [e.id for e in catalog.events_by_ids([])] == []
    assert [v.id for v in catalog.venues_by_category("playground")] == ["high"]
    assert [e.id for e in catalog.events_by_category("festival")] == ["later"]
    assert [v.id for v in catalog.search_venues("utrecht")] == ["low"]
    assert [e.id for e in catalog.search_events("HERFST")] == ["sooner"]


def test_local_catalog_date_queries(tmp_path):
    catalog = LocalCatalog(load_snapshot(_write_snapshot(tmp_path, SNAPSHOT)), timezone="Europe/Amsterdam")
    now = datetime(2026, 10, 25, 0, 0, tzinfo=AMS)

    assert [e.id for e in catalog.upcoming_events(now)] == ["later"]
    assert [e.id for e in catalog.upcoming_events(datetime(2026, 1, 1), limit=1)] == ["sooner"]
    assert [e.id for e in catalog.featured_events(now, limit=5)] == ["later"]
    assert [v.id for v in catalog.featured_venues(limit=5)] == ["high"]

    window = catalog.events_between(datetime(2026, 10, 1), datetime(2026, 10, 31, 23, 59))
    assert [e.id for e in window] == ["sooner"]
