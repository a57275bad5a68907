import json

import pytest

from familyspots.cli import main
from familyspots.config.settings import get_settings

SNAPSHOT = {
    "venues": [
        {
            "id": "far",
            "place": {"name": "Theme park", "city": "Kaatsheuvel", "location_lat": 51.65, "location_lng": 5.0436},
            "average_rating": 4.9,
            "is_featured": True,
            "is_outdoor": True,
            "age_min": 3,
            "age_max": 99,
        },
        {
            "id": "near",
            "place": {"name": "Science museum", "city": "Amsterdam", "location_lat": 52.3738, "location_lng": 4.9123},
            "average_rating": 4.5,
            "is_featured": True,
            "is_indoor": True,
            "age_min": 4,
            "age_max": 14,
        },
    ],
    "events": [
        {
            "id": "fair",
            "custom_location_name": "Book fair",
            "custom_city": "Amsterdam",
            "custom_lat": 52.3757,
            "custom_lng": 4.9081,
            "event_start_datetime": "2026-10-24T10:00:00+02:00",
            "is_free": True,
        }
    ],
}


@pytest.fixture(autouse=True)
def _snapshot(monkeypatch, tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    monkeypatch.setenv("FAMILYSPOTS_CATALOG_PATH", str(path))
    monkeypatch.setenv("FAMILYSPOTS_CATALOG_SOURCE", "local")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_venues_json_nearest_first(capsys):
    assert main(["venues", "--lat", "52.37", "--lng", "4.90", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [r["id"] for r in data["results"]] == ["near", "far"]
    assert data["results"][0]["distance"] < 1.5


def test_venues_text_output_with_filters(capsys):
    assert main(["venues", "--indoor", "--min-age", "5"]) == 0
    out = capsys.readouterr().out
    assert "Science museum" in out
    assert "Theme park" not in out
    assert "filters: indoor, min_age" in out


def test_events_date_filter(capsys):
    assert main(["events", "--start-date", "2026-11-01", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["results"] == []


def test_distance_command(capsys):
    assert main(["distance", "52.0", "4.0", "53.0", "4.0"]) == 0
    assert capsys.readouterr().out.strip() == "111.2 km"


def test_cities_command(capsys):
    assert main(["cities", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["cities"][0] == {"city": "Amsterdam", "count": 2}


def test_unknown_sort_is_an_argument_error():
    with pytest.raises(SystemExit) as exc:
        main(["venues", "--sort", "rating"])
    assert exc.value.code == 2


def test_featured_command_orders_by_distance_with_location(capsys):
    assert main(["featured", "venues", "--json"]) == 0
    plain = json.loads(capsys.readouterr().out)
    assert [r["id"] for r in plain["results"]] == ["far", "near"]

    assert main(["featured", "venues", "--lat", "52.37", "--lng", "4.90", "--json"]) == 0
    located = json.loads(capsys.readouterr().out)
    assert [r["id"] for r in located["results"]] == ["near", "far"]


@pytest.mark.parametrize(
    "argv",
    [
        ["venues", "--lat", "100", "--lng", "4"],
        ["events", "--lat", "52", "--lng", "200"],
        ["featured", "venues", "--lat", "north", "--lng", "4"],
        ["distance", "52", "4", "-91", "4"],
    ],
)
def test_out_of_range_coordinates_are_argument_errors(argv, capsys):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    assert exc.value.code == 2
    assert "argument" in capsys.readouterr().err


def test_negative_coordinates_are_accepted(capsys):
    assert main(["distance", "-33.86", "151.21", "-33.86", "151.21"]) == 0
    assert capsys.readouterr().out.strip() == "0 m"
