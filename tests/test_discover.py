from datetime import datetime
from zoneinfo import ZoneInfo

from familyspots.catalog.loader import CatalogSnapshot
from familyspots.catalog.source import LocalCatalog
from familyspots.config.settings import DiscoverSettings, Settings
from familyspots.domain.models import Event, FilterCriteria, GeoPoint, Venue
from familyspots.services.discover import city_counts, discover, featured, get_activity

AMS = ZoneInfo("Europe/Amsterdam")


def _catalog() -> LocalCatalog:
    venues = [
        Venue(
            id="zoo",
            name="Zoo",
            city="Amsterdam",
            location=GeoPoint(lat=52.366, lon=4.916),
            average_rating=4.6,
            is_indoor=True,
            is_outdoor=True,
            age_min=0,
            age_max=12,
            categories=["animals"],
        ),
        Venue(
            id="park",
            name="Park",
            city="Amsterdam",
            location=GeoPoint(lat=52.358, lon=4.868),
            average_rating=4.3,
            is_outdoor=True,
            is_free=True,
            age_min=2,
            age_max=10,
            categories=["playground"],
        ),
        Venue(
            id="theme",
            name="Theme park",
            city="Kaatsheuvel",
            location=GeoPoint(lat=51.65, lon=5.0436),
            average_rating=4.7,
            is_outdoor=True,
            age_min=3,
            age_max=99,
        ),
    ]
    events = [
        Event(
            id="books",
            name="Book fair",
            city="Amsterdam",
            location=GeoPoint(lat=52.3757, lon=4.9081),
            starts_at=datetime(2026, 10, 24, 10, 0, tzinfo=AMS),
            is_free=True,
        ),
        Event(
            id="winter",
            name="Winter fair",
            city="Kaatsheuvel",
            location=GeoPoint(lat=51.65, lon=5.0436),
            starts_at=datetime(2026, 12, 19, 10, 0, tzinfo=AMS),
        ),
    ]
    return LocalCatalog(CatalogSnapshot(venues=venues, events=events), timezone="Europe/Amsterdam")


def test_discover_without_location_keeps_source_order():
    result = discover("venue", settings=Settings(), source=_catalog())

    assert [r.id for r in result.results] == ["theme", "zoo", "park"]
    assert result.sort == "default"
    assert result.origin is None
    assert all(r.distance is None for r in result.results)
    assert result.total_candidates == 3


def test_discover_with_location_sorts_by_distance_and_annotates():
    result = discover("venue", lat=52.37, lng=4.90, settings=Settings(), source=_catalog())

    assert [r.id for r in result.results] == ["zoo", "park", "theme"]
    assert result.sort == "distance"
    assert result.origin == GeoPoint(lat=52.37, lon=4.90)
    distances = [r.distance for r in result.results]
    assert distances == sorted(distances)


def test_discover_default_sort_keeps_order_but_still_annotates():
    result = discover("venue", lat=52.37, lng=4.90, sort="default", settings=Settings(), source=_catalog())

    assert [r.id for r in result.results] == ["theme", "zoo", "park"]
    assert all(r.distance is not None for r in result.results)


def test_discover_applies_filters_and_reports_them():
    criteria = FilterCriteria(outdoor=True, max_distance="10")
    result = discover("venue", criteria, lat=52.37, lng=4.90, settings=Settings(), source=_catalog())

    assert [r.id for r in result.results] == ["zoo", "park"]
    assert result.meta["active_filters"] == ["outdoor", "max_distance"]
    assert result.meta["matched"] == 2


def test_discover_category_uses_the_source_join():
    result = discover("venue", FilterCriteria(category_id="playground"), settings=Settings(), source=_catalog())
    assert [r.id for r in result.results] == ["park"]
    assert result.total_candidates == 1


def test_discover_free_text_query():
    result = discover("event", query="kaatsheuvel", settings=Settings(), source=_catalog())
    assert [r.id for r in result.results] == ["winter"]


def test_discover_events_date_range_and_free():
    criteria = FilterCriteria(start_date="2026-10-01", end_date="2026-10-31", free=True)
    result = discover("event", criteria, settings=Settings(), source=_catalog())
    assert [r.id for r in result.results] == ["books"]


def test_discover_limit_is_capped_by_settings():
    settings = Settings(discover=DiscoverSettings(default_limit=2, max_limit=2))

    assert len(discover("venue", settings=settings, source=_catalog()).results) == 2
    result = discover("venue", limit=50, settings=settings, source=_catalog())
    assert len(result.results) == 2
    assert result.meta["limit"] == 2
    assert result.meta["matched"] == 3


def test_get_activity_annotates_distance_only_with_location():
    catalog = _catalog()

    plain = get_activity("venue", "zoo", source=catalog)
    assert plain is not None and plain.distance is None

    near = get_activity("venue", "zoo", lat=52.366, lng=4.916, source=catalog)
    assert near.distance == 0

    assert get_activity("event", "missing", source=catalog) is None


def test_city_counts_orders_by_count_then_name():
    assert city_counts(_catalog()) == [
        {"city": "Amsterdam", "count": 3},
        {"city": "Kaatsheuvel", "count": 2},
    ]


def test_featured_venues_nearest_first_when_located():
    venues = [v.model_copy(update={"is_featured": v.id != "park"}) for v in _catalog().list_venues()]
    catalog = LocalCatalog(CatalogSnapshot(venues=venues, events=[]), timezone="Europe/Amsterdam")

    plain = featured("venue", settings=Settings(), source=catalog)
    assert [v.id for v in plain] == ["theme", "zoo"]
    assert all(v.distance is None for v in plain)

    located = featured("venue", lat=52.37, lng=4.90, settings=Settings(), source=catalog)
    assert [v.id for v in located] == ["zoo", "theme"]
    assert located[0].distance < located[1].distance


class _TrackedCatalog(LocalCatalog):
    closed = 0

    def close(self) -> None:
        type(self).closed += 1


def test_sources_built_internally_are_closed(monkeypatch):
    import familyspots.services.discover as discover_module

    built = _TrackedCatalog(CatalogSnapshot(venues=_catalog().list_venues(), events=[]))
    monkeypatch.setattr(discover_module, "build_source", lambda settings: built)

    discover("venue", settings=Settings())
    featured("venue", settings=Settings())
    assert _TrackedCatalog.closed == 2

    # An injected source belongs to the caller and stays open.
    discover("venue", settings=Settings(), source=built)
    assert _TrackedCatalog.closed == 2
