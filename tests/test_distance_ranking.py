import pytest

from familyspots.core.geo import distance_km
from familyspots.domain.models import GeoPoint, Venue
from familyspots.ranking.distance import nearest, sort_by_distance, with_distance


def _venue(vid: str, lat: float, lon: float) -> Venue:
    return Venue(id=vid, name=vid, location=GeoPoint(lat=lat, lon=lon))


def test_sort_by_distance_puts_the_coincident_record_first():
    records = [_venue("a", 52.0, 4.0), _venue("b", 52.1, 4.0), _venue("c", 51.9, 4.0)]
    out = sort_by_distance(records, 52.0, 4.0)

    assert out[0].id == "a"
    dists = [distance_km(52.0, 4.0, r.location.lat, r.location.lon) for r in out]
    assert dists[0] == 0
    assert dists == sorted(dists)


def test_sort_by_distance_is_stable_for_ties():
    # b and c are exactly as far north as south of the user.
    records = [_venue("a", 52.0, 4.0), _venue("b", 52.1, 4.0), _venue("c", 51.9, 4.0)]
    assert [r.id for r in sort_by_distance(records, 52.0, 4.0)] == ["a", "b", "c"]
    assert [r.id for r in sort_by_distance(list(reversed(records)), 52.0, 4.0)] == ["a", "c", "b"]


def test_sort_by_distance_leaves_input_untouched():
    records = [_venue("far", 53.0, 4.0), _venue("near", 52.0, 4.0)]
    out = sort_by_distance(records, 52.0, 4.0)
    assert [r.id for r in out] == ["near", "far"]
    assert [r.id for r in records] == ["far", "near"]
    assert out is not records


def test_with_distance_annotates_without_reordering():
    records = [_venue("far", 53.0, 4.0), _venue("near", 52.0, 4.0)]
    out = with_distance(records, 52.0, 4.0)

    assert [r.id for r in out] == ["far", "near"]
    assert out[0].distance == pytest.approx(111.19, rel=0.005)
    assert out[1].distance == 0
    # Originals stay un-annotated.
    assert all(r.distance is None for r in records)


def test_nearest_returns_annotated_top_n():
    records = [_venue("x", 53.0, 4.0), _venue("y", 52.2, 4.0), _venue("z", 52.0, 4.0)]
    out = nearest(records, 52.0, 4.0, limit=2)
    assert [r.id for r in out] == ["z", "y"]
    assert out[0].distance == 0
    assert out[1].distance == pytest.approx(22.24, rel=0.005)


def test_empty_inputs():
    assert with_distance([], 0.0, 0.0) == []
    assert sort_by_distance([], 0.0, 0.0) == []
    assert nearest([], 0.0, 0.0, limit=3) == []
