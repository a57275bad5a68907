"""
Distance annotation and ordering.

All three helpers are pure: they return new lists and new record copies, and never
reorder or mutate the sequence they were given. Sharing one input list between
concurrent callers is therefore safe.
"""

from __future__ import annotations

from typing import Iterable, TypeVar

from familyspots.core.geo import distance_km
from familyspots.domain.models import LocatedActivity

T = TypeVar("T", bound=LocatedActivity)


def _distance_to(record: LocatedActivity, lat: float, lng: float) -> float:
    return distance_km(lat, lng, record.location.lat, record.location.lon)


def with_distance(records: Iterable[T], lat: float, lng: float) -> list[T]:
    """Copy each record with `distance` (km from `lat`/`lng`) filled in; order unchanged."""
    return [r.model_copy(update={"distance": _distance_to(r, lat, lng)}) for r in records]


def sort_by_distance(records: Iterable[T], lat: float, lng: float) -> list[T]:
    """Return a new list ordered nearest-first.

    The sort is stable (equidistant records keep their relative order) and the input
    sequence is left untouched.
    """
    return sorted(records, key=lambda r: _distance_to(r, lat, lng))


def nearest(records: Iterable[T], lat: float, lng: float, *, limit: int | None = None) -> list[T]:
    """Annotate with distance, order nearest-first and keep the first `limit` records."""
    ranked = sorted(with_distance(records, lat, lng), key=lambda r: r.distance)
    return ranked if limit is None else ranked[: max(0, int(limit))]
