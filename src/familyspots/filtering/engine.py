# src/familyspots/filtering/engine.py
"""
Predicate filter engine.

`filter_activities` narrows a fetched venue/event collection with the criteria a user
toggled in the filter sheet. Each criterion becomes an independent predicate; the
active predicates are combined with logical AND and the input order is preserved.

Permissive filtering contract:
- A criterion whose value cannot be parsed (e.g. `minAge="abc"`, `maxDistance="far"`)
  is dropped on its own; every other criterion still applies.
- Numbers are read from the leading numeric prefix, so `"5.5"` is age 5 and
  `"10km"` is a 10 km radius.
- Nothing in here raises on bad criteria.

Quirks that callers rely on:
- indoor/outdoor is an exclusive toggle. Setting both is the same as setting neither
  (no environment filtering at all), not "indoor or outdoor".
- `minAge="0"` and `maxAge="12"` are the filter sheet's resting values and mean
  "no bound". They are matched as exact strings before any parsing.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Sequence, TypeVar

from familyspots.core.geo import distance_km
from familyspots.core.time import ensure_tz, parse_datetime
from familyspots.domain.models import Event, FilterCriteria, LocatedActivity

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=LocatedActivity)

MIN_AGE_NOOP = "0"
MAX_AGE_NOOP = "12"


@dataclass(frozen=True)
class Predicate:
    """A named boolean test over one record."""

    name: str
    test: Callable[[LocatedActivity], bool]


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


# Leading numeric prefix: "5.5" -> 5 for ages, "10km" -> 10.0 for radii.
_INT_PREFIX = re.compile(r"[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_int(value: str | None, *, field: str) -> int | None:
    if _blank(value):
        return None
    match = _INT_PREFIX.match(str(value).strip())
    if match is None:
        logger.debug("Ignoring unparseable %s=%r", field, value)
        return None
    return int(match.group())


def _parse_radius(value: str | None) -> float | None:
    if _blank(value):
        return None
    match = _FLOAT_PREFIX.match(str(value).strip())
    if match is None:
        logger.debug("Ignoring unparseable max_distance=%r", value)
        return None
    radius = float(match.group())
    if not math.isfinite(radius) or radius < 0:
        logger.debug("Ignoring out-of-range max_distance=%r", value)
        return None
    return radius


def _parse_date(value: str | None, *, field: str, timezone: str) -> datetime | None:
    if _blank(value):
        return None
    try:
        return parse_datetime(str(value), timezone)
    except ValueError:
        logger.debug("Ignoring unparseable %s=%r", field, value)
        return None


def _environment_predicate(criteria: FilterCriteria) -> Predicate | None:
    indoor = bool(criteria.indoor)
    outdoor = bool(criteria.outdoor)
    if indoor and not outdoor:
        return Predicate("indoor", lambda r: r.is_indoor)
    if outdoor and not indoor:
        return Predicate("outdoor", lambda r: r.is_outdoor)
    return None


def _age_predicates(criteria: FilterCriteria) -> list[Predicate]:
    out: list[Predicate] = []

    if criteria.min_age != MIN_AGE_NOOP:
        min_age = _parse_int(criteria.min_age, field="min_age")
        if min_age is not None:
            # The record's upper bound must reach the requested floor; open upper bounds pass.
            out.append(Predicate("min_age", lambda r: r.age_max is None or r.age_max >= min_age))

    if criteria.max_age != MAX_AGE_NOOP:
        max_age = _parse_int(criteria.max_age, field="max_age")
        if max_age is not None:
            out.append(Predicate("max_age", lambda r: r.age_min is None or r.age_min <= max_age))

    return out


def _distance_predicate(criteria: FilterCriteria, lat: float | None, lng: float | None) -> Predicate | None:
    radius = _parse_radius(criteria.max_distance)
    if radius is None or lat is None or lng is None:
        return None

    def within(r: LocatedActivity) -> bool:
        return distance_km(lat, lng, r.location.lat, r.location.lon) <= radius

    return Predicate("max_distance", within)


def _date_predicates(criteria: FilterCriteria, *, timezone: str) -> list[Predicate]:
    start = _parse_date(criteria.start_date, field="start_date", timezone=timezone)
    end = _parse_date(criteria.end_date, field="end_date", timezone=timezone)
    out: list[Predicate] = []

    # Venues carry no dates and pass through the date range untouched.
    if start is not None:
        out.append(
            Predicate(
                "start_date",
                lambda r: not isinstance(r, Event) or ensure_tz(r.starts_at, timezone) >= start,
            )
        )
    if end is not None:
        out.append(
            Predicate(
                "end_date",
                lambda r: not isinstance(r, Event) or ensure_tz(r.starts_at, timezone) <= end,
            )
        )
    return out


def build_predicates(
    criteria: FilterCriteria,
    lat: float | None = None,
    lng: float | None = None,
    *,
    timezone: str = "UTC",
) -> list[Predicate]:
    """Translate criteria into the list of active predicates (inactive ones are omitted)."""
    predicates: list[Predicate] = []

    env = _environment_predicate(criteria)
    if env is not None:
        predicates.append(env)

    if criteria.free:
        predicates.append(Predicate("free", lambda r: r.is_free is True))

    predicates.extend(_age_predicates(criteria))

    dist = _distance_predicate(criteria, lat, lng)
    if dist is not None:
        predicates.append(dist)

    if not _blank(criteria.category_id):
        category_id = str(criteria.category_id).strip()
        predicates.append(Predicate("category_id", lambda r: category_id in r.categories))

    predicates.extend(_date_predicates(criteria, timezone=timezone))
    return predicates


def describe_active_filters(
    criteria: FilterCriteria,
    lat: float | None = None,
    lng: float | None = None,
    *,
    timezone: str = "UTC",
) -> list[str]:
    """Names of the criteria that actually restrict results."""
    return [p.name for p in build_predicates(criteria, lat, lng, timezone=timezone)]


def filter_activities(
    records: Iterable[T],
    criteria: FilterCriteria,
    lat: float | None = None,
    lng: float | None = None,
    *,
    timezone: str = "UTC",
) -> list[T]:
    """Return the records that satisfy every active criterion, in input order.

    `lat`/`lng` is the caller's location; the radius filter is inactive without both.
    """
    predicates = build_predicates(criteria, lat, lng, timezone=timezone)
    items: Sequence[T] = list(records)
    if not predicates:
        return list(items)
    return [r for r in items if all(p.test(r) for p in predicates)]
