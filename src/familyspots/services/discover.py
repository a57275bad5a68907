from __future__ import annotations

# This module is the "orchestrator" for venue/event discovery.
# It wires together:
# - a catalog source (the query façade: local snapshot or hosted backend)
# - the predicate filter engine (age, environment, price, category, radius, dates)
# - distance annotation/ordering (when the caller's location is known)
#
# Each layer stays pure except the source; this file only sequences them.

import logging
import time
from typing import Literal

from familyspots.catalog.source import CatalogSource, build_source
from familyspots.config.settings import Settings, get_settings
from familyspots.core.time import now_in
from familyspots.domain.models import (
    ActivityKind,
    DiscoverResult,
    Event,
    FilterCriteria,
    GeoPoint,
    LocatedActivity,
    Venue,
)
from familyspots.filtering.engine import describe_active_filters, filter_activities
from familyspots.ranking.distance import nearest, sort_by_distance, with_distance

logger = logging.getLogger(__name__)

SortMode = Literal["distance", "default"]


def _has_location(lat: float | None, lng: float | None) -> bool:
    return lat is not None and lng is not None


def _effective_limit(limit: int | None, settings: Settings) -> int:
    # Prefer an explicit request value, but never exceed the configured ceiling.
    requested = int(limit or settings.discover.default_limit)
    return max(1, min(requested, settings.discover.max_limit))


def _fetch_candidates(
    source: CatalogSource,
    kind: ActivityKind,
    *,
    category_id: str | None,
    query: str | None,
) -> list[LocatedActivity]:
    # Free-text match and category join are delegated to storage; everything else is client-side.
    if query and query.strip():
        return list(source.search_venues(query) if kind == "venue" else source.search_events(query))
    if category_id and category_id.strip():
        cid = category_id.strip()
        return list(source.venues_by_category(cid) if kind == "venue" else source.events_by_category(cid))
    return list(source.list_venues() if kind == "venue" else source.list_events())


def discover(
    kind: ActivityKind,
    criteria: FilterCriteria | None = None,
    *,
    lat: float | None = None,
    lng: float | None = None,
    sort: SortMode | None = None,
    limit: int | None = None,
    query: str | None = None,
    settings: Settings | None = None,
    source: CatalogSource | None = None,
) -> DiscoverResult:
    """Fetch venues or events, filter them, and order them by distance when possible."""
    t0 = time.monotonic()
    timings_ms: dict[str, int] = {}

    # ---- Step 1: Resolve settings and collaborators (a source built here is closed after the fetch) ----
    settings = settings or get_settings()
    owned = source is None
    source = source or build_source(settings)
    criteria = criteria or FilterCriteria()
    tz = settings.app.timezone
    sort_mode: SortMode = sort or settings.discover.default_sort
    effective_limit = _effective_limit(limit, settings)

    # ---- Step 2: Fetch candidates from the façade ----
    t = time.monotonic()
    try:
        candidates = _fetch_candidates(source, kind, category_id=criteria.category_id, query=query)
    finally:
        if owned:
            source.close()
    timings_ms["fetch"] = int((time.monotonic() - t) * 1000)

    # ---- Step 3: Client-side filtering (permissive: bad criteria are dropped, not fatal) ----
    t = time.monotonic()
    filtered = filter_activities(candidates, criteria, lat, lng, timezone=tz)
    active = describe_active_filters(criteria, lat, lng, timezone=tz)
    timings_ms["filter"] = int((time.monotonic() - t) * 1000)

    # ---- Step 4: Distance annotation + ordering (only with a known location) ----
    t = time.monotonic()
    origin: GeoPoint | None = None
    if _has_location(lat, lng):
        origin = GeoPoint(lat=lat, lon=lng)
        filtered = with_distance(filtered, lat, lng)
        if sort_mode == "distance":
            filtered = sort_by_distance(filtered, lat, lng)
    else:
        # Without a location, distance ordering degrades to the façade's own order.
        sort_mode = "default"
    timings_ms["rank"] = int((time.monotonic() - t) * 1000)

    results = filtered[:effective_limit]
    timings_ms["total"] = int((time.monotonic() - t0) * 1000)

    logger.info(
        "discover kind=%s candidates=%d matched=%d returned=%d filters=%s sort=%s",
        kind,
        len(candidates),
        len(filtered),
        len(results),
        ",".join(active) or "-",
        sort_mode,
    )

    return DiscoverResult(
        generated_at=now_in(tz),
        kind=kind,
        criteria=criteria,
        origin=origin,
        sort=sort_mode,
        total_candidates=len(candidates),
        results=results,
        meta={
            "active_filters": active,
            "matched": len(filtered),
            "limit": effective_limit,
            "timings_ms": timings_ms,
        },
    )


def get_activity(
    kind: ActivityKind,
    activity_id: str,
    *,
    lat: float | None = None,
    lng: float | None = None,
    source: CatalogSource,
) -> Venue | Event | None:
    """Look up one venue/event; annotate it with distance when a location is given."""
    record = source.get_venue(activity_id) if kind == "venue" else source.get_event(activity_id)
    if record is None or not _has_location(lat, lng):
        return record
    return with_distance([record], lat, lng)[0]


def city_counts(source: CatalogSource) -> list[dict[str, int | str]]:
    """Count venues + events per city, most populated city first (ties alphabetical)."""
    counts: dict[str, int] = {}
    for record in [*source.list_venues(), *source.list_events()]:
        if record.city:
            counts[record.city] = counts.get(record.city, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"city": city, "count": count} for city, count in ranked]


def featured(
    kind: ActivityKind,
    *,
    lat: float | None = None,
    lng: float | None = None,
    limit: int | None = None,
    settings: Settings | None = None,
    source: CatalogSource | None = None,
) -> list[Venue] | list[Event]:
    """Featured venues (or upcoming featured events), nearest first when a location is given."""
    settings = settings or get_settings()
    owned = source is None
    source = source or build_source(settings)
    n = max(1, min(int(limit or settings.discover.featured_limit), settings.discover.max_limit))

    try:
        if kind == "venue":
            records = source.featured_venues(limit=n)
        else:
            records = source.featured_events(now_in(settings.app.timezone), limit=n)
    finally:
        if owned:
            source.close()

    if not _has_location(lat, lng):
        return list(records)
    return nearest(records, lat, lng, limit=n)
