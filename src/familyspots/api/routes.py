"""
API routes.

Endpoints:
- GET `/api/venues`, `/api/events`: filtered (and distance-ordered) listings.
- GET `/api/venues/{id}`, `/api/events/{id}`: one record, with distance when `lat`/`lng` are given.
- GET `/api/featured/{kind}`: featured venues or upcoming featured events.
- GET `/api/cities`: venue + event counts per city.
- GET `/api/distance`: distance between two coordinates.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Literal, TypeVar

import httpx
from fastapi import APIRouter, HTTPException, Query

from familyspots.catalog.source import CatalogSource, build_source
from familyspots.config.settings import get_settings
from familyspots.core.geo import distance_km, format_distance
from familyspots.domain.models import ActivityKind, DiscoverResult, Event, FilterCriteria, Venue
from familyspots.services.discover import city_counts, discover, featured, get_activity

logger = logging.getLogger(__name__)

router = APIRouter()

R = TypeVar("R")


@lru_cache
def _source() -> CatalogSource:
    return build_source(get_settings())


def _guarded(fn: Callable[[], R]) -> R:
    """Run `fn`, translating façade/validation failures into HTTP errors."""
    try:
        return fn()
    except HTTPException:
        raise
    except httpx.HTTPError as e:
        logger.warning("Backend request failed: %s", e)
        raise HTTPException(
            status_code=502,
            detail={"code": "BACKEND_ERROR", "message": str(e)},
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        ) from e
    except Exception as e:
        logger.exception("Unhandled error")
        raise HTTPException(
            status_code=500,
            detail={"code": "INTERNAL_ERROR", "message": str(e)},
        ) from e


def _list(
    kind: ActivityKind,
    *,
    criteria: FilterCriteria,
    lat: float | None,
    lng: float | None,
    sort: Literal["distance", "default"] | None,
    limit: int | None,
    q: str | None,
) -> DiscoverResult:
    settings = get_settings()
    return _guarded(
        lambda: discover(
            kind,
            criteria,
            lat=lat,
            lng=lng,
            sort=sort,
            limit=limit,
            query=q,
            settings=settings,
            source=_source(),
        )
    )


@router.get("/api/venues", response_model=DiscoverResult)
def list_venues(
    indoor: bool | None = None,
    outdoor: bool | None = None,
    free: bool | None = None,
    min_age: str | None = Query(default=None, alias="minAge"),
    max_age: str | None = Query(default=None, alias="maxAge"),
    max_distance: str | None = Query(default=None, alias="maxDistance"),
    category_id: str | None = Query(default=None, alias="categoryId"),
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    sort: Literal["distance", "default"] | None = None,
    limit: int | None = Query(default=None, ge=1),
    q: str | None = Query(default=None, max_length=100),
) -> DiscoverResult:
    """Venues matching the filter sheet; nearest first when a location is given."""
    criteria = FilterCriteria(
        indoor=indoor,
        outdoor=outdoor,
        free=free,
        min_age=min_age,
        max_age=max_age,
        max_distance=max_distance,
        category_id=category_id,
    )
    return _list("venue", criteria=criteria, lat=lat, lng=lng, sort=sort, limit=limit, q=q)


@router.get("/api/events", response_model=DiscoverResult)
def list_events(
    indoor: bool | None = None,
    outdoor: bool | None = None,
    free: bool | None = None,
    min_age: str | None = Query(default=None, alias="minAge"),
    max_age: str | None = Query(default=None, alias="maxAge"),
    max_distance: str | None = Query(default=None, alias="maxDistance"),
    category_id: str | None = Query(default=None, alias="categoryId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    sort: Literal["distance", "default"] | None = None,
    limit: int | None = Query(default=None, ge=1),
    q: str | None = Query(default=None, max_length=100),
) -> DiscoverResult:
    """Events matching the filter sheet, optionally within a start-date range."""
    criteria = FilterCriteria(
        indoor=indoor,
        outdoor=outdoor,
        free=free,
        min_age=min_age,
        max_age=max_age,
        max_distance=max_distance,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
    )
    return _list("event", criteria=criteria, lat=lat, lng=lng, sort=sort, limit=limit, q=q)


def _detail(kind: ActivityKind, activity_id: str, lat: float | None, lng: float | None) -> Venue | Event:
    record = _guarded(lambda: get_activity(kind, activity_id, lat=lat, lng=lng, source=_source()))
    if record is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "NOT_FOUND", "message": f"{kind} '{activity_id}' not found"},
        )
    return record


@router.get("/api/venues/{venue_id}", response_model=Venue)
def get_venue(
    venue_id: str,
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
) -> Venue:
    return _detail("venue", venue_id, lat, lng)


@router.get("/api/events/{event_id}", response_model=Event)
def get_event(
    event_id: str,
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
) -> Event:
    return _detail("event", event_id, lat, lng)


@router.get("/api/featured/{kind}")
def get_featured(
    kind: Literal["venues", "events"],
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    limit: int | None = Query(default=None, ge=1),
) -> dict:
    """Featured venues, or upcoming featured events; nearest first when a location is given."""
    activity_kind: ActivityKind = "venue" if kind == "venues" else "event"
    results = _guarded(
        lambda: featured(activity_kind, lat=lat, lng=lng, limit=limit, settings=get_settings(), source=_source())
    )
    return {"kind": activity_kind, "results": [r.model_dump(mode="json") for r in results]}


@router.get("/api/cities")
def get_cities() -> dict:
    """City counts across venues and events (most populated first)."""
    return {"cities": _guarded(lambda: city_counts(_source()))}


@router.get("/api/distance")
def get_distance(
    lat1: float = Query(..., ge=-90, le=90),
    lon1: float = Query(..., ge=-180, le=180),
    lat2: float = Query(..., ge=-90, le=90),
    lon2: float = Query(..., ge=-180, le=180),
) -> dict:
    km = distance_km(lat1, lon1, lat2, lon2)
    return {"km": km, "display": format_distance(km)}
