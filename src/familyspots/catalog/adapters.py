"""
Backend row → domain model adapters.

The hosted backend returns venue/event rows with their place joined in as a nested
`place` object, plus link tables for categories and collections. These helpers flatten
that shape into `Venue` / `Event` so nothing downstream knows about the join layout.

Events may have no linked place and carry `custom_*` location columns instead.
Rows that still lack coordinates (or fail validation) are skipped with a warning by
`venues_from_rows` / `events_from_rows`; the single-row helpers raise.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from familyspots.domain.models import Event, GeoPoint, Venue

logger = logging.getLogger(__name__)

_SHARED_FIELDS = [
    "description_en",
    "description_nl",
    "average_rating",
    "total_reviews",
    "price_min",
    "price_max",
    "age_min",
    "age_max",
    "booking_url",
]

_FLAG_FIELDS = ["is_free", "is_indoor", "is_outdoor", "is_featured", "weather_dependent"]


def _first(*values: Any) -> Any:
    for v in values:
        if v is not None and v != "":
            return v
    return None


def _category_ids(row: Mapping[str, Any], link_key: str) -> list[str]:
    out: list[str] = []
    direct = row.get("categories")
    if isinstance(direct, list):
        out.extend(str(c) for c in direct if c)
    for link in row.get(link_key) or []:
        if not isinstance(link, Mapping):
            continue
        cid = link.get("category_id")
        if cid is None and isinstance(link.get("category"), Mapping):
            cid = link["category"].get("id")
        if cid:
            out.append(str(cid))
    return out


def _collections(row: Mapping[str, Any], link_key: str) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for link in row.get(link_key) or []:
        if isinstance(link, Mapping) and isinstance(link.get("collection"), Mapping):
            out.append(dict(link["collection"]))
    return out


def _base_fields(row: Mapping[str, Any], place: Mapping[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {"id": str(row["id"])}
    for key in _SHARED_FIELDS:
        if row.get(key) is not None:
            fields[key] = row[key]
    for key in _FLAG_FIELDS:
        fields[key] = bool(row.get(key))
    fields["images"] = [str(i) for i in (row.get("images") or []) if i]
    fields["website"] = _first(place.get("website"), row.get("website"))
    return fields


def venue_from_row(row: Mapping[str, Any]) -> Venue:
    """Map one joined `venues` row (with `place`) to a `Venue`."""
    place = row.get("place") or {}
    lat = _first(place.get("location_lat"), row.get("location_lat"))
    lng = _first(place.get("location_lng"), row.get("location_lng"))
    if lat is None or lng is None:
        raise ValueError(f"venue {row.get('id')!r} has no coordinates")

    fields = _base_fields(row, place)
    fields.update(
        name=_first(place.get("name"), row.get("name")) or "Venue",
        location=GeoPoint(lat=float(lat), lon=float(lng)),
        city=_first(place.get("city"), row.get("city")),
        province=_first(place.get("province"), row.get("province")),
        address=_first(place.get("address"), row.get("address")),
        categories=_category_ids(row, "venue_category_links"),
        collections=_collections(row, "venue_collection_links"),
        is_seasonal=bool(row.get("is_seasonal")),
        season_start=row.get("season_start"),
        season_end=row.get("season_end"),
        opening_hours=row.get("venue_opening_hours") or row.get("opening_hours"),
    )
    return Venue.model_validate(fields)


def event_from_row(row: Mapping[str, Any]) -> Event:
    """Map one `events` row to an `Event`, falling back to `custom_*` location columns."""
    place = row.get("place") or {}
    lat = _first(place.get("location_lat"), row.get("custom_lat"), row.get("location_lat"))
    lng = _first(place.get("location_lng"), row.get("custom_lng"), row.get("location_lng"))
    if lat is None or lng is None:
        raise ValueError(f"event {row.get('id')!r} has no coordinates")

    fields = _base_fields(row, place)
    fields.update(
        name=_first(place.get("name"), row.get("custom_location_name"), row.get("name")) or "Event",
        location=GeoPoint(lat=float(lat), lon=float(lng)),
        city=_first(place.get("city"), row.get("custom_city"), row.get("city")),
        province=_first(place.get("province"), row.get("custom_province"), row.get("province")),
        address=_first(place.get("address"), row.get("custom_address"), row.get("address")),
        categories=_category_ids(row, "event_category_links"),
        collections=_collections(row, "event_collection_links"),
        starts_at=_first(row.get("event_start_datetime"), row.get("starts_at")),
        ends_at=_first(row.get("event_end_datetime"), row.get("ends_at")),
    )
    return Event.model_validate(fields)


def venues_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[Venue]:
    """Map many venue rows, skipping (and logging) the ones that cannot be mapped."""
    out: list[Venue] = []
    for row in rows:
        try:
            out.append(venue_from_row(row))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.warning("Skipping venue row %r: %s", row.get("id"), e)
    return out


def events_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[Event]:
    """Map many event rows, skipping (and logging) the ones that cannot be mapped."""
    out: list[Event] = []
    for row in rows:
        try:
            out.append(event_from_row(row))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.warning("Skipping event row %r: %s", row.get("id"), e)
    return out
