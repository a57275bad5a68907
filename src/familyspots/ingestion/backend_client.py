"""
Hosted backend catalog (PostgREST-style REST API).

`BackendCatalog` implements `CatalogSource` against the managed database's REST
endpoint. It owns exactly one `httpx.Client`, either injected by the caller (tests,
long-lived API process) or built from settings; there is no module-level client.

Only storage-side narrowing happens here (ids, category join, free-text match, date
range). Rows are mapped with `familyspots.catalog.adapters`; HTTP failures propagate
as `httpx.HTTPError` unchanged.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable

import httpx

from familyspots.catalog.adapters import events_from_rows, venues_from_rows
from familyspots.config.settings import Settings
from familyspots.core.http import QueryParams, build_client, get_json
from familyspots.core.time import ensure_tz
from familyspots.domain.models import Event, Venue

logger = logging.getLogger(__name__)

VENUE_SELECT = (
    "*,place:places(*),"
    "venue_category_links(category_id),"
    "venue_collection_links(collection:collections(*))"
)
VENUE_SEARCH_SELECT = (
    "*,place:places!inner(*),"
    "venue_category_links(category_id),"
    "venue_collection_links(collection:collections(*))"
)
EVENT_SELECT = "*,place:places(*),event_category_links(category_id)"

VENUE_ORDER = "average_rating.desc"
EVENT_ORDER = "event_start_datetime.asc"


def _in_list(ids: Iterable[str]) -> str:
    return "in.(" + ",".join(str(i) for i in ids) + ")"


class BackendCatalog:
    """Reads venues and events from the hosted backend."""

    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self._settings = settings
        self._owns_client = client is None
        self._client = client or self._build_client(settings)

    @staticmethod
    def _build_client(settings: Settings) -> httpx.Client:
        backend = settings.backend
        if not backend.base_url:
            raise ValueError("backend.base_url is not configured (set FAMILYSPOTS_BACKEND_URL)")
        headers = {"Accept": "application/json"}
        if backend.api_key:
            headers["apikey"] = backend.api_key
            headers["Authorization"] = f"Bearer {backend.api_key}"
        base_url = backend.base_url.rstrip("/") + "/" + backend.rest_path.strip("/")
        return build_client(
            base_url=base_url,
            headers=headers,
            timeout_seconds=settings.app.http_timeout_seconds,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "BackendCatalog":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _rows(self, table: str, params: QueryParams) -> list[dict[str, Any]]:
        logger.debug("GET /%s params=%s", table, params)
        payload = get_json(self._client, f"/{table}", params=params)
        if not isinstance(payload, list):
            raise ValueError(f"Unexpected response shape from '{table}': expected a list")
        return [r for r in payload if isinstance(r, dict)]

    def _iso(self, dt: datetime) -> str:
        return ensure_tz(dt, self._settings.app.timezone).isoformat()

    @property
    def _tables(self):
        return self._settings.backend.tables

    def raw_venue_rows(self) -> list[dict[str, Any]]:
        return self._rows(self._tables.venues, [("select", VENUE_SELECT), ("order", VENUE_ORDER)])

    def raw_event_rows(self) -> list[dict[str, Any]]:
        return self._rows(self._tables.events, [("select", EVENT_SELECT), ("order", EVENT_ORDER)])

    def list_venues(self) -> list[Venue]:
        return venues_from_rows(self.raw_venue_rows())

    def list_events(self) -> list[Event]:
        return events_from_rows(self.raw_event_rows())

    def get_venue(self, venue_id: str) -> Venue | None:
        rows = self._rows(self._tables.venues, [("select", VENUE_SELECT), ("id", f"eq.{venue_id}")])
        venues = venues_from_rows(rows[:1])
        return venues[0] if venues else None

    def get_event(self, event_id: str) -> Event | None:
        rows = self._rows(self._tables.events, [("select", EVENT_SELECT), ("id", f"eq.{event_id}")])
        events = events_from_rows(rows[:1])
        return events[0] if events else None

    def venues_by_ids(self, ids: Iterable[str]) -> list[Venue]:
        ids = list(ids)
        if not ids:
            return []
        params = [("select", VENUE_SELECT), ("id", _in_list(ids)), ("order", VENUE_ORDER)]
        return venues_from_rows(self._rows(self._tables.venues, params))

    def events_by_ids(self, ids: Iterable[str]) -> list[Event]:
        ids = list(ids)
        if not ids:
            return []
        params = [("select", EVENT_SELECT), ("id", _in_list(ids)), ("order", EVENT_ORDER)]
        return events_from_rows(self._rows(self._tables.events, params))

    def venues_by_category(self, category_id: str) -> list[Venue]:
        params = [("select", f"venue:venues({VENUE_SELECT})"), ("category_id", f"eq.{category_id}")]
        links = self._rows(self._tables.venue_category_links, params)
        return venues_from_rows([link["venue"] for link in links if isinstance(link.get("venue"), dict)])

    def events_by_category(self, category_id: str) -> list[Event]:
        params = [("select", f"event:events({EVENT_SELECT})"), ("category_id", f"eq.{category_id}")]
        links = self._rows(self._tables.event_category_links, params)
        return events_from_rows([link["event"] for link in links if isinstance(link.get("event"), dict)])

    def search_venues(self, query: str) -> list[Venue]:
        q = query.strip()
        params = [
            ("select", VENUE_SEARCH_SELECT),
            ("or", f"(place.name.ilike.*{q}*,place.city.ilike.*{q}*)"),
            ("order", VENUE_ORDER),
        ]
        return venues_from_rows(self._rows(self._tables.venues, params))

    def search_events(self, query: str) -> list[Event]:
        q = query.strip()
        params = [
            ("select", EVENT_SELECT),
            (
                "or",
                f"(custom_location_name.ilike.*{q}*,custom_city.ilike.*{q}*,"
                f"place.name.ilike.*{q}*,place.city.ilike.*{q}*)",
            ),
            ("order", EVENT_ORDER),
        ]
        return events_from_rows(self._rows(self._tables.events, params))

    def events_between(self, start: datetime, end: datetime) -> list[Event]:
        params = [
            ("select", EVENT_SELECT),
            ("event_start_datetime", f"gte.{self._iso(start)}"),
            ("event_start_datetime", f"lte.{self._iso(end)}"),
            ("order", EVENT_ORDER),
        ]
        return events_from_rows(self._rows(self._tables.events, params))

    def upcoming_events(self, now: datetime, *, limit: int | None = None) -> list[Event]:
        params: list[tuple[str, Any]] = [
            ("select", EVENT_SELECT),
            ("event_start_datetime", f"gte.{self._iso(now)}"),
            ("order", EVENT_ORDER),
        ]
        if limit:
            params.append(("limit", int(limit)))
        return events_from_rows(self._rows(self._tables.events, params))

    def featured_venues(self, *, limit: int) -> list[Venue]:
        params = [
            ("select", VENUE_SELECT),
            ("is_featured", "eq.true"),
            ("order", VENUE_ORDER),
            ("limit", int(limit)),
        ]
        return venues_from_rows(self._rows(self._tables.venues, params))

    def featured_events(self, now: datetime, *, limit: int) -> list[Event]:
        params = [
            ("select", EVENT_SELECT),
            ("is_featured", "eq.true"),
            ("event_start_datetime", f"gte.{self._iso(now)}"),
            ("order", EVENT_ORDER),
            ("limit", int(limit)),
        ]
        return events_from_rows(self._rows(self._tables.events, params))
