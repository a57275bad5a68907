"""
Catalog sources (the query façade).

Discovery never talks to storage itself: it asks a `CatalogSource` for an already
fetched collection and does all age/environment/distance filtering client-side.
A source may narrow by the things storage is good at (ids, category joins, free-text
match, date range) and nothing else.

Two implementations exist:
- `LocalCatalog` (this module): serves an in-memory snapshot.
- `BackendCatalog` (`familyspots.ingestion.backend_client`): queries the hosted REST API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol

from familyspots.catalog.loader import CatalogSnapshot, load_snapshot
from familyspots.config.settings import Settings
from familyspots.core.time import ensure_tz
from familyspots.domain.models import Event, Venue
from familyspots.ingestion.backend_client import BackendCatalog


class CatalogSource(Protocol):
    def list_venues(self) -> list[Venue]: ...

    def list_events(self) -> list[Event]: ...

    def get_venue(self, venue_id: str) -> Venue | None: ...

    def get_event(self, event_id: str) -> Event | None: ...

    def venues_by_ids(self, ids: Iterable[str]) -> list[Venue]: ...

    def events_by_ids(self, ids: Iterable[str]) -> list[Event]: ...

    def venues_by_category(self, category_id: str) -> list[Venue]: ...

    def events_by_category(self, category_id: str) -> list[Event]: ...

    def search_venues(self, query: str) -> list[Venue]: ...

    def search_events(self, query: str) -> list[Event]: ...

    def events_between(self, start: datetime, end: datetime) -> list[Event]: ...

    def upcoming_events(self, now: datetime, *, limit: int | None = None) -> list[Event]: ...

    def featured_venues(self, *, limit: int) -> list[Venue]: ...

    def featured_events(self, now: datetime, *, limit: int) -> list[Event]: ...

    def close(self) -> None: ...


def _by_rating(venues: Iterable[Venue]) -> list[Venue]:
    return sorted(venues, key=lambda v: -(v.average_rating or 0.0))


def _by_start(events: Iterable[Event], timezone: str) -> list[Event]:
    return sorted(events, key=lambda e: ensure_tz(e.starts_at, timezone))


def _matches(query: str, *values: str | None) -> bool:
    q = query.strip().lower()
    if not q:
        return True
    return any(q in v.lower() for v in values if v)


class LocalCatalog:
    """In-memory catalog with the same ordering rules as the backend queries.

    Venues come back highest-rated first, events soonest first.
    """

    def __init__(self, snapshot: CatalogSnapshot, *, timezone: str = "UTC"):
        self._venues = _by_rating(snapshot.venues)
        self._events = _by_start(snapshot.events, timezone)
        self._timezone = timezone

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalCatalog":
        return cls(load_snapshot(settings.catalog.path), timezone=settings.app.timezone)

    def _tz(self, dt: datetime) -> datetime:
        return ensure_tz(dt, self._timezone)

    def list_venues(self) -> list[Venue]:
        return list(self._venues)

    def list_events(self) -> list[Event]:
        return list(self._events)

    def get_venue(self, venue_id: str) -> Venue | None:
        return next((v for v in self._venues if v.id == venue_id), None)

    def get_event(self, event_id: str) -> Event | None:
        return next((e for e in self._events if e.id == event_id), None)

    def venues_by_ids(self, ids: Iterable[str]) -> list[Venue]:
        wanted = set(ids)
        return [v for v in self._venues if v.id in wanted]

    def events_by_ids(self, ids: Iterable[str]) -> list[Event]:
        wanted = set(ids)
        return [e for e in self._events if e.id in wanted]

    def venues_by_category(self, category_id: str) -> list[Venue]:
        return [v for v in self._venues if category_id in v.categories]

    def events_by_category(self, category_id: str) -> list[Event]:
        return [e for e in self._events if category_id in e.categories]

    def search_venues(self, query: str) -> list[Venue]:
        return [v for v in self._venues if _matches(query, v.name, v.city)]

    def search_events(self, query: str) -> list[Event]:
        return [e for e in self._events if _matches(query, e.name, e.city)]

    def events_between(self, start: datetime, end: datetime) -> list[Event]:
        lo, hi = self._tz(start), self._tz(end)
        return [e for e in self._events if lo <= self._tz(e.starts_at) <= hi]

    def upcoming_events(self, now: datetime, *, limit: int | None = None) -> list[Event]:
        now = self._tz(now)
        out = [e for e in self._events if self._tz(e.starts_at) >= now]
        return out if limit is None else out[:limit]

    def featured_venues(self, *, limit: int) -> list[Venue]:
        return [v for v in self._venues if v.is_featured][:limit]

    def featured_events(self, now: datetime, *, limit: int) -> list[Event]:
        return [e for e in self.upcoming_events(now) if e.is_featured][:limit]

    def close(self) -> None:
        """Local snapshots hold no connections."""

    def __enter__(self) -> "LocalCatalog":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def build_source(settings: Settings) -> CatalogSource:
    """Construct the configured catalog source."""
    if settings.catalog.source == "backend":
        return BackendCatalog(settings)
    return LocalCatalog.from_settings(settings)
