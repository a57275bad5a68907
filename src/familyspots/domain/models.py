"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- catalog entities (`Venue`, `Event`, joined under the `Activity` union)
- caller-supplied filter input (`FilterCriteria`)
- discovery output (`DiscoverResult`)

Venues and events share one base (`LocatedActivity`) so the filter engine and the
distance ranking operate over a single polymorphic type, told apart by `kind`.
Records are frozen snapshots; derived views are built with `model_copy`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class LocatedActivity(BaseModel):
    """Fields shared by venues and events: location, age, price, environment, categories."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    location: GeoPoint

    age_min: int | None = Field(default=None, ge=0)
    age_max: int | None = Field(default=None, ge=0)

    is_free: bool = False
    price_min: float | None = Field(default=None, ge=0)
    price_max: float | None = Field(default=None, ge=0)

    is_indoor: bool = False
    is_outdoor: bool = False
    categories: list[str] = Field(default_factory=list)

    city: str | None = None
    province: str | None = None
    address: str | None = None
    description_en: str | None = None
    description_nl: str | None = None
    website: str | None = None
    booking_url: str | None = None
    images: list[str] = Field(default_factory=list)
    average_rating: float | None = None
    total_reviews: int | None = None
    is_featured: bool = False
    weather_dependent: bool = False
    collections: list[dict[str, Any]] = Field(default_factory=list)

    # Kilometers from the caller's location; only set by `familyspots.ranking.distance`.
    distance: float | None = None

    @field_validator("categories")
    @classmethod
    def _dedupe_categories(cls, categories: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for c in categories:
            if c and c.strip():
                seen.setdefault(c.strip(), None)
        return list(seen)

    @model_validator(mode="after")
    def _validate_ranges(self) -> "LocatedActivity":
        if self.age_min is not None and self.age_max is not None and self.age_min > self.age_max:
            raise ValueError("age_min must be <= age_max")
        if (
            not self.is_free
            and self.price_min is not None
            and self.price_max is not None
            and self.price_min > self.price_max
        ):
            raise ValueError("price_min must be <= price_max")
        return self


class Venue(LocatedActivity):
    """A permanent place (playground, museum, farm...)."""

    kind: Literal["venue"] = "venue"

    is_seasonal: bool = False
    season_start: str | None = None
    season_end: str | None = None
    opening_hours: dict[str, dict[str, Any]] | None = None


class Event(LocatedActivity):
    """A dated happening at a place."""

    kind: Literal["event"] = "event"

    starts_at: datetime
    ends_at: datetime | None = None

    @model_validator(mode="after")
    def _validate_order(self) -> "Event":
        if self.ends_at is not None and self.ends_at < self.starts_at:
            raise ValueError("ends_at must not be before starts_at")
        return self


Activity = Annotated[Union[Venue, Event], Field(discriminator="kind")]

ActivityKind = Literal["venue", "event"]


class FilterCriteria(BaseModel):
    """Caller-supplied filter toggles.

    Numeric inputs stay strings (as sent by UI form fields); the filter engine parses
    them and ignores any it cannot read. camelCase aliases (`minAge`, `maxDistance`, ...)
    are accepted next to the snake_case names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        frozen=True,
    )

    indoor: bool | None = None
    outdoor: bool | None = None
    free: bool | None = None
    min_age: str | None = None
    max_age: str | None = None
    max_distance: str | None = None
    category_id: str | None = None
    start_date: str | None = None
    end_date: str | None = None


class DiscoverResult(BaseModel):
    """A filtered (and optionally distance-ordered) listing plus the query that built it."""

    generated_at: datetime
    kind: ActivityKind
    criteria: FilterCriteria
    origin: GeoPoint | None = None
    sort: Literal["distance", "default"] = "default"
    total_candidates: int = 0
    results: list[Activity] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)
