"""
Catalog snapshot loader.

A snapshot is a local JSON file (default: `data/catalogs/snapshot.json`) holding raw
backend rows: `{"venues": [...], "events": [...]}`. Rows go through the same adapters
as live backend responses, so a snapshot and the backend yield identical models.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from familyspots.catalog.adapters import events_from_rows, venues_from_rows
from familyspots.core.env import resolve_project_path
from familyspots.domain.models import Event, Venue


class CatalogError(RuntimeError):
    """Raised when a snapshot file is missing or not shaped like a snapshot."""


@dataclass(frozen=True)
class CatalogSnapshot:
    venues: list[Venue] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)


def read_snapshot_rows(path: str | Path) -> dict[str, list[dict[str, Any]]]:
    """Read the raw row lists from a snapshot file."""
    resolved = resolve_project_path(path)
    try:
        payload = json.loads(resolved.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise CatalogError(f"Catalog snapshot not found: {resolved}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Catalog snapshot is not valid JSON: {resolved}") from e

    if not isinstance(payload, dict):
        raise CatalogError(f"Catalog snapshot root must be an object: {resolved}")

    out: dict[str, list[dict[str, Any]]] = {}
    for key in ["venues", "events"]:
        rows = payload.get(key) or []
        if not isinstance(rows, list):
            raise CatalogError(f"Catalog snapshot '{key}' must be a list: {resolved}")
        out[key] = [r for r in rows if isinstance(r, dict)]
    return out


def load_snapshot(path: str | Path) -> CatalogSnapshot:
    """Load and validate a snapshot file into domain models."""
    rows = read_snapshot_rows(path)
    return CatalogSnapshot(
        venues=venues_from_rows(rows["venues"]),
        events=events_from_rows(rows["events"]),
    )


def write_snapshot_rows(path: str | Path, *, venues: list[dict[str, Any]], events: list[dict[str, Any]]) -> Path:
    """Write raw rows as a snapshot file (used by `scripts/catalog_snapshot.py`)."""
    resolved = resolve_project_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    payload = {"venues": venues, "events": events}
    resolved.write_text(json.dumps(payload, ensure_ascii=False, indent=2, default=str), encoding="utf-8")
    return resolved
