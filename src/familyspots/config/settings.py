# src/familyspots/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/familyspots/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `FAMILYSPOTS_BACKEND_URL`, `FAMILYSPOTS_BACKEND_API_KEY`)
- an external YAML file via `FAMILYSPOTS_CONFIG_PATH`

Design rule:
- Tuning knobs live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from familyspots.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `familyspots.config`."""
    text = resources.files("familyspots.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "FamilySpots"
    timezone: str = "Europe/Amsterdam"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class CatalogSettings(BaseModel):
    source: Literal["local", "backend"] = "local"
    path: str = "data/catalogs/snapshot.json"


class BackendTablesSettings(BaseModel):
    venues: str = "venues"
    events: str = "events"
    venue_category_links: str = "venue_category_links"
    event_category_links: str = "event_category_links"


class BackendSettings(BaseModel):
    base_url: str = ""
    rest_path: str = "/rest/v1"
    api_key: str | None = None
    tables: BackendTablesSettings = Field(default_factory=BackendTablesSettings)


class DiscoverSettings(BaseModel):
    default_sort: Literal["distance", "default"] = "distance"
    default_limit: int = Field(50, ge=1)
    max_limit: int = Field(200, ge=1)
    featured_limit: int = Field(10, ge=1)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    discover: DiscoverSettings = Field(default_factory=DiscoverSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("FAMILYSPOTS_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    catalog_path = os.getenv("FAMILYSPOTS_CATALOG_PATH")
    if catalog_path:
        data.setdefault("catalog", {})["path"] = catalog_path
    catalog_source = os.getenv("FAMILYSPOTS_CATALOG_SOURCE")
    if catalog_source:
        data.setdefault("catalog", {})["source"] = catalog_source.strip().lower()

    backend_url = os.getenv("FAMILYSPOTS_BACKEND_URL")
    backend_key = os.getenv("FAMILYSPOTS_BACKEND_API_KEY")
    if backend_url:
        data.setdefault("backend", {})["base_url"] = backend_url
    if backend_key:
        data.setdefault("backend", {})["api_key"] = backend_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("FAMILYSPOTS_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
