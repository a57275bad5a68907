"""
Timezone-aware datetime helpers.

Event start times come from the backend as offset-bearing ISO strings, while filter
inputs are often bare dates. Both are normalized to aware datetimes before comparison.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo


def ensure_tz(dt: datetime, timezone: str) -> datetime:
    """Attach `timezone` to a naive datetime; aware values pass through."""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=ZoneInfo(timezone))


def now_in(timezone: str) -> datetime:
    return datetime.now(ZoneInfo(timezone))


def parse_datetime(value: str, timezone: str) -> datetime:
    """Parse an ISO-8601 date or datetime into an aware datetime.

    `2026-05-01` means midnight in `timezone`; a trailing `Z` is read as UTC.
    Raises `ValueError` for anything `fromisoformat` rejects.
    """
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = f"{text[:-1]}+00:00"
    return ensure_tz(datetime.fromisoformat(text), timezone)
