"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the backend catalog.

Design goals:
- Small surface area (GET JSON).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers decide how to fail (the API maps it to a 502).
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx


DEFAULT_USER_AGENT = "familyspots/0.1.0 (+https://local)"

QueryParams = dict[str, Any] | Sequence[tuple[str, Any]]


def build_client(*, base_url: str = "", headers: dict[str, str] | None = None, timeout_seconds: float = 15) -> httpx.Client:
    """Create an `httpx.Client` with the default User-Agent plus `headers`."""
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)
    return httpx.Client(base_url=base_url, headers=request_headers, timeout=timeout_seconds)


def get_json(
    client: httpx.Client,
    url: str,
    *,
    params: QueryParams | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET `url` with `client` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    resp = client.get(url, params=params, headers=headers)
    resp.raise_for_status()
    return resp.json()
