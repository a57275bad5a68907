"""
Project-root and `.env` helpers.

Backend credentials usually live in a repo-local `.env`, and the default snapshot path
(`data/catalogs/snapshot.json`) is relative. Both are anchored to the project root so
uvicorn, the CLI and `scripts/` behave the same from any working directory.

Env vars:
- `FAMILYSPOTS_PROJECT_ROOT`: force the root directory.
- `FAMILYSPOTS_ENV_FILE`: load this file instead of `<root>/.env`.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_ROOT_MARKERS = (".env", ".git", "pyproject.toml")


def _find_root(start: Path) -> Path | None:
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return None


@lru_cache
def get_project_root() -> Path:
    """Best-guess repository root (cached for the process lifetime)."""
    forced = os.getenv("FAMILYSPOTS_PROJECT_ROOT")
    if forced:
        return Path(forced).expanduser().resolve()

    env_file = os.getenv("FAMILYSPOTS_ENV_FILE")
    if env_file:
        return Path(env_file).expanduser().resolve().parent

    cwd = Path.cwd().resolve()
    return _find_root(cwd) or _find_root(Path(__file__).resolve().parent) or cwd


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load the `.env` file once; variables already in the environment win."""
    env_file = os.getenv("FAMILYSPOTS_ENV_FILE")
    path = Path(env_file).expanduser().resolve() if env_file else get_project_root() / ".env"
    if not path.is_file():
        return None
    load_dotenv(dotenv_path=path, override=False)
    return path


def resolve_project_path(path: str | Path) -> Path:
    """Absolute paths pass through; relative ones resolve against the project root."""
    p = Path(path).expanduser()
    return p if p.is_absolute() else (get_project_root() / p).resolve()
