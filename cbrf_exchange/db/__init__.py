"""Helpers for locating the default on-disk cache database."""

from __future__ import annotations

from pathlib import Path
from typing import Final

__all__ = ["DEFAULT_SQLITE_DB_PATH", "default_cache_url"]

# Resolved relative to this file so the default does not depend on the working
# directory the storefront process was started from.
DEFAULT_SQLITE_DB_PATH: Final[Path] = Path(__file__).resolve().with_name("cache.db")


def default_cache_url() -> str:
    """Return the SQLAlchemy URL of the default cache database."""

    return f"sqlite:///{DEFAULT_SQLITE_DB_PATH.as_posix()}"
