"""In-process cache backend."""

from __future__ import annotations

import copy
import threading
from datetime import datetime, timedelta
from typing import Any

from cbrf_exchange.db.base_backend import CacheBackend, validate_ttl
from cbrf_exchange.utils.clock import Clock, utc_now


class MemoryCacheBackend(CacheBackend):
    """Dictionary-backed storage shared by every caller in the same process."""

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[Any, datetime | None]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        validate_ttl(ttl_seconds)
        expires_at = (
            self._clock() + timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        )
        # Copy so later mutation by the caller cannot leak into the stored entry.
        stored = copy.deepcopy(value)
        with self._lock:
            self._entries[key] = (stored, expires_at)

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= self._clock():
                del self._entries[key]
                return None
        return copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None


__all__ = ["MemoryCacheBackend"]
