"""Key-value persistence interface used to hold the cached rate snapshot."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class CacheBackend(ABC):
    """Common interface implemented by every cache storage backend.

    Values must be JSON-serialisable. ``ttl_seconds=None`` stores an entry that
    never expires; an expired entry reads back as ``None``. A single ``set`` either
    replaces the stored value completely or leaves it untouched.
    """

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the live value stored under ``key`` or ``None``."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; return True when something was deleted."""

    def close(self) -> None:  # pragma: no cover - optional cleanup hook
        """Backends may override to release connections/resources."""

    def __enter__(self) -> "CacheBackend":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def validate_ttl(ttl_seconds: int | None) -> None:
    if ttl_seconds is not None and ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be positive or None")


__all__ = ["CacheBackend", "validate_ttl"]
