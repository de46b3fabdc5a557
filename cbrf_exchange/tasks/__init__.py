"""Scheduled task helpers for :mod:`cbrf_exchange`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

__all__ = ["refresh_rates"]

if TYPE_CHECKING:  # pragma: no cover - import only for static analyzers
    from cbrf_exchange.tasks.refresh_job import refresh_rates as refresh_rates


def __getattr__(name: str) -> Any:
    """Lazily expose task helpers to avoid import-time side effects."""

    if name == "refresh_rates":
        from cbrf_exchange.tasks.refresh_job import refresh_rates as _refresh_rates

        return _refresh_rates
    raise AttributeError(f"module 'cbrf_exchange.tasks' has no attribute {name}")
