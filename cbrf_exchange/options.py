"""Persisted, runtime-editable plugin options."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from cbrf_exchange.config import (
    DEFAULT_CACHE_KEY,
    DEFAULT_SELECTED_CURRENCIES,
    DEFAULT_TTL_HOURS,
    normalise_currency_code,
)
from cbrf_exchange.db.base_backend import CacheBackend
from cbrf_exchange.ingestion.cbr_requests import CBR_DAILY_URL
from cbrf_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)

OPTION_PREFIX = "cbrf_exchange_option:"

DEFAULT_OPTIONS: dict[str, Any] = {
    "selected_currencies": list(DEFAULT_SELECTED_CURRENCIES),
    "feed_url": CBR_DAILY_URL,
    "cache_key": DEFAULT_CACHE_KEY,
    "ttl_hours": DEFAULT_TTL_HOURS,
}


class OptionsStore:
    """Options kept in the cache backend without expiry.

    ``defaults`` seed :meth:`setup` and answer :meth:`get` for anything that has
    not been persisted yet. ``overrides`` win over stored values for the lifetime
    of this store and are never persisted.
    """

    def __init__(
        self,
        backend: CacheBackend,
        defaults: dict[str, Any] | None = None,
        *,
        overrides: Mapping[str, Any] | None = None,
    ) -> None:
        self.backend = backend
        self.defaults = dict(DEFAULT_OPTIONS if defaults is None else defaults)
        self.overrides = dict(overrides or {})
        for name in self.overrides:
            self._check_name(name)

    @staticmethod
    def _key(name: str) -> str:
        return f"{OPTION_PREFIX}{name}"

    def _check_name(self, name: str) -> None:
        if name not in self.defaults:
            raise KeyError(f"Unknown option: {name}")

    def setup(self) -> None:
        """Persist every default that is not stored yet; existing values are kept."""

        for name, value in self.defaults.items():
            if self.backend.get(self._key(name)) is None:
                self.backend.set(self._key(name), value)
        LOGGER.info("Options initialised: %s", ", ".join(self.defaults))

    def remove(self) -> None:
        for name in self.defaults:
            self.backend.delete(self._key(name))
        LOGGER.info("Options removed")

    def get(self, name: str) -> Any:
        self._check_name(name)
        if name in self.overrides:
            return self.overrides[name]
        stored = self.backend.get(self._key(name))
        return self.defaults[name] if stored is None else stored

    def set(self, name: str, value: Any) -> None:
        self._check_name(name)
        self.backend.set(self._key(name), value)

    def ttl_hours(self) -> int:
        value = int(self.get("ttl_hours"))
        if value <= 0:
            raise ValueError("ttl_hours must be a positive integer")
        return value

    def feed_url(self) -> str:
        return str(self.get("feed_url"))

    def cache_key(self) -> str:
        return str(self.get("cache_key"))

    def selected_currencies(self) -> list[str]:
        return [str(code) for code in self.get("selected_currencies")]

    def save_selected_currencies(self, codes: Iterable[str]) -> list[str]:
        """Validate, de-duplicate (keeping order) and persist the enabled codes."""

        selected: list[str] = []
        for code in codes:
            normalised = normalise_currency_code(code)
            if normalised not in selected:
                selected.append(normalised)
        self.set("selected_currencies", selected)
        LOGGER.info("Saved %s selected currencies", len(selected))
        return selected


__all__ = ["DEFAULT_OPTIONS", "OPTION_PREFIX", "OptionsStore"]
