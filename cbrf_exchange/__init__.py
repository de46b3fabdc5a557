"""Public interface for the cbrf_exchange package."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any, Iterable, Mapping
from urllib.parse import urlparse

from cbrf_exchange.config import Settings, get_settings
from cbrf_exchange.db import DEFAULT_SQLITE_DB_PATH
from cbrf_exchange.db.base_backend import CacheBackend
from cbrf_exchange.db.memory_backend import MemoryCacheBackend
from cbrf_exchange.db.sqlite_backend import SQLiteCacheBackend
from cbrf_exchange.errors import CbrfExchangeError, FetchError, ParseError
from cbrf_exchange.ingestion.cbr_requests import CBRRequestsClient
from cbrf_exchange.ingestion.cbr_xml import parse_feed
from cbrf_exchange.ingestion.models import RateRecord, RateSnapshot
from cbrf_exchange.ingestion.strategy import DocumentRetriever
from cbrf_exchange.options import OptionsStore
from cbrf_exchange.pricing import PriceConverter, currency_choices
from cbrf_exchange.rate_cache import CacheState, RateCache
from cbrf_exchange.utils.clock import Clock, utc_now

__all__ = [
    "__version__",
    "CacheBackendKind",
    "CacheState",
    "CbrfExchange",
    "CbrfExchangeError",
    "FetchError",
    "ParseError",
    "RateAvailability",
    "RateCache",
    "RateRecord",
    "RateSnapshot",
    "build_backend",
    "default_exchange",
    "parse_feed",
    "refresh_rates",
]

try:
    __version__ = importlib_metadata.version("cbrf-exchange")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "1.0.0"


def refresh_rates(*args, **kwargs):
    from cbrf_exchange.tasks.refresh_job import refresh_rates as _refresh_rates

    return _refresh_rates(*args, **kwargs)


class CacheBackendKind(str, Enum):
    """Supported storage engines for the rate cache."""

    MEMORY = "memory"
    SQLITE = "sqlite"

    @classmethod
    def from_scheme(cls, scheme: str) -> "CacheBackendKind":
        """Normalise URL schemes such as ``sqlite+pysqlite`` into a backend kind."""

        if not scheme:
            raise ValueError("cache_url must include a scheme (e.g. sqlite:// or memory://)")
        base_scheme, _, _driver = scheme.lower().partition("+")
        if base_scheme == "sqlite":
            return cls.SQLITE
        if base_scheme == "memory":
            return cls.MEMORY
        raise ValueError("Unsupported cache backend. Supported values are SQLite and memory.")


@lru_cache
def _shared_memory_backend(clock: Clock) -> MemoryCacheBackend:
    return MemoryCacheBackend(clock=clock)


def build_backend(url: str, *, clock: Clock = utc_now) -> CacheBackend:
    """Create the cache backend described by ``url``.

    ``memory://`` returns the process-wide in-memory store that expires entries
    against ``clock``; each distinct clock gets its own store. ``sqlite:///cache.db``
    (relative) and ``sqlite:////var/cache/rates.db`` (absolute) follow the
    SQLAlchemy URL convention.
    """

    parsed = urlparse(url)
    kind = CacheBackendKind.from_scheme(parsed.scheme)
    if kind is CacheBackendKind.MEMORY:
        return _shared_memory_backend(clock)
    db_path = parsed.path[1:] if parsed.path not in ("", "/") else ""
    return SQLiteCacheBackend(Path(db_path) if db_path else DEFAULT_SQLITE_DB_PATH, clock=clock)


@dataclass(slots=True)
class RateAvailability:
    """A feed rate paired with whether the shop enabled it for conversion."""

    record: RateRecord
    selected: bool


class CbrfExchange:
    """Package facade wiring settings, storage, the feed client and the cache."""

    __slots__ = (
        "settings",
        "backend",
        "options",
        "retriever",
        "rates",
        "converter",
        "_owns_backend",
        "_owns_retriever",
    )

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        backend: CacheBackend | None = None,
        retriever: DocumentRetriever | None = None,
        clock: Clock = utc_now,
        option_overrides: Mapping[str, Any] | None = None,
    ) -> None:
        """Configure the rate cache.

        Without arguments everything comes from :func:`get_settings`: the cache
        lives at ``settings.cache_url`` and rates are downloaded with
        :class:`CBRRequestsClient`. Tests and host platforms can inject their
        own ``backend``, ``retriever`` and ``clock`` instead.

        ``option_overrides`` (for example ``{"ttl_hours": 3}``) take precedence
        over options persisted by :meth:`install` without replacing them.
        """

        self.settings = settings or get_settings()
        self._owns_backend = backend is None
        self._owns_retriever = retriever is None
        self.backend = backend or build_backend(self.settings.cache_url, clock=clock)
        self.options = OptionsStore(
            self.backend,
            defaults={
                "selected_currencies": list(self.settings.selected_currencies),
                "feed_url": self.settings.feed_url,
                "cache_key": self.settings.cache_key,
                "ttl_hours": self.settings.ttl_hours,
            },
            overrides=option_overrides,
        )
        self.retriever = retriever or CBRRequestsClient(
            timeout=self.settings.http_timeout_seconds
        )
        self.rates = RateCache(
            self.retriever,
            self.backend,
            options=self.options,
            base_currency_code=self.settings.base_currency,
            clock=clock,
        )
        self.converter = PriceConverter(self.rates)

    def install(self) -> None:
        """Persist default options; values saved earlier are kept."""

        self.options.setup()

    def uninstall(self) -> None:
        """Remove the cached snapshot and every persisted option."""

        self.rates.reset()

    def refresh(self) -> RateSnapshot:
        return self.rates.refresh()

    def force_refresh(self) -> RateSnapshot:
        """Drop the cached snapshot and fetch a new one straight away."""

        self.rates.invalidate()
        return self.rates.get()

    def lookup(self, currency_code: str | None) -> RateRecord | None:
        return self.rates.lookup_by_code(currency_code)

    def convert(
        self, price: float | str | None, currency_code: str | None
    ) -> float | str | None:
        return self.converter.convert(price, currency_code)

    def convert_range(
        self, prices: Iterable[float | str | None], currency_code: str | None
    ):
        return self.converter.convert_range(prices, currency_code)

    def available_rates(self) -> list[RateAvailability]:
        """Download the feed directly, bypassing the cache, for the settings listing."""

        document = self.retriever.fetch_document(self.options.feed_url())
        selected = set(self.options.selected_currencies())
        return [
            RateAvailability(record=record, selected=record.currency_code in selected)
            for record in parse_feed(document, self.settings.base_currency)
        ]

    def save_selected_currencies(self, codes: Iterable[str]) -> list[str]:
        return self.options.save_selected_currencies(codes)

    def currency_choices(
        self, store_currencies: Mapping[str, str], symbols: Mapping[str, str] | None = None
    ) -> dict[str, str]:
        """Select options for a product, limited to the currencies enabled in settings."""

        return currency_choices(
            store_currencies, symbols, allowed=self.options.selected_currencies()
        )

    def cache_state(self) -> CacheState:
        return self.rates.state()

    def close(self) -> None:
        if self._owns_retriever:
            close = getattr(self.retriever, "close", None)
            if callable(close):
                close()
        if self._owns_backend:
            self.backend.close()

    def __enter__(self) -> "CbrfExchange":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@lru_cache
def default_exchange() -> CbrfExchange:
    """Return the process-wide facade built from environment settings."""

    return CbrfExchange()
