"""Cached access to the daily rate snapshot.

:class:`RateCache` owns the single stored :class:`RateSnapshot`. A refresh fetches
the feed, parses it and replaces the stored snapshot with one backend write, so a
reader sees either the previous snapshot or the new one and nothing in between.
Concurrent callers that hit an expired snapshot may each trigger a refresh; the
last write wins.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum

from cbrf_exchange.db.base_backend import CacheBackend
from cbrf_exchange.errors import FetchError, ParseError
from cbrf_exchange.ingestion.cbr_xml import CBRFeedParser, feed_date
from cbrf_exchange.ingestion.models import RateRecord, RateSnapshot
from cbrf_exchange.ingestion.strategy import DocumentRetriever
from cbrf_exchange.options import OptionsStore
from cbrf_exchange.utils.clock import Clock, utc_now
from cbrf_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)


class CacheState(str, Enum):
    """Lifecycle of the stored snapshot."""

    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


class RateCache:
    """Serve currency lookups from a TTL-bound snapshot of the rate feed."""

    def __init__(
        self,
        retriever: DocumentRetriever,
        backend: CacheBackend,
        *,
        options: OptionsStore | None = None,
        base_currency_code: str = "RUB",
        clock: Clock = utc_now,
    ) -> None:
        self.retriever = retriever
        self.backend = backend
        self.options = options or OptionsStore(backend)
        self.parser = CBRFeedParser(base_currency_code)
        self._clock = clock

    @property
    def cache_key(self) -> str:
        return self.options.cache_key()

    def _load(self) -> RateSnapshot | None:
        payload = self.backend.get(self.cache_key)
        if payload is None:
            return None
        try:
            return RateSnapshot.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            LOGGER.warning("Discarding unreadable cached snapshot: %s", exc)
            return None

    def peek(self) -> RateSnapshot | None:
        """Return the stored snapshot, fresh or stale, without fetching anything."""

        return self._load()

    def state(self) -> CacheState:
        snapshot = self._load()
        if snapshot is None:
            return CacheState.EMPTY
        return CacheState.FRESH if snapshot.is_fresh(self._clock()) else CacheState.STALE

    def refresh(self) -> RateSnapshot:
        """Fetch and parse the feed, then replace the stored snapshot.

        Raises :class:`FetchError` or :class:`ParseError`; in both cases the
        stored snapshot is left exactly as it was.
        """

        url = self.options.feed_url()
        ttl = timedelta(hours=self.options.ttl_hours())
        document = self.retriever.fetch_document(url)
        records = self.parser.parse(document)
        if not records:
            raise ParseError(f"Rate feed at {url} contained no usable records")
        fetched_at = self._clock()
        snapshot = RateSnapshot(
            records=tuple(records),
            fetched_at=fetched_at,
            expires_at=fetched_at + ttl,
            feed_date=feed_date(document),
        )
        self.backend.set(self.cache_key, snapshot.to_dict())
        LOGGER.info(
            "Cached %s rates from %s (feed date %s), fresh until %s",
            len(snapshot.records),
            url,
            snapshot.feed_date,
            snapshot.expires_at.isoformat(),
        )
        return snapshot

    def get(self) -> RateSnapshot:
        """Return the stored snapshot, refreshing it first when missing or expired.

        When the refresh of an expired snapshot fails, the expired snapshot is
        returned instead of the error. With nothing stored the error propagates.
        """

        snapshot = self._load()
        if snapshot is not None and snapshot.is_fresh(self._clock()):
            LOGGER.debug("Serving cached rates until %s", snapshot.expires_at)
            return snapshot
        try:
            return self.refresh()
        except (FetchError, ParseError) as exc:
            if snapshot is None:
                raise
            LOGGER.warning(
                "Rate refresh failed (%s); serving rates that expired at %s",
                exc,
                snapshot.expires_at.isoformat(),
            )
            return snapshot

    def lookup_by_code(self, code: str | None) -> RateRecord | None:
        """Return the record for ``code`` (exact, case-sensitive) or ``None``.

        An empty code returns ``None`` without touching the cache.
        """

        if not code:
            return None
        return self.get().find(code)

    def invalidate(self) -> None:
        """Drop the stored snapshot so the next :meth:`get` fetches again."""

        self.backend.delete(self.cache_key)
        LOGGER.info("Rate cache invalidated")

    def reset(self) -> None:
        """Drop the stored snapshot together with every persisted option."""

        self.backend.delete(self.cache_key)
        self.options.remove()
        LOGGER.info("Rate cache and options reset")


__all__ = ["CacheState", "RateCache"]
