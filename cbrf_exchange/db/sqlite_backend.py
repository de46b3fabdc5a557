"""SQLite cache backend built on SQLAlchemy."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from sqlalchemy import Column, DateTime, String, Text, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from cbrf_exchange.db import DEFAULT_SQLITE_DB_PATH
from cbrf_exchange.db.base_backend import CacheBackend, validate_ttl
from cbrf_exchange.utils.clock import Clock, utc_now
from cbrf_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class _CacheEntry(Base):
    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


def _as_naive_utc(moment: datetime) -> datetime:
    # SQLite drops tzinfo, so every stored and compared instant is naive UTC.
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


class SQLiteCacheBackend(CacheBackend):
    """Persist cache entries in a SQLite file so every worker process shares them."""

    def __init__(
        self,
        db_path: str | Path = DEFAULT_SQLITE_DB_PATH,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self.engine: Engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self._SessionFactory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False, future=True
        )
        LOGGER.debug("Using SQLite cache database at %s", self.db_path)

    def _now(self) -> datetime:
        return _as_naive_utc(self._clock())

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        validate_ttl(ttl_seconds)
        payload = json.dumps(value, ensure_ascii=False)
        expires_at = self._now() + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        with self._SessionFactory() as session:
            session.merge(_CacheEntry(key=key, value=payload, expires_at=expires_at))
            session.commit()
        LOGGER.debug("Stored cache entry %s (ttl=%s)", key, ttl_seconds)

    def get(self, key: str) -> Any | None:
        with self._SessionFactory() as session:
            entry = session.get(_CacheEntry, key)
            if entry is None:
                return None
            expires_at = entry.expires_at
            if expires_at is not None and expires_at <= self._now():
                session.delete(entry)
                session.commit()
                LOGGER.debug("Cache entry %s expired at %s", key, expires_at)
                return None
            payload = str(entry.value)
        return json.loads(payload)

    def delete(self, key: str) -> bool:
        with self._SessionFactory() as session:
            entry = session.get(_CacheEntry, key)
            if entry is None:
                return False
            session.delete(entry)
            session.commit()
        return True

    def close(self) -> None:
        self.engine.dispose()


__all__ = ["SQLiteCacheBackend"]
