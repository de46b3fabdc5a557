"""Data models shared across ingestion and caching modules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping

CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True, slots=True)
class RateRecord:
    """One currency's quote from the daily feed.

    ``value`` is the amount of ``base_currency_code`` paid for ``nominal`` units of
    the foreign currency, so the per-unit rate is ``value / nominal``.
    """

    currency_code: str
    numeric_code: str
    name: str
    nominal: int
    value: float
    base_currency_code: str

    def __post_init__(self) -> None:
        if not CURRENCY_CODE_PATTERN.match(self.currency_code):
            raise ValueError(f"Invalid currency code: {self.currency_code!r}")
        if self.nominal <= 0:
            raise ValueError(f"Nominal must be positive for {self.currency_code}")
        if self.value <= 0:
            raise ValueError(f"Value must be positive for {self.currency_code}")

    @property
    def unit_rate(self) -> float:
        """Return the base-currency amount for a single foreign unit."""

        return self.value / self.nominal

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency_code": self.currency_code,
            "numeric_code": self.numeric_code,
            "name": self.name,
            "nominal": self.nominal,
            "value": self.value,
            "base_currency_code": self.base_currency_code,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RateRecord":
        return cls(
            currency_code=str(payload["currency_code"]),
            numeric_code=str(payload.get("numeric_code", "")),
            name=str(payload.get("name", "")),
            nominal=int(payload["nominal"]),
            value=float(payload["value"]),
            base_currency_code=str(payload["base_currency_code"]),
        )


@dataclass(frozen=True, slots=True)
class RateSnapshot:
    """Immutable set of records produced by a single successful refresh."""

    records: tuple[RateRecord, ...]
    fetched_at: datetime
    expires_at: datetime
    feed_date: date | None = None
    _index: dict[str, RateRecord] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        if self.expires_at < self.fetched_at:
            raise ValueError("expires_at must not precede fetched_at")
        index: dict[str, RateRecord] = {}
        for record in self.records:
            if record.currency_code in index:
                raise ValueError(f"Duplicate currency code in snapshot: {record.currency_code}")
            index[record.currency_code] = record
        object.__setattr__(self, "records", tuple(self.records))
        object.__setattr__(self, "_index", index)

    def is_fresh(self, now: datetime) -> bool:
        """Return True while ``now`` is before the expiry instant."""

        return now < self.expires_at

    def find(self, currency_code: str) -> RateRecord | None:
        return self._index.get(currency_code)

    @property
    def currency_codes(self) -> list[str]:
        return [record.currency_code for record in self.records]

    def to_dict(self) -> dict[str, Any]:
        return {
            "records": [record.to_dict() for record in self.records],
            "fetched_at": self.fetched_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "feed_date": self.feed_date.isoformat() if self.feed_date else None,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RateSnapshot":
        feed_date_raw = payload.get("feed_date")
        return cls(
            records=tuple(RateRecord.from_dict(row) for row in payload["records"]),
            fetched_at=datetime.fromisoformat(payload["fetched_at"]),
            expires_at=datetime.fromisoformat(payload["expires_at"]),
            feed_date=date.fromisoformat(feed_date_raw) if feed_date_raw else None,
        )


__all__ = ["CURRENCY_CODE_PATTERN", "RateRecord", "RateSnapshot"]
