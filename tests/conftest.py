from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from cbrf_exchange.db.memory_backend import MemoryCacheBackend
from cbrf_exchange.errors import FetchError

FEED_XML = """<?xml version="1.0" encoding="windows-1251"?>
<ValCurs Date="18.10.2026" name="Foreign Currency Market">
  <Valute ID="R01235">
    <NumCode>840</NumCode>
    <CharCode>USD</CharCode>
    <Nominal>1</Nominal>
    <Name>Доллар США</Name>
    <Value>90,2500</Value>
  </Valute>
  <Valute ID="R01239">
    <NumCode>978</NumCode>
    <CharCode>EUR</CharCode>
    <Nominal>1</Nominal>
    <Name>Евро</Name>
    <Value>98,7654</Value>
  </Valute>
  <Valute ID="R01820">
    <NumCode>392</NumCode>
    <CharCode>JPY</CharCode>
    <Nominal>100</Nominal>
    <Name>Японских иен</Name>
    <Value>60,1234</Value>
  </Valute>
</ValCurs>
"""


def make_document(*entries: dict[str, Any], date: str = "18.10.2026") -> dict[str, Any]:
    return {"Date": date, "name": "Foreign Currency Market", "Valute": list(entries)}


def valute(code: str, value: str, *, nominal: str = "1", name: str | None = None) -> dict[str, str]:
    return {
        "NumCode": "000",
        "CharCode": code,
        "Nominal": nominal,
        "Name": name or f"{code} name",
        "Value": value,
    }


DEFAULT_DOCUMENT = make_document(
    valute("USD", "90,2500", name="US Dollar"),
    valute("EUR", "98,7654", name="Euro"),
    valute("JPY", "60,1234", nominal="100", name="Japanese Yen"),
)


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeRetriever:
    """Stands in for the HTTP client; records every requested URL."""

    def __init__(self, document: Any = None, *, error: Exception | None = None) -> None:
        self.document = DEFAULT_DOCUMENT if document is None else document
        self.error = error
        self.calls: list[str] = []

    def fetch_document(self, url: str) -> Any:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.document

    def fail_with(self, error: Exception | None = None) -> None:
        self.error = error or FetchError("feed unreachable")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def retriever() -> FakeRetriever:
    return FakeRetriever()


@pytest.fixture()
def memory_backend(clock: FakeClock) -> MemoryCacheBackend:
    return MemoryCacheBackend(clock=clock)
