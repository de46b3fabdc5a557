from __future__ import annotations

import pytest

import cbrf_exchange
from cbrf_exchange import (
    CacheBackendKind,
    CacheState,
    CbrfExchange,
    FetchError,
    build_backend,
)
from cbrf_exchange.config import Settings, get_settings
from cbrf_exchange.db import DEFAULT_SQLITE_DB_PATH
from cbrf_exchange.db.memory_backend import MemoryCacheBackend
from cbrf_exchange.db.sqlite_backend import SQLiteCacheBackend
from conftest import FakeClock, FakeRetriever


@pytest.fixture()
def exchange(retriever: FakeRetriever, memory_backend: MemoryCacheBackend, clock: FakeClock):
    settings = Settings(cache_url="memory://", selected_currencies=["usd", "JPY"])
    with CbrfExchange(settings, backend=memory_backend, retriever=retriever, clock=clock) as client:
        yield client


def test_version_is_exposed() -> None:
    assert isinstance(cbrf_exchange.__version__, str)


def test_end_to_end_conversion(exchange: CbrfExchange, retriever: FakeRetriever) -> None:
    assert exchange.convert(100, "USD") == 9025.0
    assert exchange.convert(100, "ZZZ") == 100
    assert exchange.convert(100, "") == 100
    assert exchange.convert_range([1500, 3000], "JPY") == (901.85, 1803.7)
    assert len(retriever.calls) == 1


def test_force_refresh_invalidates_and_fetches(exchange: CbrfExchange, retriever) -> None:
    exchange.rates.get()

    exchange.force_refresh()

    assert len(retriever.calls) == 2
    assert exchange.cache_state() is CacheState.FRESH


def test_feed_outage_serves_stale_prices(exchange: CbrfExchange, retriever, clock) -> None:
    exchange.refresh()
    clock.advance(hours=24)
    retriever.fail_with()

    assert exchange.convert(100, "USD") == 9025.0


def test_feed_outage_on_cold_cache_leaves_price_unconverted(exchange, retriever) -> None:
    retriever.fail_with()

    assert exchange.convert(100, "USD") == 100
    with pytest.raises(FetchError):
        exchange.refresh()


def test_available_rates_bypass_cache(exchange: CbrfExchange, retriever) -> None:
    exchange.rates.get()

    listing = exchange.available_rates()

    assert [(entry.record.currency_code, entry.selected) for entry in listing] == [
        ("USD", True),
        ("EUR", False),
        ("JPY", True),
    ]
    assert len(retriever.calls) == 2


def test_save_selected_currencies_updates_listing_and_choices(exchange: CbrfExchange) -> None:
    exchange.save_selected_currencies(["eur"])

    assert [entry.record.currency_code for entry in exchange.available_rates() if entry.selected] == [
        "EUR"
    ]
    choices = exchange.currency_choices({"USD": "Dollar", "EUR": "Euro"}, {"EUR": "€"})
    assert choices == {"EUR": "EUR Euro (€)"}


def test_install_and_uninstall(exchange: CbrfExchange, memory_backend) -> None:
    exchange.install()
    assert memory_backend.get("cbrf_exchange_option:selected_currencies") == ["USD", "JPY"]
    exchange.rates.get()

    exchange.uninstall()

    assert exchange.cache_state() is CacheState.EMPTY
    assert memory_backend.get("cbrf_exchange_option:selected_currencies") is None


def test_base_currency_from_settings(retriever, memory_backend, clock) -> None:
    settings = Settings(base_currency="byn")
    client = CbrfExchange(settings, backend=memory_backend, retriever=retriever, clock=clock)

    assert client.lookup("USD").base_currency_code == "BYN"


@pytest.mark.parametrize(
    ("scheme", "expected"),
    [
        ("sqlite", CacheBackendKind.SQLITE),
        ("sqlite+pysqlite", CacheBackendKind.SQLITE),
        ("MEMORY", CacheBackendKind.MEMORY),
    ],
)
def test_backend_kind_from_scheme(scheme, expected) -> None:
    assert CacheBackendKind.from_scheme(scheme) is expected


@pytest.mark.parametrize("scheme", ["", "redis", "postgresql"])
def test_backend_kind_rejects_unknown(scheme) -> None:
    with pytest.raises(ValueError):
        CacheBackendKind.from_scheme(scheme)


def test_build_backend_memory_is_process_wide() -> None:
    first = build_backend("memory://")
    second = build_backend("memory://")

    assert isinstance(first, MemoryCacheBackend)
    assert first is second


def test_build_backend_memory_uses_given_clock(clock: FakeClock) -> None:
    backend = build_backend("memory://", clock=clock)

    assert backend is build_backend("memory://", clock=clock)
    assert backend is not build_backend("memory://")
    backend.set("token", "abc", ttl_seconds=60)
    clock.advance(seconds=60)
    assert backend.get("token") is None


def test_build_backend_sqlite_paths(tmp_path) -> None:
    absolute = build_backend(f"sqlite:///{(tmp_path / 'rates.db').as_posix()}")
    try:
        assert isinstance(absolute, SQLiteCacheBackend)
        assert absolute.db_path == (tmp_path / "rates.db").resolve()
    finally:
        absolute.close()


def test_default_cache_url_points_at_package_database() -> None:
    assert Settings().cache_url.endswith(DEFAULT_SQLITE_DB_PATH.as_posix())


def test_settings_defaults_and_validation(monkeypatch) -> None:
    settings = Settings()
    assert settings.ttl_hours == 12
    assert settings.base_currency == "RUB"
    assert settings.selected_currencies == ["EUR", "USD"]

    with pytest.raises(ValueError):
        Settings(ttl_hours=0)
    with pytest.raises(ValueError):
        Settings(base_currency="rouble")

    monkeypatch.setenv("CBRF_EXCHANGE_TTL_HOURS", "6")
    monkeypatch.setenv("CBRF_EXCHANGE_SELECTED_CURRENCIES", '["try", "uah"]')
    from_env = Settings()
    assert from_env.ttl_hours == 6
    assert from_env.selected_currencies == ["TRY", "UAH"]


def test_get_settings_cached() -> None:
    assert get_settings() is get_settings()
