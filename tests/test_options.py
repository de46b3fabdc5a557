from __future__ import annotations

import pytest

from cbrf_exchange.db.memory_backend import MemoryCacheBackend
from cbrf_exchange.options import DEFAULT_OPTIONS, OptionsStore


def test_defaults_are_served_before_setup(memory_backend: MemoryCacheBackend) -> None:
    options = OptionsStore(memory_backend)

    assert options.selected_currencies() == ["EUR", "USD"]
    assert options.ttl_hours() == 12
    assert options.feed_url() == "http://cbr.ru/scripts/XML_daily.asp"
    assert options.cache_key() == "cbrf_exchange_rates"


def test_setup_keeps_existing_values(memory_backend: MemoryCacheBackend) -> None:
    options = OptionsStore(memory_backend)
    options.set("ttl_hours", 6)

    options.setup()

    assert options.ttl_hours() == 6
    assert memory_backend.get("cbrf_exchange_option:feed_url") == DEFAULT_OPTIONS["feed_url"]


def test_remove_deletes_every_option(memory_backend: MemoryCacheBackend) -> None:
    options = OptionsStore(memory_backend)
    options.setup()
    options.set("ttl_hours", 3)

    options.remove()

    for name in DEFAULT_OPTIONS:
        assert memory_backend.get(f"cbrf_exchange_option:{name}") is None
    assert options.ttl_hours() == 12


def test_save_selected_currencies_normalises_and_dedupes(memory_backend) -> None:
    options = OptionsStore(memory_backend)

    saved = options.save_selected_currencies(["usd", " EUR", "USD", "jpy"])

    assert saved == ["USD", "EUR", "JPY"]
    assert options.selected_currencies() == ["USD", "EUR", "JPY"]


def test_save_selected_currencies_rejects_bad_codes(memory_backend) -> None:
    options = OptionsStore(memory_backend)

    with pytest.raises(ValueError):
        options.save_selected_currencies(["USD", "dollars"])
    assert options.selected_currencies() == ["EUR", "USD"]


def test_unknown_option_name(memory_backend) -> None:
    options = OptionsStore(memory_backend)

    with pytest.raises(KeyError):
        options.get("colour")
    with pytest.raises(KeyError):
        options.set("colour", "blue")


def test_non_positive_ttl_option_is_rejected(memory_backend) -> None:
    options = OptionsStore(memory_backend)
    options.set("ttl_hours", 0)

    with pytest.raises(ValueError):
        options.ttl_hours()


def test_custom_defaults(memory_backend) -> None:
    options = OptionsStore(memory_backend, defaults={**DEFAULT_OPTIONS, "ttl_hours": 24})

    assert options.ttl_hours() == 24


def test_overrides_beat_stored_values_without_persisting(memory_backend: MemoryCacheBackend) -> None:
    OptionsStore(memory_backend).set("ttl_hours", 6)

    options = OptionsStore(memory_backend, overrides={"ttl_hours": 2})

    assert options.ttl_hours() == 2
    assert memory_backend.get("cbrf_exchange_option:ttl_hours") == 6


def test_unknown_override_is_rejected(memory_backend: MemoryCacheBackend) -> None:
    with pytest.raises(KeyError):
        OptionsStore(memory_backend, overrides={"colour": "red"})
