"""Configuration."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cbrf_exchange.db import default_cache_url
from cbrf_exchange.ingestion.cbr_requests import CBR_DAILY_URL, DEFAULT_TIMEOUT_SECONDS
from cbrf_exchange.ingestion.models import CURRENCY_CODE_PATTERN

DEFAULT_CACHE_KEY = "cbrf_exchange_rates"
DEFAULT_TTL_HOURS = 12
DEFAULT_SELECTED_CURRENCIES = ("EUR", "USD")


def normalise_currency_code(value: str) -> str:
    """Upper-case ``value`` and make sure it looks like a 3-letter code."""

    code = str(value).strip().upper()
    if not CURRENCY_CODE_PATTERN.match(code):
        raise ValueError(f"Invalid currency code: {value!r}")
    return code


class Settings(BaseSettings):
    """Settings read from ``CBRF_EXCHANGE_*`` environment variables or ``.env``."""

    feed_url: str = CBR_DAILY_URL
    ttl_hours: int = Field(default=DEFAULT_TTL_HOURS, gt=0)
    base_currency: str = "RUB"
    selected_currencies: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SELECTED_CURRENCIES)
    )
    cache_key: str = DEFAULT_CACHE_KEY
    cache_url: str = Field(default_factory=default_cache_url)
    http_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="CBRF_EXCHANGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("base_currency")
    @classmethod
    def _check_base_currency(cls, value: str) -> str:
        return normalise_currency_code(value)

    @field_validator("selected_currencies")
    @classmethod
    def _check_selected_currencies(cls, value: list[str]) -> list[str]:
        return [normalise_currency_code(code) for code in value]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = [
    "DEFAULT_CACHE_KEY",
    "DEFAULT_SELECTED_CURRENCIES",
    "DEFAULT_TTL_HOURS",
    "Settings",
    "get_settings",
    "normalise_currency_code",
]
