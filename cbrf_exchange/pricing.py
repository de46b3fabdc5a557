"""Product price conversion on top of :class:`RateCache`."""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol, Sequence

from cbrf_exchange.errors import FetchError, ParseError
from cbrf_exchange.ingestion.models import RateRecord
from cbrf_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)

PRICE_PRECISION = 2

# Currencies a product can be priced in.
CONVERTIBLE_CURRENCIES: tuple[str, ...] = ("EUR", "USD", "TRY", "UAH", "JPY")


class SupportsRateLookup(Protocol):
    def lookup_by_code(self, code: str | None) -> RateRecord | None: ...


def _as_amount(price: float | str | None) -> float | None:
    """Parse a storefront price; blank or non-numeric prices give ``None``."""

    if price is None or (isinstance(price, str) and not price.strip()):
        return None
    try:
        return float(price)
    except (TypeError, ValueError):
        return None


def convert_amount(price: float | str, record: RateRecord) -> float:
    """Return ``price`` foreign units expressed in the base currency, to 2 places."""

    return round(float(price) * (record.value / record.nominal), PRICE_PRECISION)


class PriceConverter:
    """Convert prices quoted in a foreign currency into the store currency.

    Anything that prevents a conversion (no currency set, unknown code, feed
    unavailable with nothing cached, a blank price) leaves the price as it was given.
    """

    def __init__(self, rates: SupportsRateLookup) -> None:
        self.rates = rates

    def _rate_for(self, currency_code: str | None) -> RateRecord | None:
        if not currency_code:
            return None
        try:
            return self.rates.lookup_by_code(currency_code)
        except (FetchError, ParseError) as exc:
            LOGGER.warning("No rates available for %s, price left unconverted: %s", currency_code, exc)
            return None

    def convert(
        self, price: float | str | None, currency_code: str | None
    ) -> float | str | None:
        amount = _as_amount(price)
        if amount is None:
            return price
        record = self._rate_for(currency_code)
        if record is None:
            return price
        return convert_amount(amount, record)

    def convert_range(
        self, prices: Iterable[float | str | None], currency_code: str | None
    ) -> tuple[float | str, float | str] | None:
        """Return converted ``(lowest, highest)`` for a product with several variations.

        ``None`` when fewer than two distinct prices are given. Blank or
        non-numeric prices are ignored.
        """

        amounts = (_as_amount(price) for price in prices)
        distinct = sorted({amount for amount in amounts if amount is not None})
        if len(distinct) < 2:
            return None
        return self.convert(distinct[0], currency_code), self.convert(distinct[-1], currency_code)


def currency_choices(
    store_currencies: Mapping[str, str],
    symbols: Mapping[str, str] | None = None,
    *,
    allowed: Sequence[str] = CONVERTIBLE_CURRENCIES,
) -> dict[str, str]:
    """Build ``{"USD": "USD US Dollar ($)"}`` labels for a product currency select.

    Only codes present in both ``store_currencies`` and ``allowed`` are offered,
    in the store's order.
    """

    symbols = symbols or {}
    return {
        code: f"{code} {title} ({symbols.get(code, '')})"
        for code, title in store_currencies.items()
        if code in allowed
    }


def describe_rate(record: RateRecord, symbol: str = "") -> str:
    """Render a rate the way the settings listing shows it."""

    suffix = f" {symbol}" if symbol else ""
    value = f"{record.value:f}".rstrip("0").rstrip(".")
    return f"{record.currency_code} ({record.nominal} {record.name} = {value}{suffix})"


__all__ = [
    "CONVERTIBLE_CURRENCIES",
    "PRICE_PRECISION",
    "PriceConverter",
    "SupportsRateLookup",
    "convert_amount",
    "currency_choices",
    "describe_rate",
]
