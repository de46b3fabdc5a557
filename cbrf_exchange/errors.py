"""Exception hierarchy raised by the rate fetch-and-cache subsystem."""

from __future__ import annotations


class CbrfExchangeError(Exception):
    """Base class for every error raised by cbrf_exchange."""


class FetchError(CbrfExchangeError, RuntimeError):
    """The upstream feed could not be retrieved (network, HTTP status, timeout)."""


class ParseError(CbrfExchangeError, ValueError):
    """The feed document lacks the expected ``Valute`` structure."""


__all__ = ["CbrfExchangeError", "FetchError", "ParseError"]
