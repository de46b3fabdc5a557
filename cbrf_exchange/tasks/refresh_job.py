"""CLI + helpers for refreshing the cached Bank of Russia rates.

Schedule ``refresh`` twice a day (cron, systemd timer, ...) to keep the cache warm;
a failed run leaves the cached rates untouched and the next run tries again.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from cbrf_exchange import CbrfExchange
from cbrf_exchange.config import get_settings
from cbrf_exchange.errors import FetchError, ParseError
from cbrf_exchange.ingestion.models import RateSnapshot
from cbrf_exchange.pricing import describe_rate
from cbrf_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = ["refresh_rates", "parse_args", "main"]


def _build_exchange(
    *,
    cache_url: str | None = None,
    feed_url: str | None = None,
    ttl_hours: int | None = None,
) -> CbrfExchange:
    overrides = {
        key: value
        for key, value in {
            "cache_url": cache_url,
            "feed_url": feed_url,
            "ttl_hours": ttl_hours,
        }.items()
        if value is not None
    }
    settings = get_settings().model_copy(update=overrides) if overrides else get_settings()
    # Explicit flags beat options saved by an earlier install.
    option_overrides = {
        key: overrides[key] for key in ("feed_url", "ttl_hours") if key in overrides
    }
    return CbrfExchange(settings, option_overrides=option_overrides)


def refresh_rates(
    *,
    cache_url: str | None = None,
    feed_url: str | None = None,
    ttl_hours: int | None = None,
    exchange: CbrfExchange | None = None,
) -> RateSnapshot | None:
    """Run one scheduled refresh; return ``None`` when the feed could not be used.

    The URL and TTL overrides only apply when the exchange is built here.
    """

    owned = exchange is None
    client = exchange or _build_exchange(
        cache_url=cache_url, feed_url=feed_url, ttl_hours=ttl_hours
    )
    try:
        snapshot = client.refresh()
    except (FetchError, ParseError) as exc:
        LOGGER.error("Scheduled rate refresh failed: %s", exc)
        return None
    finally:
        if owned:
            client.close()
    LOGGER.info("Scheduled rate refresh stored %s rates", len(snapshot.records))
    return snapshot


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--cache-url", dest="cache_url", help="Cache backend URL")
    parser.add_argument("--feed-url", dest="feed_url", help="Rate feed URL")
    parser.add_argument("--ttl-hours", dest="ttl_hours", type=int, help="Cache lifetime in hours")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("refresh", help="Fetch the feed and replace the cached rates")

    show = sub.add_parser("show", help="Print cached rates, fetching them if needed")
    show.add_argument("code", nargs="?", help="Only print this currency code")

    convert = sub.add_parser("convert", help="Convert a price into the base currency")
    convert.add_argument("price", type=float, help="Price in the foreign currency")
    convert.add_argument("code", help="Currency code of the price")

    sub.add_parser("reset", help="Remove cached rates and stored options")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "refresh"
    return args


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command == "refresh":
        snapshot = refresh_rates(
            cache_url=args.cache_url, feed_url=args.feed_url, ttl_hours=args.ttl_hours
        )
        return 0 if snapshot is not None else 1

    with _build_exchange(
        cache_url=args.cache_url, feed_url=args.feed_url, ttl_hours=args.ttl_hours
    ) as exchange:
        if args.command == "reset":
            exchange.uninstall()
            print("Cached rates and options removed")
            return 0
        try:
            if args.command == "convert":
                print(exchange.convert(args.price, args.code.upper()))
                return 0
            if args.code:
                record = exchange.lookup(args.code.upper())
                if record is None:
                    print(f"No rate for {args.code.upper()}", file=sys.stderr)
                    return 1
                print(describe_rate(record))
                return 0
            snapshot = exchange.rates.get()
        except (FetchError, ParseError) as exc:
            print(f"Rates unavailable: {exc}", file=sys.stderr)
            return 1
        for record in snapshot.records:
            print(describe_rate(record))
        print(f"Fresh until {snapshot.expires_at.isoformat()}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
