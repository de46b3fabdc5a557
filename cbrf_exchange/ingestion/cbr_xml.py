"""Parsing helpers for the Bank of Russia ``XML_daily`` rate feed.

The feed is a ``ValCurs`` element holding one ``Valute`` element per currency::

    <ValCurs Date="19.10.2026" name="Foreign Currency Market">
      <Valute ID="R01235">
        <NumCode>840</NumCode>
        <CharCode>USD</CharCode>
        <Nominal>1</Nominal>
        <Name>US Dollar</Name>
        <Value>90,2500</Value>
      </Valute>
    </ValCurs>

:func:`document_from_xml` turns that markup into a plain document tree
(``{"Date": ..., "Valute": [{"CharCode": ...}, ...]}``) and
:class:`CBRFeedParser` turns the tree into validated :class:`RateRecord` rows.
Parsing is pure: no network access and no state kept between calls.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Mapping

from bs4 import BeautifulSoup

from cbrf_exchange.errors import ParseError
from cbrf_exchange.ingestion.models import RateRecord
from cbrf_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)

VALUE_PRECISION = 4
FEED_DATE_FORMAT = "%d.%m.%Y"
REQUIRED_FIELDS = ("CharCode", "Nominal", "Value")

_MARKUP_RE = re.compile(r"<[^>]*>")
_NON_NUMERIC_RE = re.compile(r"[^0-9.-]")
_DIGIT_RE = re.compile(r"\d")


def normalise_value(raw: object | None) -> float | None:
    """Convert a locale-formatted feed number into a float rounded to 4 places.

    Commas are treated as decimal separators, then everything except digits,
    ``-`` and ``.`` is discarded. Returns ``None`` when nothing numeric is left.
    The cached ``value`` field and any on-page listing both go through here.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return round(float(raw), VALUE_PRECISION)
    text = _MARKUP_RE.sub("", str(raw)).replace(",", ".")
    cleaned = _NON_NUMERIC_RE.sub("", text)
    if not _DIGIT_RE.search(cleaned):
        return None
    try:
        return round(float(cleaned), VALUE_PRECISION)
    except ValueError:
        return None


def _parse_nominal(raw: object | None) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 0 else None
    text = str(raw).strip()
    if not text.isdigit():
        return None
    return int(text)


def _text(entry: Mapping[str, Any], key: str) -> str:
    value = entry.get(key)
    if value is None:
        return ""
    return str(value).strip()


def valute_entries(document: object) -> list[Mapping[str, Any]]:
    """Return the ``Valute`` entries of ``document`` or raise :class:`ParseError`."""

    if not isinstance(document, Mapping):
        raise ParseError("Feed document must be a mapping")
    entries = document.get("Valute")
    # A feed with a single currency collapses into one mapping instead of a list.
    if isinstance(entries, Mapping):
        return [entries]
    if isinstance(entries, (list, tuple)):
        return list(entries)
    raise ParseError("Feed document does not contain a Valute list")


def feed_date(document: object) -> date | None:
    """Return the publication date carried by the feed, if it is readable."""

    if not isinstance(document, Mapping):
        return None
    raw = document.get("Date")
    if not raw:
        return None
    try:
        return datetime.strptime(str(raw).strip(), FEED_DATE_FORMAT).date()
    except ValueError:
        LOGGER.debug("Ignoring unreadable feed date %r", raw)
        return None


class CBRFeedParser:
    """Convert a feed document tree into an ordered list of :class:`RateRecord`."""

    def __init__(self, base_currency_code: str) -> None:
        self.base_currency_code = base_currency_code

    def parse(self, document: object) -> list[RateRecord]:
        records: list[RateRecord] = []
        seen: set[str] = set()
        for position, entry in enumerate(valute_entries(document)):
            record = self.parse_record(entry, position=position)
            if record is None:
                continue
            if record.currency_code in seen:
                LOGGER.warning(
                    "Skipping duplicate feed entry for %s at position %s",
                    record.currency_code,
                    position,
                )
                continue
            seen.add(record.currency_code)
            records.append(record)
        return records

    def parse_record(self, entry: object, *, position: int = 0) -> RateRecord | None:
        """Build one record, or return ``None`` (and log) when the entry is malformed."""

        if not isinstance(entry, Mapping):
            LOGGER.warning("Skipping feed entry %s: not a mapping", position)
            return None
        missing = [key for key in REQUIRED_FIELDS if entry.get(key) in (None, "")]
        if missing:
            LOGGER.warning(
                "Skipping feed entry %s: missing %s", position, ", ".join(missing)
            )
            return None
        nominal = _parse_nominal(entry.get("Nominal"))
        value = normalise_value(entry.get("Value"))
        if nominal is None or value is None:
            LOGGER.warning(
                "Skipping feed entry %s (%s): unreadable nominal %r or value %r",
                position,
                entry.get("CharCode"),
                entry.get("Nominal"),
                entry.get("Value"),
            )
            return None
        try:
            return RateRecord(
                currency_code=_text(entry, "CharCode"),
                numeric_code=_text(entry, "NumCode"),
                name=_text(entry, "Name"),
                nominal=nominal,
                value=value,
                base_currency_code=self.base_currency_code,
            )
        except ValueError as exc:
            LOGGER.warning("Skipping feed entry %s: %s", position, exc)
            return None


def parse_feed(document: object, base_currency_code: str) -> list[RateRecord]:
    """Parse ``document`` without going through the cache."""

    return CBRFeedParser(base_currency_code).parse(document)


def document_from_xml(markup: bytes | str) -> dict[str, Any]:
    """Turn raw ``XML_daily`` markup into the document tree consumed by the parser."""

    soup = BeautifulSoup(markup, "xml")
    root = soup.find("ValCurs")
    if root is None:
        raise ParseError("Feed markup has no ValCurs root element")
    document: dict[str, Any] = {key: value for key, value in root.attrs.items()}
    entries: list[dict[str, str]] = []
    for node in root.find_all("Valute", recursive=False):
        entry = {child.name: child.get_text(strip=True) for child in node.find_all(recursive=False)}
        if node.get("ID"):
            entry["ID"] = node["ID"]
        entries.append(entry)
    if entries:
        document["Valute"] = entries
    return document


__all__ = [
    "CBRFeedParser",
    "FEED_DATE_FORMAT",
    "VALUE_PRECISION",
    "document_from_xml",
    "feed_date",
    "normalise_value",
    "parse_feed",
    "valute_entries",
]
