"""Abstractions for pluggable feed retrieval."""

from __future__ import annotations

from typing import Any, Mapping, Protocol


class DocumentRetriever(Protocol):
    """Contract for fetching the raw rate feed.

    Implementations retrieve the document published at ``url`` and return it as a
    document tree (see :func:`cbrf_exchange.ingestion.cbr_xml.document_from_xml`),
    raising :class:`cbrf_exchange.errors.FetchError` on transport failures.
    """

    def fetch_document(self, url: str) -> Mapping[str, Any]:
        ...  # pragma: no cover - protocol definition


__all__ = ["DocumentRetriever"]
