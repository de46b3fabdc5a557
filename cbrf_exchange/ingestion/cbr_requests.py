"""requests-based retriever for the Bank of Russia daily rate feed."""

from __future__ import annotations

from typing import Any

import requests

from cbrf_exchange.errors import FetchError, ParseError
from cbrf_exchange.ingestion.cbr_xml import document_from_xml
from cbrf_exchange.utils.logger import get_logger

LOGGER = get_logger(__name__)

CBR_DAILY_URL = "http://cbr.ru/scripts/XML_daily.asp"
DEFAULT_TIMEOUT_SECONDS = 5.0
USER_AGENT = "cbrf-exchange/1.0"


class CBRRequestsClient:
    """Download ``XML_daily`` and hand back its document tree."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be a positive number of seconds")
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": USER_AGENT,
                "Accept": "application/xml,text/xml;q=0.9,*/*;q=0.8",
            }
        )

    def fetch_document(self, url: str = CBR_DAILY_URL) -> dict[str, Any]:
        """Retrieve ``url`` and parse the XML body into a document tree.

        Every transport problem, a non-2xx status, and a body that is not a
        ``ValCurs`` document surface as :class:`FetchError`.
        """

        LOGGER.debug("Requesting rate feed from %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout as exc:
            raise FetchError(f"Timed out after {self.timeout}s fetching {url}") from exc
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "?"
            raise FetchError(f"Rate feed responded with HTTP {status} for {url}") from exc
        except requests.RequestException as exc:
            raise FetchError(f"Unable to reach rate feed at {url}: {exc}") from exc

        try:
            document = document_from_xml(response.content)
        except ParseError as exc:
            raise FetchError(f"Malformed response from {url}: {exc}") from exc
        LOGGER.info("Fetched rate feed from %s", url)
        return document

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "CBRRequestsClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["CBR_DAILY_URL", "CBRRequestsClient", "DEFAULT_TIMEOUT_SECONDS"]
