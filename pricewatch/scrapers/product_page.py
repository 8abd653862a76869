# pricewatch/scrapers/product_page.py

"""HTTP fetcher for product pages."""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from pricewatch.config.settings import Settings


class FetchError(Exception):
    """Raised when a product page could not be retrieved at all."""


@dataclass(frozen=True)
class FetchResponse:
    """Status code and decoded body of one page fetch."""

    status_code: int
    body: str


class ProductPageFetcher:
    """Fetches product pages with a browser-impersonating session.

    Every status code is handed back to the caller, since a 404 carries
    meaning for the tracker. Only challenge pages and transport errors
    trigger the cloudscraper fallback.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger("pricewatch.fetcher")
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    def _headers_for(self, url: str) -> dict[str, str]:
        parsed = urlparse(url)
        return {
            **self.settings.FETCH_HEADERS,
            "Referer": f"{parsed.scheme}://{parsed.netloc}/",
        }

    def _is_challenge(self, text: str) -> bool:
        """Check for anti-bot challenge pages."""
        lower = text.lower()
        for marker in self.settings.CHALLENGE_MARKERS:
            if marker in lower:
                self.logger.warning(
                    "Challenge page detected (marker: '%s')", marker
                )
                return True
        return False

    def _fetch_fallback(
        self, url: str, headers: dict[str, str],
    ) -> FetchResponse:
        """Retry through cloudscraper (JS challenge solver)."""
        self.logger.info("Falling back to cloudscraper for %s", url)
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            resp: Any = scraper.get(
                url,
                headers=headers,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            raise FetchError(
                f"cloudscraper fallback failed for {url}: {exc}"
            ) from exc
        text = str(resp.text)
        if self._is_challenge(text):
            raise FetchError(f"Challenge page not solved for {url}")
        return FetchResponse(status_code=int(resp.status_code), body=text)

    def fetch(self, url: str) -> FetchResponse:
        """GET *url* and return its status code and body.

        Raises :class:`FetchError` when neither the primary session nor
        the fallback produced a usable page.
        """
        headers = self._headers_for(url)
        try:
            resp = self.session.get(
                url,
                headers=headers,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            self.logger.warning(
                "Request error for %s: %s", url, exc, exc_info=True
            )
            return self._fetch_fallback(url, headers)

        if resp.status_code in (403, 429) or self._is_challenge(resp.text):
            self.logger.warning(
                "HTTP %d or challenge for %s", resp.status_code, url
            )
            return self._fetch_fallback(url, headers)

        self.logger.debug("HTTP %d for %s", resp.status_code, url)
        return FetchResponse(status_code=resp.status_code, body=resp.text)
