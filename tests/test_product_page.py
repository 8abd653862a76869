# tests/test_product_page.py

"""Tests for ProductPageFetcher."""

import unittest
from unittest.mock import MagicMock, patch

from pricewatch.scrapers.product_page import FetchError, ProductPageFetcher

URL = "https://www.zalando.it/tommy-hilfiger-essential-cupsole.html"


def _response(status_code: int, text: str = "<html></html>") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    return resp


@patch("pricewatch.scrapers.product_page.curl_requests.Session")
class TestFetch(unittest.TestCase):
    """Primary session behaviour."""

    def test_ok_response(self, mock_session_cls: MagicMock) -> None:
        """A 200 page is returned as is."""
        mock_session_cls.return_value.get.return_value = _response(200, "body")
        result = ProductPageFetcher().fetch(URL)
        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.body, "body")

    def test_not_found_is_passed_through(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """A 404 is a meaningful answer, not an error."""
        mock_session_cls.return_value.get.return_value = _response(404)
        self.assertEqual(ProductPageFetcher().fetch(URL).status_code, 404)

    def test_referer_is_shop_root(self, mock_session_cls: MagicMock) -> None:
        """The Referer header points at the shop's home page."""
        mock_session = mock_session_cls.return_value
        mock_session.get.return_value = _response(200)
        ProductPageFetcher().fetch(URL)
        headers = mock_session.get.call_args.kwargs["headers"]
        self.assertEqual(headers["Referer"], "https://www.zalando.it/")
        self.assertIn("User-Agent", headers)

    @patch("pricewatch.scrapers.product_page.cloudscraper.create_scraper")
    def test_challenge_falls_back(
        self, mock_create: MagicMock, mock_session_cls: MagicMock,
    ) -> None:
        """A challenge page is retried through cloudscraper."""
        mock_session_cls.return_value.get.return_value = _response(
            200, '<div class="cf-turnstile"></div>'
        )
        mock_create.return_value.get.return_value = _response(200, "real page")
        result = ProductPageFetcher().fetch(URL)
        self.assertEqual(result.body, "real page")
        mock_create.assert_called_once()

    @patch("pricewatch.scrapers.product_page.cloudscraper.create_scraper")
    def test_forbidden_falls_back(
        self, mock_create: MagicMock, mock_session_cls: MagicMock,
    ) -> None:
        """403 and 429 are retried through cloudscraper."""
        for status in (403, 429):
            with self.subTest(status=status):
                mock_session_cls.return_value.get.return_value = _response(
                    status
                )
                mock_create.return_value.get.return_value = _response(404)
                self.assertEqual(
                    ProductPageFetcher().fetch(URL).status_code, 404
                )

    @patch("pricewatch.scrapers.product_page.cloudscraper.create_scraper")
    def test_request_error_falls_back(
        self, mock_create: MagicMock, mock_session_cls: MagicMock,
    ) -> None:
        """Transport errors are retried through cloudscraper."""
        mock_session_cls.return_value.get.side_effect = ConnectionError("reset")
        mock_create.return_value.get.return_value = _response(200, "ok")
        self.assertEqual(ProductPageFetcher().fetch(URL).body, "ok")

    @patch("pricewatch.scrapers.product_page.cloudscraper.create_scraper")
    def test_unsolved_challenge_raises(
        self, mock_create: MagicMock, mock_session_cls: MagicMock,
    ) -> None:
        """A challenge that survives the fallback is a FetchError."""
        challenge = _response(200, "cdn-cgi/challenge-platform")
        mock_session_cls.return_value.get.return_value = challenge
        mock_create.return_value.get.return_value = challenge
        with self.assertRaises(FetchError):
            ProductPageFetcher().fetch(URL)

    @patch("pricewatch.scrapers.product_page.cloudscraper.create_scraper")
    def test_fallback_error_raises(
        self, mock_create: MagicMock, mock_session_cls: MagicMock,
    ) -> None:
        """An exception inside the fallback is a FetchError."""
        mock_session_cls.return_value.get.side_effect = TimeoutError()
        mock_create.return_value.get.side_effect = TimeoutError()
        with self.assertRaises(FetchError):
            ProductPageFetcher().fetch(URL)


if __name__ == "__main__":
    unittest.main()
