# pricewatch/notifications/telegram_notifier.py

"""Delivers messages through the Telegram Bot API."""

import logging

from curl_cffi import requests as curl_requests

from pricewatch.config.logging_config import with_context
from pricewatch.config.settings import Settings

_TRANSIENT_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


class DeliveryError(Exception):
    """Raised when a message could not be delivered.

    ``transient`` is True for network errors, timeouts, rate limiting
    and server errors; the caller decides whether to retry.
    """

    def __init__(self, message: str, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class TelegramNotifier:
    """Sends HTML-formatted messages to Telegram chats."""

    def __init__(self, token: str | None = None) -> None:
        self.logger = logging.getLogger("pricewatch.notifier")
        self.settings = Settings()
        self._token = token if token is not None else self.settings.TELEGRAM_BOT_TOKEN
        self.session = curl_requests.Session()

    def send(self, user_id: str, message: str) -> None:
        """Send *message* to the chat of *user_id*.

        Raises :class:`DeliveryError` on any failure.
        """
        if not self._token:
            raise DeliveryError("TELEGRAM_BOT_TOKEN is not configured", transient=False)

        url = self.settings.TELEGRAM_API_URL.format(token=self._token)
        payload = {
            "chat_id": user_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        try:
            resp = self.session.post(
                url,
                json=payload,
                timeout=self.settings.REQUEST_TIMEOUT,
            )
        except Exception as exc:
            raise DeliveryError(
                f"Network error sending to {user_id}: {exc}", transient=True
            ) from exc

        if resp.status_code == 200:
            with_context(self.logger, user=user_id).debug("Message delivered")
            return

        raise DeliveryError(
            f"Telegram returned HTTP {resp.status_code} for {user_id}: "
            f"{resp.text[:200]}",
            transient=resp.status_code in _TRANSIENT_STATUSES,
        )
