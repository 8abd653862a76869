# pricewatch/config/settings.py

"""Central configuration for the pricewatch tracker."""

import json
import os
from decimal import Decimal
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


_DEFAULT_FETCH_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,"
        "application/xml;q=0.9,image/avif,"
        "image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-GB,en;q=0.9",
    "sec-ch-ua": (
        '"Google Chrome";v="131", '
        '"Chromium";v="131", '
        '"Not_A Brand";v="24"'
    ),
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"macOS"',
    "sec-fetch-dest": "document",
    "sec-fetch-mode": "navigate",
    "sec-fetch-site": "none",
    "sec-fetch-user": "?1",
    "Upgrade-Insecure-Requests": "1",
}


def _load_fetch_headers() -> dict[str, str]:
    """Merge the JSON object in PRICEWATCH_FETCH_HEADERS over the defaults."""
    headers = dict(_DEFAULT_FETCH_HEADERS)
    raw = os.getenv("PRICEWATCH_FETCH_HEADERS")
    if not raw:
        return headers
    try:
        override = json.loads(raw)
    except json.JSONDecodeError:
        return headers
    if isinstance(override, dict):
        headers.update({str(k): str(v) for k, v in override.items()})
    return headers


class Settings:
    """Central configuration for the pricewatch tracker."""

    # --- Scheduling ---
    CHECK_INTERVAL_MINUTES: int = _env_int("CHECK_INTERVAL_MINUTES", 60)
    INTER_USER_DELAY: float = _env_float("INTER_USER_DELAY", 10.0)
    TRANSIENT_RETRY_DELAY: float = _env_float("TRANSIENT_RETRY_DELAY", 6.0)
    REMOVED_NOTIFY_THRESHOLD: int = _env_int("REMOVED_NOTIFY_THRESHOLD", 5)

    # --- Fetching ---
    REQUEST_TIMEOUT: int = _env_int("REQUEST_TIMEOUT", 15)
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    FETCH_HEADERS: dict[str, str] = _load_fetch_headers()
    CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "cf-turnstile",
        "cf_chl_opt",
        "px-captcha",
    ]

    # --- Extraction ---
    VARIANT_MARKER: str = '"simples":'
    VARIANT_RECORD_FIELD: str = '"offer"'
    PRICE_DROP_THRESHOLD: Decimal = Decimal("1.00")
    # Longer histories are summarised in messages instead of listed
    HISTORY_SUMMARY_THRESHOLD: int = _env_int("HISTORY_SUMMARY_THRESHOLD", 20)

    # Searching only "Enter your code at checkout" gives false positives
    COUPON_PHRASES: dict[str, str] = {
        "CO.UK": "on this and other selected items",
        "IE": "on this and other selected items",
        "IT": "su questo e altri articoli selezionati con il codice",
        "ES": "en este y otros artículos seleccionados con el código",
        "DE": "auf diesen und andere ausgewählte artikel",
        "NL": "op dit en andere geselecteerde items",
    }

    # --- Delivery ---
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_API_URL: str = "https://api.telegram.org/bot{token}/sendMessage"
    ADMIN_CHAT_ID: str = os.getenv("ADMIN_CHAT_ID", "")

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    USERDATA_DIR: Path = Path(
        os.getenv("PRICEWATCH_USERDATA_DIR", str(BASE_DIR / "userdata"))
    )
    LOGS_DIR: Path = BASE_DIR / "logs"
