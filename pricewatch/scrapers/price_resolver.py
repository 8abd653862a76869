# pricewatch/scrapers/price_resolver.py

"""Active price selection, price rendering and coupon detection."""

import logging
from decimal import Decimal
from urllib.parse import urlparse

from pricewatch.config.settings import Settings
from pricewatch.models.offer import Offer

logger = logging.getLogger("pricewatch.price")


def render_amount(amount: int) -> str:
    """Render minor units as a comma-decimal string (``12999`` -> ``129,99``)."""
    if amount < 0:
        raise ValueError(f"Negative price amount: {amount}")
    digits = str(amount).rjust(3, "0")
    return f"{digits[:-2]},{digits[-2:]}"


def resolve_price(offer: Offer) -> str:
    """Return the promotional price if present, else the original one."""
    amount = offer.price.promotional
    if amount is None:
        amount = offer.price.original
    if amount is None:
        raise ValueError("Offer carries neither promotional nor original price")
    return render_amount(amount)


def parse_price(price: str) -> Decimal:
    """Numeric value of a rendered price (``"129,99"`` -> ``129.99``)."""
    return Decimal(price.replace(",", "."))


def coupon_phrase_for(url: str) -> str | None:
    """The coupon phrase for the site locale of *url*, if one is known."""
    host = (urlparse(url).hostname or "").lower()
    labels = host.split(".")
    # zalando.co.uk keys on CO.UK, zalando.it on IT
    if len(labels) >= 3 and labels[-2] == "co":
        tld = ".".join(labels[-2:])
    else:
        tld = labels[-1]
    return Settings.COUPON_PHRASES.get(tld.upper())


def detect_coupon(url: str, body: str) -> bool:
    """Whether the page body advertises a coupon for this item.

    A plain substring search: banners reusing the same wording give
    false positives, and copy changes on the site give false negatives.
    """
    phrase = coupon_phrase_for(url)
    if phrase is None:
        logger.debug("No coupon phrase configured for %s", url)
        return False
    return phrase in body
