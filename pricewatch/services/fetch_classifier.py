# pricewatch/services/fetch_classifier.py

"""Turns one product page fetch into exactly one classified outcome.

Every attempt ends as one of:

* :class:`Success` - the tracked size was found; carries the snapshot.
* :class:`ItemRemoved` - 404/410, or no variant data on the page.
* :class:`SizeRemoved` - variants exist but not the tracked size.
* :class:`TransientFailure` - anything else (network error, other
  status codes, offers with an unexpected shape).

Removed items are expected outcomes, so they are values rather than
exceptions; the batch driver branches on the type.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from pricewatch.config.logging_config import with_context
from pricewatch.models.tracked_item import (
    PriceHistoryEntry,
    TrackedItem,
    format_history_date,
)
from pricewatch.scrapers.price_resolver import detect_coupon, resolve_price
from pricewatch.scrapers.product_page import FetchResponse
from pricewatch.scrapers.variant_extractor import extract_variants

logger = logging.getLogger("pricewatch.classifier")

_NOT_FOUND_STATUSES: frozenset[int] = frozenset({404, 410})


@dataclass(frozen=True)
class Success:
    """The snapshot built from today's page."""

    item: TrackedItem


@dataclass(frozen=True)
class ItemRemoved:
    """The product no longer exists at its URL."""

    reason: str


@dataclass(frozen=True)
class SizeRemoved:
    """The product exists but the tracked size is gone."""

    available_sizes: tuple[str, ...]


@dataclass(frozen=True)
class TransientFailure:
    """A hiccup that says nothing about the product itself."""

    cause: str


FetchOutcome = Success | ItemRemoved | SizeRemoved | TransientFailure


class PageFetcher(Protocol):
    """Anything that can GET a product page."""

    def fetch(self, url: str) -> FetchResponse: ...


def build_snapshot(
    item: TrackedItem,
    body: str,
    price: str,
    quantity: str | None,
    available: bool,
    today: date,
) -> TrackedItem:
    """Build the replacement item, with today's price as its only history entry."""
    return TrackedItem(
        uuid=item.uuid,
        name=item.name,
        url=item.url,
        size=item.size,
        price=price,
        quantity=quantity,
        available=available,
        has_coupon=detect_coupon(item.url, body),
        price_history=[
            PriceHistoryEntry(price=price, date=format_history_date(today))
        ],
    )


def classify(
    status_code: int,
    body: str,
    item: TrackedItem,
    today: date | None = None,
) -> FetchOutcome:
    """Classify an HTTP status and page body for the tracked *item*."""
    if status_code in _NOT_FOUND_STATUSES:
        return ItemRemoved(reason=f"HTTP {status_code}")
    if status_code != 200:
        return TransientFailure(cause=f"HTTP {status_code}")

    try:
        records = extract_variants(body)
        if not records:
            return ItemRemoved(reason="no variant data on page")

        match = next((r for r in records if r.size == item.size), None)
        if match is None:
            return SizeRemoved(
                available_sizes=tuple(r.size for r in records)
            )

        price = resolve_price(match.offer)
        snapshot = build_snapshot(
            item,
            body,
            price=price,
            quantity=match.offer.quantity,
            available=match.offer.is_meaningful_offer,
            today=today or date.today(),
        )
    except (KeyError, TypeError, ValueError) as exc:
        return TransientFailure(cause=f"unexpected offer shape: {exc!r}")

    return Success(item=snapshot)


def fetch_item(
    fetcher: PageFetcher,
    item: TrackedItem,
    today: date | None = None,
) -> FetchOutcome:
    """Fetch *item*'s page and classify the result.

    Never raises: a failed request becomes :class:`TransientFailure`.
    """
    log = with_context(logger, item=item.name)
    try:
        response = fetcher.fetch(item.url)
    except Exception as exc:
        log.warning("Fetch failed: %s", exc, exc_info=True)
        return TransientFailure(cause=str(exc) or type(exc).__name__)

    outcome = classify(response.status_code, response.body, item, today)
    log.debug("Classified as %s", type(outcome).__name__)
    return outcome
