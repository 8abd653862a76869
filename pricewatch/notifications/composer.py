# pricewatch/notifications/composer.py

"""Renders tracker events into chat messages (HTML parse mode)."""

import html
from dataclasses import dataclass
from datetime import date, timedelta

from pricewatch.config.settings import Settings
from pricewatch.models.tracked_item import (
    PriceHistoryEntry,
    TrackedItem,
    parse_history_date,
)
from pricewatch.scrapers.price_resolver import parse_price, render_amount
from pricewatch.services.reconciler import Notification


def render_history(entries: list[PriceHistoryEntry]) -> str:
    """``129,99 -> 99,99 -> 89,99`` in chronological order."""
    return " -> ".join(e.price for e in entries)


def compose_notification(
    notification: Notification,
    today: date | None = None,
    summary_threshold: int = Settings.HISTORY_SUMMARY_THRESHOLD,
) -> str:
    """Build the price drop / coupon message for one item.

    Histories longer than *summary_threshold* entries are replaced by
    their min/max/average summary to keep messages short.
    """
    item = notification.item
    if len(item.price_history) > summary_threshold:
        history = describe_price_history(item.price_history, today)
    else:
        history = render_history(item.price_history)

    headers: list[str] = []
    if notification.price_lowered:
        headers.append("Price lowered")
    if notification.coupon_added:
        headers.append("Coupon added")
    header = " + ".join(headers) + "!"

    prices: list[str] = []
    if notification.reference_price is not None:
        prices.append(notification.reference_price)
    suffix = " + coupon" if notification.coupon_added else ""
    prices.append(f"{item.price}{suffix}")
    price_line = " ---> ".join(prices)

    return "\n".join([
        header,
        html.escape(item.name),
        f"<b>{price_line}</b>",
        f"quantity: {html.escape(item.quantity or '')}",
        "<b>price history:</b>",
        history,
        html.escape(item.url),
    ])


def compose_item_removed(item: TrackedItem) -> str:
    return (
        f'It appears that the item "{html.escape(item.name)}" is no longer '
        "available at the specified url :(\n"
        "Consider deleting the item from your list if this error persists"
    )


def compose_size_removed(item: TrackedItem) -> str:
    return (
        f"It appears that the size {html.escape(item.size)} is no longer "
        f'available for item "{html.escape(item.name)}" :(\n'
        "Consider deleting the item from your list if this error persists"
    )


def compose_admin_alert(failures: int) -> str:
    return f"some errors occurred during the price check ({failures}) :("


@dataclass(frozen=True)
class HistorySummary:
    """Extremes and recent averages of a price history."""

    min_entry: PriceHistoryEntry
    max_entry: PriceHistoryEntry
    average_90_days: str | None
    average_180_days: str | None


def _average_since(
    entries: list[PriceHistoryEntry], cutoff: date,
) -> str | None:
    recent = [
        parse_price(e.price)
        for e in entries
        if parse_history_date(e.date) > cutoff
    ]
    if not recent:
        return None
    mean = sum(recent) / len(recent)
    return render_amount(int((mean * 100).to_integral_value()))


def summarize_history(
    entries: list[PriceHistoryEntry], today: date | None = None,
) -> HistorySummary | None:
    """Min/max with dates and the 90/180-day averages, or ``None`` if empty."""
    if not entries:
        return None
    today = today or date.today()
    return HistorySummary(
        min_entry=min(entries, key=lambda e: parse_price(e.price)),
        max_entry=max(entries, key=lambda e: parse_price(e.price)),
        average_90_days=_average_since(entries, today - timedelta(days=91)),
        average_180_days=_average_since(entries, today - timedelta(days=181)),
    )


def describe_price_history(
    entries: list[PriceHistoryEntry], today: date | None = None,
) -> str:
    """Text block summarising a long price history."""
    summary = summarize_history(entries, today)
    if summary is None:
        return "no price history yet"
    return "\n".join([
        f"min: {summary.min_entry.price} - {summary.min_entry.date}",
        f"max: {summary.max_entry.price} - {summary.max_entry.date}",
        f"average last 90 days: {summary.average_90_days or '-'}",
        f"average last 180 days: {summary.average_180_days or '-'}",
    ])
