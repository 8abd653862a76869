# pricewatch/services/reconciler.py

"""Decides what changed for one item and whether the user hears about it.

:func:`reconcile` merges today's snapshot into the persisted item and
returns the merged item plus an optional :class:`Notification`:

1. The snapshot's history entry is appended when the price moved.
2. A coupon counts as added when it was absent last cycle.
3. :func:`price_signal` picks the reference price shown as the "old"
   price, or ``None``:

   * a plain drop of more than ``PRICE_DROP_THRESHOLD`` against the
     previous cycle;
   * a back-in-stock drop: the price already fell while the item was
     unavailable, so the previous cycle shows the same price. The item
     is compared against the entry before the latest one in history,
     and ``back_in_stock_notified_price`` records the price so the next
     identical cycle stays quiet.

4. Only available items notify.

Inputs are never mutated.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal

from pricewatch.config.logging_config import with_context
from pricewatch.config.settings import Settings
from pricewatch.models.tracked_item import TrackedItem
from pricewatch.scrapers.price_resolver import parse_price

logger = logging.getLogger("pricewatch.reconciler")


@dataclass(frozen=True)
class Notification:
    """What to tell the user about one item."""

    item: TrackedItem
    reference_price: str | None
    coupon_added: bool

    @property
    def price_lowered(self) -> bool:
        return self.reference_price is not None


@dataclass(frozen=True)
class ReconcileResult:
    """The item to persist and the notification, if one is due."""

    item: TrackedItem
    notification: Notification | None


def _dropped(reference: str, new_price: str, threshold: Decimal) -> bool:
    return parse_price(reference) - parse_price(new_price) > threshold


def merge_history(old: TrackedItem, snapshot: TrackedItem) -> TrackedItem:
    """Carry identity, history and dedup marker over to the snapshot."""
    history = list(old.price_history)
    marker = old.back_in_stock_notified_price
    if snapshot.price != old.price:
        marker = None
        for entry in snapshot.price_history[:1]:
            if not history or history[-1].price != entry.price:
                history.append(entry)
    return replace(
        snapshot,
        uuid=old.uuid,
        name=old.name,
        price_history=history,
        back_in_stock_notified_price=marker,
    )


def price_signal(
    old: TrackedItem,
    snapshot: TrackedItem,
    merged: TrackedItem,
    threshold: Decimal = Settings.PRICE_DROP_THRESHOLD,
) -> tuple[str | None, str | None]:
    """Return ``(reference_price, dedup_marker)`` for this cycle.

    ``reference_price`` is ``None`` when no drop is worth reporting.
    ``dedup_marker`` is the value ``merged`` should carry as
    ``back_in_stock_notified_price``.
    """
    marker = merged.back_in_stock_notified_price
    if old.price is None or snapshot.price is None:
        return None, marker

    new_price = snapshot.price
    if _dropped(old.price, new_price, threshold):
        return old.price, marker

    history = merged.price_history
    if old.price == new_price and not old.available and len(history) >= 2:
        second_last = history[-2]
        if (
            _dropped(second_last.price, new_price, threshold)
            and new_price != old.back_in_stock_notified_price
        ):
            return second_last.price, new_price

    return None, marker


def reconcile(old: TrackedItem, snapshot: TrackedItem) -> ReconcileResult:
    """Merge *snapshot* into *old* and decide on a notification."""
    log = with_context(logger, item=old.name)
    merged = merge_history(old, snapshot)
    coupon_added = not old.has_coupon and snapshot.has_coupon

    reference, marker = price_signal(old, snapshot, merged)
    if marker != merged.back_in_stock_notified_price:
        merged = replace(merged, back_in_stock_notified_price=marker)
        log.info(
            "Back in stock at %s (was %s)",
            snapshot.price,
            reference,
        )

    notification: Notification | None = None
    if snapshot.available and (reference is not None or coupon_added):
        notification = Notification(
            item=merged,
            reference_price=reference,
            coupon_added=coupon_added,
        )
        log.info(
            "%s -> %s (coupon added: %s)",
            reference or old.price,
            snapshot.price,
            coupon_added,
        )

    return ReconcileResult(item=merged, notification=notification)


def has_changes(old: TrackedItem, new: TrackedItem) -> bool:
    """Whether *new* differs from *old* in anything worth persisting."""
    return (
        old.price != new.price
        or old.quantity != new.quantity
        or old.available != new.available
        or old.has_coupon != new.has_coupon
        or old.not_found_count != new.not_found_count
        or old.size_not_found_count != new.size_not_found_count
        or old.back_in_stock_notified_price
        != new.back_in_stock_notified_price
        or len(old.price_history) != len(new.price_history)
    )
