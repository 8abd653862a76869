# pricewatch/services/batch_driver.py

"""Runs reconciliation cycles over every user's tracked items."""

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Protocol

from pricewatch.config.logging_config import ContextAdapter, with_context
from pricewatch.config.settings import Settings
from pricewatch.models.tracked_item import TrackedItem
from pricewatch.notifications.composer import (
    compose_admin_alert,
    compose_item_removed,
    compose_notification,
    compose_size_removed,
)
from pricewatch.notifications.telegram_notifier import DeliveryError
from pricewatch.services.fetch_classifier import (
    FetchOutcome,
    ItemRemoved,
    PageFetcher,
    SizeRemoved,
    Success,
    TransientFailure,
    fetch_item,
)
from pricewatch.services.reconciler import has_changes, reconcile
from pricewatch.storage.item_store import ItemStore

logger = logging.getLogger("pricewatch.driver")


class MessageSender(Protocol):
    """Delivery collaborator: raises ``DeliveryError`` on failure."""

    def send(self, user_id: str, message: str) -> None: ...


@dataclass
class UserBatchResult:
    """Outcome of one user's batch within a cycle."""

    user_id: str
    items: int = 0
    notifications: int = 0
    failures: int = 0
    saved: bool = False


@dataclass
class CycleReport:
    """Totals for a complete cycle over all users."""

    users: list[UserBatchResult] = field(
        default_factory=lambda: list[UserBatchResult]()
    )
    failures: int = 0

    @property
    def items(self) -> int:
        return sum(u.items for u in self.users)

    @property
    def notifications(self) -> int:
        return sum(u.notifications for u in self.users)


class BatchDriver:
    """Processes users one after another, and each user's items in order.

    Requests are never issued concurrently and a pause separates users,
    to keep the request rate against the shop low.
    """

    def __init__(
        self,
        store: ItemStore,
        fetcher: PageFetcher,
        notifier: MessageSender,
        inter_user_delay: float = Settings.INTER_USER_DELAY,
        retry_delay: float = Settings.TRANSIENT_RETRY_DELAY,
        removed_threshold: int = Settings.REMOVED_NOTIFY_THRESHOLD,
        admin_chat_id: str = Settings.ADMIN_CHAT_ID,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.notifier = notifier
        self.inter_user_delay = inter_user_delay
        self.retry_delay = retry_delay
        self.removed_threshold = removed_threshold
        self.admin_chat_id = admin_chat_id

    # ── Delivery ─────────────────────────────────────────

    def deliver(self, user_id: str, message: str) -> bool:
        """Send a message, retrying once on a transient failure."""
        log = with_context(logger, user=user_id)
        try:
            self.notifier.send(user_id, message)
            return True
        except DeliveryError as exc:
            if not exc.transient:
                log.error("Delivery failed: %s", exc)
                return False
            log.warning(
                "Transient delivery failure, retrying in %.0fs: %s",
                self.retry_delay,
                exc,
            )
        time.sleep(self.retry_delay)
        try:
            self.notifier.send(user_id, message)
            return True
        except DeliveryError as exc:
            log.error("Delivery failed after retry: %s", exc)
            return False

    # ── Per item ─────────────────────────────────────────

    def _fetch_with_retry(
        self, item: TrackedItem, log: ContextAdapter,
    ) -> FetchOutcome:
        outcome = fetch_item(self.fetcher, item)
        if isinstance(outcome, TransientFailure):
            log.info(
                "Transient failure (%s), retrying in %.0fs",
                outcome.cause,
                self.retry_delay,
            )
            time.sleep(self.retry_delay)
            outcome = fetch_item(self.fetcher, item)
        return outcome

    def process_item(
        self, user_id: str, old: TrackedItem,
    ) -> tuple[TrackedItem, str | None]:
        """Fetch and reconcile one item.

        Returns the item to persist and the message for the user, if any.
        """
        log = with_context(logger, user=user_id, item=old.name)
        outcome = self._fetch_with_retry(old, log)

        if isinstance(outcome, Success):
            result = reconcile(old, outcome.item)
            if result.notification is None:
                return result.item, None
            return result.item, compose_notification(result.notification)

        if isinstance(outcome, ItemRemoved):
            count = old.not_found_count + 1
            log.warning(
                "Item not found (%s), %d in a row", outcome.reason, count
            )
            updated = replace(
                old, not_found_count=count, size_not_found_count=0
            )
            if count == self.removed_threshold:
                return updated, compose_item_removed(old)
            return updated, None

        if isinstance(outcome, SizeRemoved):
            count = old.size_not_found_count + 1
            log.warning(
                "Size %s not found (sizes: %s), %d in a row",
                old.size,
                ", ".join(outcome.available_sizes),
                count,
            )
            updated = replace(
                old, size_not_found_count=count, not_found_count=0
            )
            if count == self.removed_threshold:
                return updated, compose_size_removed(old)
            return updated, None

        log.warning(
            "Keeping previous state after transient failure: %s",
            outcome.cause,
        )
        return old, None

    # ── Per user ─────────────────────────────────────────

    def process_user(self, user_id: str) -> UserBatchResult:
        """Reconcile all of a user's items, then notify and save once."""
        log = with_context(logger, user=user_id)
        result = UserBatchResult(user_id=user_id)
        items = self.store.get_items(user_id)
        if not items:
            return result

        updated: list[TrackedItem] = []
        messages: list[str] = []
        changed = False

        for old in items:
            result.items += 1
            try:
                new, message = self.process_item(user_id, old)
            except Exception:
                log.bind(item=old.name).error(
                    "Unclassified failure, keeping previous state",
                    exc_info=True,
                )
                result.failures += 1
                updated.append(old)
                continue

            changed = changed or has_changes(old, new)
            updated.append(new)
            if message is not None:
                messages.append(message)

        for message in messages:
            if self.deliver(user_id, message):
                result.notifications += 1
        if messages:
            log.info(
                "Sent %d of %d notifications",
                result.notifications,
                len(messages),
            )

        if changed:
            self.store.save_items(user_id, updated)
            result.saved = True

        return result

    # ── Whole cycle ──────────────────────────────────────

    def run_cycle(self) -> CycleReport:
        """Run one full pass over every user."""
        logger.info("Starting price check cycle")
        report = CycleReport()
        users = self.store.list_users()

        for index, user_id in enumerate(users):
            if index > 0:
                time.sleep(self.inter_user_delay)
            try:
                user_result = self.process_user(user_id)
            except Exception:
                with_context(logger, user=user_id).error(
                    "Batch aborted, previous state kept", exc_info=True
                )
                user_result = UserBatchResult(user_id=user_id, failures=1)
            report.users.append(user_result)
            report.failures += user_result.failures

        if report.failures and self.admin_chat_id:
            self.deliver(self.admin_chat_id, compose_admin_alert(report.failures))

        logger.info(
            "Check executed for %d users and a total of %d items "
            "(%d notifications, %d failures)",
            len(report.users),
            report.items,
            report.notifications,
            report.failures,
        )
        return report


class Scheduler:
    """Repeats cycles with a fixed delay between the end of one and the next."""

    def __init__(
        self,
        driver: BatchDriver,
        interval_seconds: float = Settings.CHECK_INTERVAL_MINUTES * 60,
    ) -> None:
        self.driver = driver
        self.interval_seconds = interval_seconds

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        """Run cycles until *stop_event* is set; the first one starts at once."""
        stop = stop_event or threading.Event()
        logger.info(
            "Scheduler started, %.0fs between cycles", self.interval_seconds
        )
        while not stop.is_set():
            try:
                self.driver.run_cycle()
            except Exception:
                logger.critical("Cycle failed", exc_info=True)
            stop.wait(self.interval_seconds)
        logger.info("Scheduler stopped")
