# pricewatch/cli/runner.py

"""Command implementations behind ``main.py``."""

import logging
from datetime import date

from rich.console import Console
from rich.table import Table

from pricewatch.config.settings import Settings
from pricewatch.models.tracked_item import TrackedItem
from pricewatch.notifications.composer import (
    describe_price_history,
    render_history,
)
from pricewatch.notifications.telegram_notifier import TelegramNotifier
from pricewatch.scrapers.product_page import FetchError, ProductPageFetcher
from pricewatch.scrapers.variant_extractor import list_sizes
from pricewatch.services.batch_driver import BatchDriver, CycleReport, Scheduler
from pricewatch.services.fetch_classifier import (
    ItemRemoved,
    SizeRemoved,
    Success,
    fetch_item,
)
from pricewatch.services.reconciler import reconcile
from pricewatch.storage.item_store import ItemStore

logger = logging.getLogger("pricewatch.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)


def _build_driver(store: ItemStore | None = None) -> BatchDriver:
    return BatchDriver(
        store=store or ItemStore(),
        fetcher=ProductPageFetcher(),
        notifier=TelegramNotifier(),
    )


def _print_report(report: CycleReport) -> None:
    table = Table(
        title="Price Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("User", style="bold")
    table.add_column("Items", justify="right")
    table.add_column("Notified", justify="right", style="green")
    table.add_column("Failures", justify="right", style="red")
    table.add_column("Saved", justify="center")

    for r in report.users:
        table.add_row(
            r.user_id,
            str(r.items),
            str(r.notifications),
            str(r.failures),
            "✓" if r.saved else "—",
        )
    Console().print(table)


def run_scheduler() -> int:
    """Start the fixed-delay scheduler; returns on Ctrl+C."""
    scheduler = Scheduler(
        _build_driver(),
        interval_seconds=Settings.CHECK_INTERVAL_MINUTES * 60,
    )
    _err.print(
        f"[bold]Checking every {Settings.CHECK_INTERVAL_MINUTES} minutes.[/bold]"
        " [dim]Ctrl+C to stop.[/dim]"
    )
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        logger.info("Scheduler interrupted by user")
    return 0


def run_check() -> int:
    """Run a single cycle and print its report."""
    report = _build_driver().run_cycle()
    _print_report(report)
    return 1 if report.failures else 0


def run_sizes(url: str) -> int:
    """Print the sizes that can be tracked at *url*."""
    try:
        response = ProductPageFetcher().fetch(url)
    except FetchError as exc:
        _err.print(f"[red]Fetch failed: {exc}[/red]")
        return 1

    sizes = list_sizes(response.body)
    if not sizes:
        _err.print("[yellow]Hmm... this url is not valid[/yellow]")
        return 1
    Console().print(", ".join(sizes))
    return 0


def run_add(
    user_id: str,
    name: str,
    url: str,
    size: str,
    store: ItemStore | None = None,
) -> int:
    """Start tracking *size* of the product at *url* for *user_id*."""
    store = store or ItemStore()
    store.create_user(user_id)
    items = store.get_items(user_id)

    if any(i.url == url and i.size == size for i in items):
        _err.print("[yellow]You are already tracking this item![/yellow]")
        return 1

    blank = TrackedItem.create(name=name, url=url, size=size)
    outcome = fetch_item(ProductPageFetcher(), blank)
    if isinstance(outcome, ItemRemoved):
        _err.print(f"[red]No product found at {url}[/red]")
        return 1
    if isinstance(outcome, SizeRemoved):
        _err.print(
            f"[red]Size {size} not offered. "
            f"Available: {', '.join(outcome.available_sizes)}[/red]"
        )
        return 1
    if not isinstance(outcome, Success):
        _err.print(f"[red]Fetch failed: {outcome.cause}[/red]")
        return 1

    item = reconcile(blank, outcome.item).item
    store.save_items(user_id, [*items, item])
    _err.print(
        f"[green]✓ Item added:[/green] {item.name} ({item.size}) at {item.price}"
    )
    return 0


def run_list(user_id: str, store: ItemStore | None = None) -> int:
    """Print a table of the items *user_id* tracks."""
    store = store or ItemStore()
    items = store.get_items(user_id)
    if not items:
        _err.print("[yellow]You are not tracking any item![/yellow]")
        return 0

    table = Table(
        title=f"Tracked items of {user_id}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("UUID", style="dim", overflow="fold")
    table.add_column("Name", max_width=40)
    table.add_column("Size", justify="center")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Available", justify="center")
    table.add_column("Coupon", justify="center")
    table.add_column("URL", overflow="fold", style="dim")

    for item in items:
        table.add_row(
            item.uuid,
            item.name,
            item.size,
            item.price or "N/A",
            "✓" if item.available else "—",
            "✓" if item.has_coupon else "—",
            item.url,
        )
    Console().print(table)
    return 0


def _find_item(store: ItemStore, user_id: str, uuid: str) -> TrackedItem | None:
    return next((i for i in store.get_items(user_id) if i.uuid == uuid), None)


def run_history(
    user_id: str,
    uuid: str,
    store: ItemStore | None = None,
    today: date | None = None,
) -> int:
    """Print an item's dated price history and its summary."""
    store = store or ItemStore()
    item = _find_item(store, user_id, uuid)
    if item is None:
        _err.print(f"[red]No item {uuid} for user {user_id}[/red]")
        return 1

    table = Table(title=item.name, title_style="bold cyan")
    table.add_column("Date")
    table.add_column("Price", justify="right", style="green")
    for entry in item.price_history:
        table.add_row(entry.date, entry.price)

    console = Console()
    console.print(table)
    console.print(render_history(item.price_history))
    console.print(describe_price_history(item.price_history, today))
    return 0


def run_delete(user_id: str, uuid: str, store: ItemStore | None = None) -> int:
    """Stop tracking the item with *uuid*."""
    store = store or ItemStore()
    items = store.get_items(user_id)
    remaining = [i for i in items if i.uuid != uuid]
    if len(remaining) == len(items):
        _err.print("[red]That item does not exist![/red]")
        return 1

    store.save_items(user_id, remaining)
    deleted = next(i for i in items if i.uuid == uuid)
    _err.print(f"[green]Deleted:[/green] {deleted.url}")
    return 0
