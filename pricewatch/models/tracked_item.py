# pricewatch/models/tracked_item.py

"""Tracked item and price history models, with their JSON form."""

import uuid as uuid_lib
from dataclasses import dataclass, field
from datetime import date
from typing import Any


def format_history_date(day: date) -> str:
    """Render a date the way history entries persist it (``D-M-YYYY``)."""
    return f"{day.day}-{day.month}-{day.year}"


def parse_history_date(text: str) -> date:
    """Inverse of :func:`format_history_date`."""
    day, month, year = (int(part) for part in text.split("-"))
    return date(year, month, day)


@dataclass(frozen=True)
class PriceHistoryEntry:
    """One observed price and the day it was first seen."""

    price: str
    date: str

    def to_dict(self) -> dict[str, str]:
        return {"price": self.price, "date": self.date}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceHistoryEntry":
        return cls(price=str(data["price"]), date=str(data["date"]))


@dataclass
class TrackedItem:
    """A product variant a user tracks, as persisted between cycles.

    ``price`` uses the comma-decimal form (``"129,99"``) and is ``None``
    until the first successful fetch.
    """

    uuid: str
    name: str
    url: str
    size: str
    price: str | None = None
    quantity: str | None = None
    available: bool = False
    has_coupon: bool = False
    back_in_stock_notified_price: str | None = None
    not_found_count: int = 0
    size_not_found_count: int = 0
    price_history: list[PriceHistoryEntry] = field(
        default_factory=lambda: list[PriceHistoryEntry]()
    )

    @classmethod
    def create(cls, name: str, url: str, size: str) -> "TrackedItem":
        """Build a freshly selected item: unavailable, no price, no history."""
        return cls(
            uuid=str(uuid_lib.uuid4()),
            name=name,
            url=url,
            size=size,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the camelCase keys of ``tracked.json``."""
        return {
            "uuid": self.uuid,
            "name": self.name,
            "url": self.url,
            "size": self.size,
            "price": self.price,
            "quantity": self.quantity,
            "available": self.available,
            "hasCoupon": self.has_coupon,
            "backInStockNotifiedPrice": self.back_in_stock_notified_price,
            "notFoundCount": self.not_found_count,
            "sizeNotFoundCount": self.size_not_found_count,
            "priceHistory": [e.to_dict() for e in self.price_history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackedItem":
        history: list[dict[str, Any]] = data.get("priceHistory") or []
        return cls(
            uuid=str(data["uuid"]),
            name=str(data["name"]),
            url=str(data["url"]),
            size=str(data["size"]),
            price=data.get("price"),
            quantity=data.get("quantity"),
            available=bool(data.get("available", False)),
            has_coupon=bool(data.get("hasCoupon", False)),
            back_in_stock_notified_price=data.get(
                "backInStockNotifiedPrice"
            ),
            not_found_count=int(data.get("notFoundCount", 0)),
            size_not_found_count=int(data.get("sizeNotFoundCount", 0)),
            price_history=[
                PriceHistoryEntry.from_dict(e) for e in history
            ],
        )
