# tests/test_tracked_item_model.py

"""Tests for the TrackedItem and offer models."""

import unittest
from datetime import date

from pricewatch.models.offer import variant_from_dict
from pricewatch.models.tracked_item import (
    PriceHistoryEntry,
    TrackedItem,
    format_history_date,
    parse_history_date,
)


class TestTrackedItem(unittest.TestCase):
    """Creation and JSON mapping."""

    def test_create_initial_state(self) -> None:
        """A new item is unavailable with no price or history."""
        item = TrackedItem.create("Sneakers", "https://x.it/a", "42")
        self.assertTrue(item.uuid)
        self.assertIsNone(item.price)
        self.assertFalse(item.available)
        self.assertFalse(item.has_coupon)
        self.assertEqual(item.price_history, [])

    def test_create_assigns_unique_uuids(self) -> None:
        """Each created item gets its own uuid."""
        a = TrackedItem.create("A", "https://x.it/a", "42")
        b = TrackedItem.create("A", "https://x.it/a", "42")
        self.assertNotEqual(a.uuid, b.uuid)

    def test_from_dict_defaults(self) -> None:
        """Documents written before counters existed still load."""
        item = TrackedItem.from_dict({
            "uuid": "u", "name": "n", "url": "https://x.it", "size": "S",
            "price": "1,00", "quantity": "MANY", "available": True,
            "hasCoupon": False,
            "priceHistory": [{"price": "1,00", "date": "2-3-2024"}],
        })
        self.assertEqual(item.not_found_count, 0)
        self.assertIsNone(item.back_in_stock_notified_price)
        self.assertEqual(
            item.price_history, [PriceHistoryEntry("1,00", "2-3-2024")]
        )

    def test_dict_round_trip(self) -> None:
        """to_dict and from_dict are inverses."""
        item = TrackedItem(
            uuid="u", name="n", url="https://x.it", size="S", price="1,00",
            quantity="ONE", available=True, has_coupon=True,
            back_in_stock_notified_price="1,00", not_found_count=2,
            size_not_found_count=1,
            price_history=[PriceHistoryEntry("1,00", "2-3-2024")],
        )
        self.assertEqual(TrackedItem.from_dict(item.to_dict()), item)


class TestHistoryDates(unittest.TestCase):
    """D-M-YYYY date format."""

    def test_format_has_no_padding(self) -> None:
        """Day and month are not zero padded."""
        self.assertEqual(format_history_date(date(2024, 3, 7)), "7-3-2024")

    def test_parse(self) -> None:
        """Parsing gives back the date."""
        self.assertEqual(parse_history_date("17-11-2023"), date(2023, 11, 17))


class TestVariantFromDict(unittest.TestCase):
    """Offer record mapping."""

    def test_missing_offer_raises(self) -> None:
        """A record without an offer is not a variant."""
        with self.assertRaises(KeyError):
            variant_from_dict({"size": "42"})

    def test_wrongly_typed_nodes_raise_type_error(self) -> None:
        """Non-object offer, price or stock nodes are rejected."""
        shapes = {
            "offer_null": {"size": "42", "offer": None},
            "price_list": {"size": "42", "offer": {"price": [1]}},
            "stock_str": {"size": "42", "offer": {"stock": "few"}},
        }
        for name, data in shapes.items():
            with self.subTest(shape=name):
                with self.assertRaises(TypeError):
                    variant_from_dict(data)

    def test_numeric_size_becomes_string(self) -> None:
        """Sizes are compared as strings."""
        record = variant_from_dict({
            "size": 42,
            "offer": {"price": {"original": {"amount": 100}}},
        })
        self.assertEqual(record.size, "42")
        self.assertIsNone(record.offer.quantity)
        self.assertFalse(record.offer.is_meaningful_offer)


if __name__ == "__main__":
    unittest.main()
