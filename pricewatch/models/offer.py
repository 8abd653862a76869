# pricewatch/models/offer.py

"""Per-variant offer records as embedded in a product page."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OfferPrice:
    """Promotional and original amounts, in minor currency units."""

    original: int | None
    promotional: int | None = None


@dataclass(frozen=True)
class Offer:
    """Price, stock descriptor and availability flag of one variant."""

    price: OfferPrice
    quantity: str | None
    is_meaningful_offer: bool


@dataclass(frozen=True)
class VariantRecord:
    """A single size of a product together with its current offer."""

    size: str
    offer: Offer


def _object(node: Any, field: str) -> dict[str, Any]:
    """*node* as a JSON object; a missing node reads as empty."""
    if node is None:
        return {}
    if not isinstance(node, dict):
        raise TypeError(
            f"{field} is {type(node).__name__}, expected an object"
        )
    return node


def _amount(node: Any) -> int | None:
    value = _object(node, "price amount").get("amount")
    return None if value is None else int(value)


def variant_from_dict(data: dict[str, Any]) -> VariantRecord:
    """Build a :class:`VariantRecord` from one decoded JSON record.

    Raises ``KeyError``/``TypeError``/``ValueError`` on records that do
    not have the expected shape.
    """
    if not isinstance(data["offer"], dict):
        raise TypeError("offer is not an object")
    offer: dict[str, Any] = data["offer"]
    price = _object(offer.get("price"), "price")
    stock = _object(offer.get("stock"), "stock")
    quantity = stock.get("quantity")
    return VariantRecord(
        size=str(data["size"]),
        offer=Offer(
            price=OfferPrice(
                original=_amount(price.get("original")),
                promotional=_amount(price.get("promotional")),
            ),
            quantity=None if quantity is None else str(quantity),
            is_meaningful_offer=bool(
                offer.get("isMeaningfulOffer", False)
            ),
        ),
    )
