"""
Pricing

Line totals, cart subtotal, delivery fee and the flat percentage discount.
Shared by the backend (order item price snapshots) and the client (checkout
summary). Discount rules are not persisted anywhere.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from coffeeshop.core.config import get_settings
from coffeeshop.core.enums import DeliveryMethod


def unit_price(base_price: float, price_modifier: Optional[float] = 0.0) -> float:
    """Price of one item in a given size."""
    return float(base_price) + float(price_modifier or 0.0)


def line_total(
    base_price: float,
    quantity: int,
    price_modifier: Optional[float] = 0.0,
) -> float:
    """``(base_price + size modifier) * quantity``."""
    return unit_price(base_price, price_modifier) * quantity


def subtotal(lines: Iterable[tuple[float, int, Optional[float]]]) -> float:
    """Sum of line totals for ``(base_price, quantity, price_modifier)`` lines."""
    return sum(line_total(price, qty, modifier) for price, qty, modifier in lines)


@dataclass
class PriceBreakdown:
    """
    Checkout summary.

    Attributes:
        subtotal: Sum of line totals
        delivery_fee: Flat fee, only for home delivery
        discount: Amount taken off the subtotal
        total: Amount the customer pays
    """
    subtotal: float
    delivery_fee: float = 0.0
    discount: float = 0.0

    @property
    def total(self) -> float:
        return self.subtotal + self.delivery_fee - self.discount

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "discount": self.discount,
            "total": self.total,
        }


def calculate_totals(
    cart_subtotal: float,
    delivery_method: Union[str, DeliveryMethod] = DeliveryMethod.DELIVER,
    discount_applied: bool = False,
    delivery_fee: Optional[float] = None,
    discount_rate: Optional[float] = None,
) -> PriceBreakdown:
    """
    Build the checkout summary for a cart.

    Args:
        cart_subtotal: Sum of line totals
        delivery_method: "deliver" adds the delivery fee, "pickup" does not
        discount_applied: Apply the flat percentage discount
        delivery_fee: Override the configured fee
        discount_rate: Override the configured rate

    Example:
        >>> calculate_totals(170000, "deliver", True, 20000, 0.10).total
        173000.0
    """
    settings = get_settings()
    fee = settings.delivery_fee if delivery_fee is None else delivery_fee
    rate = settings.discount_rate if discount_rate is None else discount_rate

    is_delivery = DeliveryMethod(delivery_method) is DeliveryMethod.DELIVER
    return PriceBreakdown(
        subtotal=float(cart_subtotal),
        delivery_fee=float(fee) if is_delivery else 0.0,
        discount=float(cart_subtotal) * rate if discount_applied else 0.0,
    )
