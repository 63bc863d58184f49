"""
Discount amount — validated definition × subtotal.
"""

from __future__ import annotations

from decimal import Decimal

from tally._types import round_money
from tally.discount._types import Discount, DiscountType


def calculate_discount(discount: Discount, subtotal: Decimal) -> Decimal:
    """
    Monetary discount for a subtotal, rounded to cents.

    Never exceeds the subtotal, so subtotal - discount stays >= 0 for both
    types (a percentage above 100 included).
    """
    match discount.type:
        case DiscountType.PERCENTAGE:
            amount = subtotal * discount.value / Decimal(100)
        case DiscountType.FIXED_AMOUNT:
            amount = discount.value

    return round_money(min(amount, subtotal))


__all__ = ("calculate_discount",)
