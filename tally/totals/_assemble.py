"""
Order total assembly.
"""

from __future__ import annotations

from decimal import Decimal

from tally._types import ZERO, round_money
from tally.discount import Discount
from tally.totals._types import OrderTotalBreakdown


def assemble_breakdown(
    subtotal: Decimal,
    discount: Discount | None,
    discount_amount: Decimal,
    tax: Decimal,
    shipping: Decimal = ZERO,
) -> OrderTotalBreakdown:
    """
    grand_total = subtotal - discount_amount + tax + shipping.

    Note: Non-negative because calculate_discount() clamps to the subtotal.
    """
    if discount_amount > subtotal:
        raise ValueError(f"Discount {discount_amount} exceeds subtotal {subtotal}")

    return OrderTotalBreakdown(
        subtotal=round_money(subtotal),
        discount_amount=round_money(discount_amount),
        tax=round_money(tax),
        shipping=round_money(shipping),
        grand_total=round_money(subtotal - discount_amount + tax + shipping),
        discount_id=discount.id if discount is not None else None,
        discount_code=discount.code if discount is not None else None,
    )


__all__ = ("assemble_breakdown",)
