"""
Cart aggregation — subtotal and stock validation.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from tally._errors import PricingError, PricingErrors
from tally._types import Result, Ok, Error, round_money
from tally.cart._types import CartLine


def aggregate_subtotal(lines: Iterable[CartLine]) -> Result[Decimal, PricingError]:
    """
    Sum line totals into a subtotal rounded to cents.

    The first over-stock line fails the whole cart: a partial cart would
    change what the shopper asked for.
    """
    total = Decimal("0")
    for line in lines:
        if not line.in_stock:
            return Error(
                PricingErrors.insufficient_stock(
                    line.product_id, line.quantity, line.available_stock
                )
            )
        total += line.line_total
    return Ok(round_money(total))


__all__ = ("aggregate_subtotal",)
