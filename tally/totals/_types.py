"""
Totals types.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from tally.discount import Discount


@dataclass(frozen=True, slots=True)
class OrderTotalBreakdown:
    """
    Payable total handed to the checkout / payment collaborator.

    discount_id travels with the breakdown so the order-commit side can
    record the redemption later.

    Invariants: discount_amount <= subtotal, grand_total >= 0,
    every amount rounded to cents.
    """

    subtotal: Decimal
    discount_amount: Decimal
    tax: Decimal
    shipping: Decimal
    grand_total: Decimal
    discount_id: str | None = None
    discount_code: str | None = None

    @property
    def has_discount(self) -> bool:
        return self.discount_id is not None


@dataclass(frozen=True, slots=True)
class Quote:
    """Breakdown plus the discount it applied, for the commit side."""

    breakdown: OrderTotalBreakdown
    discount: Discount | None


__all__ = ("OrderTotalBreakdown", "Quote")
