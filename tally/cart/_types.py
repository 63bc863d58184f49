"""
Cart types.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from tally._types import to_money


@dataclass(frozen=True, slots=True)
class CartLine:
    """
    One line of a cart snapshot.

    Note: quantity > available_stock is allowed here; the aggregator
    rejects it, so the shopper sees which line is over stock.
    """

    product_id: str
    unit_price: Decimal
    quantity: int
    available_stock: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_price", to_money(self.unit_price))
        if self.unit_price < 0:
            raise ValueError(f"Negative unit price for {self.product_id}")
        if self.quantity <= 0:
            raise ValueError("The quantity must be a positive number.")
        if self.available_stock < 0:
            raise ValueError(f"Negative stock for {self.product_id}")

    @property
    def in_stock(self) -> bool:
        return self.quantity <= self.available_stock

    @property
    def line_total(self) -> Decimal:
        """Unrounded unit_price × quantity."""
        return self.unit_price * self.quantity


type Cart = tuple[CartLine, ...]
"""Immutable, ordered cart snapshot."""


__all__ = ("CartLine", "Cart")
