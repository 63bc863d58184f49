"""
Checkout types — commit request, committed order, order book protocol.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Protocol

from kungfu import Result, Ok

from tally.cart import CartLine
from tally.discount import DiscountRedemption, StoreError
from tally.totals import OrderTotalBreakdown


@dataclass(frozen=True, slots=True)
class CommitRequest:
    """What the shopper confirmed; prices are recomputed from it."""

    customer_id: str
    lines: tuple[CartLine, ...]
    discount_code: str | None = None


@dataclass(frozen=True, slots=True)
class CommittedOrder:
    order_id: str
    breakdown: OrderTotalBreakdown
    redemption: DiscountRedemption | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Order Book: where orders are written
# ═══════════════════════════════════════════════════════════════════════════════


class OrderBook(Protocol):
    """Order persistence used at commit."""

    async def place(
        self,
        customer_id: str,
        lines: tuple[CartLine, ...],
        breakdown: OrderTotalBreakdown,
    ) -> Result[str, StoreError]:
        """Write the order, return its id."""
        ...

    async def cancel(self, order_id: str) -> None:
        """Undo place(). Compensation: must not fail for a placed order."""
        ...


@dataclass(frozen=True, slots=True)
class PlacedOrder:
    order_id: str
    customer_id: str
    lines: tuple[CartLine, ...]
    breakdown: OrderTotalBreakdown


@dataclass
class MemoryOrderBook:
    """
    In-memory order book.

    yield_on_place hands control back to the event loop while placing,
    the way a real database round-trip would.
    """

    yield_on_place: bool = False
    _orders: dict[str, PlacedOrder] = field(default_factory=dict)
    _counter: int = 0

    @property
    def orders(self) -> dict[str, PlacedOrder]:
        return dict(self._orders)

    async def place(
        self,
        customer_id: str,
        lines: tuple[CartLine, ...],
        breakdown: OrderTotalBreakdown,
    ) -> Result[str, StoreError]:
        self._counter += 1
        order_id = f"ORD-{self._counter:06d}"
        if self.yield_on_place:
            await asyncio.sleep(0)
        self._orders[order_id] = PlacedOrder(order_id, customer_id, lines, breakdown)
        return Ok(order_id)

    async def cancel(self, order_id: str) -> None:
        self._orders.pop(order_id, None)


__all__ = (
    "CommitRequest",
    "CommittedOrder",
    "OrderBook",
    "PlacedOrder",
    "MemoryOrderBook",
)
