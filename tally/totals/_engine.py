"""
Pricing engine — the public entry point.

    cart lines ──► aggregate_subtotal ──► subtotal
                                            │
               ┌────────────────────────────┼──────────────────┐
               ▼                            ▼                  ▼
      resolve_code / resolve_automatic   calculate_tax   calculate_shipping
               │
               ▼
      calculate_discount ──────────────► assemble_breakdown
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from kungfu import Result, Ok, Error

from tally._errors import PricingError
from tally._types import ZERO
from tally.cart import CartLine, aggregate_subtotal
from tally.config import PricingConfig
from tally.discount import (
    Discount,
    DiscountStore,
    calculate_discount,
    resolve_automatic,
    resolve_code,
)
from tally.totals._assemble import assemble_breakdown
from tally.totals._shipping import calculate_shipping
from tally.totals._tax import calculate_tax
from tally.totals._types import OrderTotalBreakdown, Quote

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Computes order totals against a discount store and store settings.

    Note: Holds no per-checkout state. Every call starts from the cart
    snapshot; a changed cart means a new call, never a patched result.

    Example:
        engine = PricingEngine(store, PricingConfig())

        match await engine.compute_order_total(lines, "SUMMER20", "cust-1", now):
            case Ok(breakdown):
                charge(breakdown.grand_total)
            case Error(e):
                show(e.message)
    """

    def __init__(self, store: DiscountStore, config: PricingConfig | None = None) -> None:
        self._store = store
        self._config = config or PricingConfig()

    @property
    def store(self) -> DiscountStore:
        return self._store

    @property
    def config(self) -> PricingConfig:
        return self._config

    async def compute_order_total(
        self,
        lines: Iterable[CartLine],
        discount_code: str | None,
        customer_id: str,
        now: datetime,
    ) -> Result[OrderTotalBreakdown, PricingError]:
        """
        Subtotal, discount, tax, shipping and grand total for a cart.

        A code, when given, takes priority and its rejection is returned
        as-is. Without a code the best eligible automatic discount applies.
        Only one discount is ever applied.
        """
        match await self.quote(lines, discount_code, customer_id, now):
            case Ok(quote):
                return Ok(quote.breakdown)
            case Error(e):
                return Error(e)

    async def quote(
        self,
        lines: Iterable[CartLine],
        discount_code: str | None,
        customer_id: str,
        now: datetime,
    ) -> Result[Quote, PricingError]:
        """Same as compute_order_total(), keeping the applied Discount."""
        cart = tuple(lines)

        match aggregate_subtotal(cart):
            case Ok(subtotal):
                pass
            case Error(e):
                return Error(e)

        match await self._resolve(discount_code, subtotal, customer_id, now):
            case Ok(discount):
                pass
            case Error(e):
                return Error(e)

        discount_amount = (
            calculate_discount(discount, subtotal) if discount is not None else ZERO
        )
        breakdown = assemble_breakdown(
            subtotal=subtotal,
            discount=discount,
            discount_amount=discount_amount,
            tax=calculate_tax(subtotal, self._config),
            shipping=calculate_shipping(subtotal, self._config),
        )
        logger.debug(
            "Priced %d line(s) for %s: subtotal=%s discount=%s total=%s",
            len(cart),
            customer_id,
            breakdown.subtotal,
            breakdown.discount_amount,
            breakdown.grand_total,
        )
        return Ok(Quote(breakdown, discount))

    async def _resolve(
        self,
        discount_code: str | None,
        subtotal: Decimal,
        customer_id: str,
        now: datetime,
    ) -> Result[Discount | None, PricingError]:
        if discount_code is not None and discount_code.strip():
            return await resolve_code(self._store, discount_code, subtotal, customer_id, now)
        return await resolve_automatic(self._store, subtotal, customer_id, now)


__all__ = ("PricingEngine",)
