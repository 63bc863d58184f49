"""
Discount store — typed storage protocol.

All methods return Result for explicit error handling.
record_redemption is the atomic usage guard: it re-checks both limits
and appends the redemption as one indivisible step.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from kungfu import Result, Ok, Error

from tally.discount._types import Discount, DiscountRedemption, normalize_code


# ═══════════════════════════════════════════════════════════════════════════════
# Store Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StoreError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


class LimitScope(Enum):
    TOTAL = auto()
    CUSTOMER = auto()


@dataclass(frozen=True, slots=True)
class LimitReached:
    """The atomic guard refused a redemption."""

    discount_id: str
    scope: LimitScope
    limit: int


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class DiscountStore(Protocol):
    """
    Discount lookup + redemption log.

    Example, wrapping an HTTP back-office:

        class ApiStore:
            async def find_by_code(self, code):
                try:
                    data = await client.get(f"/discounts/{code}")
                    return Ok(to_discount(data) if data else None)
                except Exception as e:
                    return Error(StoreError("Lookup failed", e))
            ...
    """

    async def find_by_code(self, code: str) -> Result[Discount | None, StoreError]:
        """Active discount with this code (case-insensitive), or Ok(None)."""
        ...

    async def list_automatic(self) -> Result[list[Discount], StoreError]:
        """Active automatic discounts (no code)."""
        ...

    async def count_redemptions(
        self,
        discount_id: str,
        customer_id: str | None = None,
    ) -> Result[int, StoreError]:
        """Redemptions of a discount, optionally for one customer."""
        ...

    async def record_redemption(
        self,
        discount: Discount,
        redemption: DiscountRedemption,
    ) -> Result[DiscountRedemption, LimitReached | StoreError]:
        """
        Atomically re-check limits and append.

        Must be atomic: two concurrent calls for a single-use discount
        yield exactly one Ok.
        """
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Store: For Testing / Single Process
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryStore:
    """
    In-memory discount store.

    Note: Single-process only. The guard is an asyncio.Lock.
    """

    def __init__(
        self,
        discounts: Iterable[Discount] = (),
        redemptions: Iterable[DiscountRedemption] = (),
    ) -> None:
        self._discounts: dict[str, Discount] = {d.id: d for d in discounts}
        self._redemptions: list[DiscountRedemption] = list(redemptions)
        self._lock = asyncio.Lock()

    def add(self, discount: Discount) -> None:
        self._discounts[discount.id] = discount

    @property
    def redemptions(self) -> tuple[DiscountRedemption, ...]:
        return tuple(self._redemptions)

    async def find_by_code(self, code: str) -> Result[Discount | None, StoreError]:
        wanted = normalize_code(code)
        for discount in self._discounts.values():
            if discount.is_active and discount.code == wanted:
                return Ok(discount)
        return Ok(None)

    async def list_automatic(self) -> Result[list[Discount], StoreError]:
        return Ok([d for d in self._discounts.values() if d.is_automatic_candidate])

    async def count_redemptions(
        self,
        discount_id: str,
        customer_id: str | None = None,
    ) -> Result[int, StoreError]:
        return Ok(self._count(discount_id, customer_id))

    async def record_redemption(
        self,
        discount: Discount,
        redemption: DiscountRedemption,
    ) -> Result[DiscountRedemption, LimitReached | StoreError]:
        async with self._lock:
            if discount.usage_limit is not None:
                if self._count(discount.id) >= discount.usage_limit:
                    return Error(
                        LimitReached(discount.id, LimitScope.TOTAL, discount.usage_limit)
                    )
            if discount.usage_limit_per_customer is not None:
                used = self._count(discount.id, redemption.customer_id)
                if used >= discount.usage_limit_per_customer:
                    return Error(
                        LimitReached(
                            discount.id,
                            LimitScope.CUSTOMER,
                            discount.usage_limit_per_customer,
                        )
                    )
            self._redemptions.append(redemption)
            return Ok(redemption)

    def _count(self, discount_id: str, customer_id: str | None = None) -> int:
        return sum(
            1
            for r in self._redemptions
            if r.discount_id == discount_id
            and (customer_id is None or r.customer_id == customer_id)
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "StoreError",
    "LimitScope",
    "LimitReached",
    "DiscountStore",
    "MemoryStore",
)
