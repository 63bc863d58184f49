"""
Discount types — definitions and redemption records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from tally._types import ZERO, to_money


# ═══════════════════════════════════════════════════════════════════════════════
# Discount Type
# ═══════════════════════════════════════════════════════════════════════════════


class DiscountType(Enum):
    """How a discount value turns into an amount."""

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


# ═══════════════════════════════════════════════════════════════════════════════
# Discount: read-only to the pricing engine
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Discount:
    """
    A promotional discount as defined in the back-office.

    code=None marks an automatic discount: the shopper cannot enter it,
    it applies without input when eligible.
    """

    id: str
    type: DiscountType
    value: Decimal
    code: str | None = None
    name: str = ""
    is_active: bool = True
    is_automatic: bool = False
    minimum_purchase_amount: Decimal = ZERO
    usage_limit: int | None = None
    usage_limit_per_customer: int | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, DiscountType):
            object.__setattr__(self, "type", DiscountType(self.type))
        object.__setattr__(self, "value", to_money(self.value))
        object.__setattr__(
            self, "minimum_purchase_amount", to_money(self.minimum_purchase_amount)
        )
        if self.code is not None:
            object.__setattr__(self, "code", normalize_code(self.code))
        if self.value < 0:
            raise ValueError(f"Discount {self.id}: value must be >= 0")
        if self.minimum_purchase_amount < 0:
            raise ValueError(f"Discount {self.id}: minimum purchase must be >= 0")

    @property
    def is_automatic_candidate(self) -> bool:
        """Applies without a code."""
        return self.is_active and self.is_automatic and self.code is None


def normalize_code(code: str) -> str:
    """Codes compare case-insensitively; store and look up upper-cased."""
    return code.strip().upper()


# ═══════════════════════════════════════════════════════════════════════════════
# Redemption: append-only usage record
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class DiscountRedemption:
    """
    One recorded use of a discount.

    Note: Created only after the order is committed. Abandoned carts
    never consume a usage slot.
    """

    discount_id: str
    customer_id: str
    order_id: str
    amount_discounted: Decimal
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "DiscountType",
    "Discount",
    "DiscountRedemption",
    "normalize_code",
)
