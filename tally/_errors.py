"""
Pricing errors — deterministic rejections of the given input.

Every operation returns Result[T, PricingError]. Rejections are
user-recoverable (edit the cart or the code) and never retried.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum, auto
from typing import Any


# ═══════════════════════════════════════════════════════════════════════════════
# Error Kind
# ═══════════════════════════════════════════════════════════════════════════════


class PricingErrorKind(Enum):
    """Kinds of pricing errors."""

    INSUFFICIENT_STOCK = auto()  # Line quantity above available stock
    CODE_NOT_FOUND = auto()  # No active discount with that code
    CODE_NOT_YET_ACTIVE = auto()  # now < starts_at
    CODE_EXPIRED = auto()  # now > ends_at
    MINIMUM_PURCHASE_NOT_MET = auto()  # subtotal < minimum_purchase_amount
    USAGE_LIMIT_EXCEEDED = auto()  # Global usage limit reached
    CUSTOMER_USAGE_LIMIT_EXCEEDED = auto()  # Per-customer limit reached
    STORE_ERROR = auto()  # Storage backend failed

    @property
    def recoverable(self) -> bool:
        """True when the shopper can fix it by editing the cart or code."""
        return self is not PricingErrorKind.STORE_ERROR


# ═══════════════════════════════════════════════════════════════════════════════
# Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PricingError:
    """
    Pricing operation error.

    details carries what the checkout needs to render a specific message,
    e.g. {"minimum": Decimal("50.00")} or {"requested": 3, "available": 1}.
    """

    kind: PricingErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class PricingErrors:
    """Constructors for each rejection, with the shopper-facing message."""

    @staticmethod
    def insufficient_stock(product_id: str, requested: int, available: int) -> PricingError:
        return PricingError(
            PricingErrorKind.INSUFFICIENT_STOCK,
            f"Only {available} of {product_id} in stock, {requested} requested",
            {"product_id": product_id, "requested": requested, "available": available},
        )

    @staticmethod
    def code_not_found(code: str) -> PricingError:
        return PricingError(
            PricingErrorKind.CODE_NOT_FOUND,
            "Invalid promo code",
            {"code": code},
        )

    @staticmethod
    def code_not_yet_active(code: str | None, starts_at: datetime) -> PricingError:
        return PricingError(
            PricingErrorKind.CODE_NOT_YET_ACTIVE,
            f"This promo code is not valid until {starts_at.isoformat()}",
            {"code": code, "starts_at": starts_at},
        )

    @staticmethod
    def code_expired(code: str | None, ends_at: datetime) -> PricingError:
        return PricingError(
            PricingErrorKind.CODE_EXPIRED,
            f"This promo code expired at {ends_at.isoformat()}",
            {"code": code, "ends_at": ends_at},
        )

    @staticmethod
    def minimum_purchase_not_met(
        code: str | None, minimum: Decimal, subtotal: Decimal
    ) -> PricingError:
        return PricingError(
            PricingErrorKind.MINIMUM_PURCHASE_NOT_MET,
            f"This code requires a minimum purchase of ${minimum:.2f}",
            {"code": code, "minimum": minimum, "subtotal": subtotal},
        )

    @staticmethod
    def usage_limit_exceeded(code: str | None, limit: int) -> PricingError:
        return PricingError(
            PricingErrorKind.USAGE_LIMIT_EXCEEDED,
            "This promo code has reached its usage limit",
            {"code": code, "limit": limit},
        )

    @staticmethod
    def customer_usage_limit_exceeded(
        code: str | None, customer_id: str, limit: int
    ) -> PricingError:
        return PricingError(
            PricingErrorKind.CUSTOMER_USAGE_LIMIT_EXCEEDED,
            f"You have already used this promo code {limit} time(s)",
            {"code": code, "customer_id": customer_id, "limit": limit},
        )

    @staticmethod
    def store_error(message: str) -> PricingError:
        return PricingError(PricingErrorKind.STORE_ERROR, message)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "PricingErrorKind",
    "PricingError",
    "PricingErrors",
)
