"""
HTTP schemas — pydantic in/out models with domain converters.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from tally._errors import PricingError
from tally.cart import CartLine
from tally.totals import OrderTotalBreakdown


class CartLineIn(BaseModel):
    product_id: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)
    available_stock: int = Field(ge=0)

    def to_domain(self) -> CartLine:
        return CartLine(
            product_id=self.product_id,
            unit_price=self.unit_price,
            quantity=self.quantity,
            available_stock=self.available_stock,
        )


class QuoteIn(BaseModel):
    customer_id: str
    lines: list[CartLineIn]
    discount_code: str | None = None

    def to_lines(self) -> tuple[CartLine, ...]:
        return tuple(line.to_domain() for line in self.lines)


class QuoteOut(BaseModel):
    subtotal: Decimal
    discount_amount: Decimal
    tax: Decimal
    shipping: Decimal
    grand_total: Decimal
    discount_id: str | None = None
    discount_code: str | None = None

    @classmethod
    def from_domain(cls, breakdown: OrderTotalBreakdown) -> QuoteOut:
        return cls(
            subtotal=breakdown.subtotal,
            discount_amount=breakdown.discount_amount,
            tax=breakdown.tax,
            shipping=breakdown.shipping,
            grand_total=breakdown.grand_total,
            discount_id=breakdown.discount_id,
            discount_code=breakdown.discount_code,
        )


class ErrorOut(BaseModel):
    kind: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, error: PricingError) -> ErrorOut:
        return cls(kind=error.kind.name, message=error.message, details=dict(error.details))


__all__ = ("CartLineIn", "QuoteIn", "QuoteOut", "ErrorOut")
