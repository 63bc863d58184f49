"""Shared builders and Result helpers for the tests."""

from datetime import datetime, timezone
from decimal import Decimal

from kungfu import Ok, Error

from tally.cart import CartLine
from tally.discount import Discount, DiscountType

NOW = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


def line(price: str, qty: int = 1, stock: int = 100, product_id: str = "sku-1") -> CartLine:
    return CartLine(product_id, Decimal(price), qty, stock)


def percentage(id: str, code: str | None, value: str, **kw) -> Discount:
    return Discount(id=id, code=code, type=DiscountType.PERCENTAGE, value=Decimal(value), **kw)


def fixed(id: str, code: str | None, value: str, **kw) -> Discount:
    return Discount(id=id, code=code, type=DiscountType.FIXED_AMOUNT, value=Decimal(value), **kw)


def unwrap_ok(result):
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise AssertionError(f"expected Ok, got Error({e!r})")


def unwrap_err(result):
    match result:
        case Error(e):
            return e
        case Ok(value):
            raise AssertionError(f"expected Error, got Ok({value!r})")
