"""
Cart — immutable line snapshot and subtotal.

    from tally import cart

    lines = (cart.CartLine("sku-1", Decimal("19.99"), 2, available_stock=5),)
    match cart.aggregate_subtotal(lines):
        case Ok(subtotal): ...
        case Error(e): ...  # INSUFFICIENT_STOCK
"""

from tally.cart._types import CartLine, Cart
from tally.cart._aggregate import aggregate_subtotal

__all__ = (
    "CartLine",
    "Cart",
    "aggregate_subtotal",
)
