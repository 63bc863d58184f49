"""
Shipping — flat rate, waived above the free-shipping threshold.
"""

from __future__ import annotations

from decimal import Decimal

from tally._types import ZERO, round_money
from tally.config import PricingConfig


def calculate_shipping(subtotal: Decimal, config: PricingConfig) -> Decimal:
    """
    Flat shipping for a non-empty cart.

    Free when the pre-discount subtotal is strictly above
    free_shipping_threshold.
    """
    if not config.shipping_enabled or subtotal <= 0:
        return ZERO
    threshold = config.free_shipping_threshold
    if threshold is not None and subtotal > threshold:
        return ZERO
    return round_money(config.shipping_rate)


__all__ = ("calculate_shipping",)
