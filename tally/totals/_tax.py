"""
Tax — flat rate on the pre-discount subtotal.
"""

from __future__ import annotations

from decimal import Decimal

from tally._types import ZERO, round_money
from tally.config import PricingConfig


def calculate_tax(subtotal: Decimal, config: PricingConfig) -> Decimal:
    # Pre-discount basis: a 20% code does not lower the tax
    if not config.tax_enabled:
        return ZERO
    return round_money(subtotal * config.tax_rate)


__all__ = ("calculate_tax",)
