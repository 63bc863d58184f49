"""
Totals — tax, shipping, assembly and the pricing engine.

    from tally import totals as T

    engine = T.PricingEngine(store, PricingConfig(tax_rate=Decimal("0.08")))
    result = await engine.compute_order_total(lines, "SUMMER20", "cust-1", now)
"""

from tally.totals._types import OrderTotalBreakdown, Quote
from tally.totals._tax import calculate_tax
from tally.totals._shipping import calculate_shipping
from tally.totals._assemble import assemble_breakdown
from tally.totals._engine import PricingEngine

__all__ = (
    "OrderTotalBreakdown",
    "Quote",
    "calculate_tax",
    "calculate_shipping",
    "assemble_breakdown",
    "PricingEngine",
)
