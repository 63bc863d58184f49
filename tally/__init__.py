"""
tally — checkout pricing and discount resolution.

    from tally import cart as Ca          # Cart snapshot + subtotal
    from tally import discount as D       # Codes, automatic discounts, usage guard
    from tally import totals as T         # Tax, shipping, PricingEngine
    from tally import checkout as C       # Commit with rollback
    from tally.api import create_app      # FastAPI surface
"""

from tally import cart
from tally import discount
from tally import totals
from tally import checkout
from tally.config import PricingConfig
from tally.totals import PricingEngine, OrderTotalBreakdown
from tally._errors import PricingError, PricingErrorKind, PricingErrors
from tally._types import (
    Result,
    Ok,
    Error,
    Money,
    round_money,
)

__version__ = "0.1.0"

__all__ = (
    "cart",
    "discount",
    "totals",
    "checkout",
    "PricingConfig",
    "PricingEngine",
    "OrderTotalBreakdown",
    "PricingError",
    "PricingErrorKind",
    "PricingErrors",
    "Result",
    "Ok",
    "Error",
    "Money",
    "round_money",
)
