"""
API — HTTP surface for the checkout UI.

    from tally.api import create_app

    app = create_app(engine)
"""

from tally.api._schemas import CartLineIn, QuoteIn, QuoteOut, ErrorOut
from tally.api._app import create_app, Clock

__all__ = (
    "CartLineIn",
    "QuoteIn",
    "QuoteOut",
    "ErrorOut",
    "create_app",
    "Clock",
)
