import pytest
from datetime import timedelta
from decimal import Decimal

from tally.config import PricingConfig
from tally.discount import DiscountRedemption, MemoryStore
from tally.totals import PricingEngine

from helpers import NOW, fixed, percentage


@pytest.fixture
def discounts():
    """The storefront's promo codes."""
    return [
        percentage("d-summer", "SUMMER20", "20", name="Summer sale"),
        fixed("d-welcome", "WELCOME10", "10.00", minimum_purchase_amount=Decimal("50.00")),
        fixed("d-freeship", "FREESHIP", "9.99", minimum_purchase_amount=Decimal("100.00")),
        fixed("d-once", "ONCE", "5.00", usage_limit=1),
        percentage("d-loyal", "LOYAL15", "15", usage_limit_per_customer=1),
        percentage(
            "d-future", "FUTURE", "10", starts_at=NOW + timedelta(days=1)
        ),
        percentage(
            "d-past", "PAST", "10", starts_at=NOW - timedelta(days=30), ends_at=NOW - timedelta(days=1)
        ),
        percentage("d-off", "RETIRED", "50", is_active=False),
    ]


@pytest.fixture
def store(discounts):
    return MemoryStore(discounts)


@pytest.fixture
def config():
    return PricingConfig()


@pytest.fixture
def engine(store, config):
    return PricingEngine(store, config)


@pytest.fixture
def redeemed_once():
    """ONCE already used by another customer."""
    return DiscountRedemption(
        discount_id="d-once",
        customer_id="cust-other",
        order_id="ORD-000001",
        amount_discounted=Decimal("5.00"),
        created_at=NOW - timedelta(hours=1),
    )
