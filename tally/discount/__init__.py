"""
Discount — definitions, resolution and amounts.

    from tally import discount as D

    store = D.MemoryStore([
        D.Discount(id="d1", code="SUMMER20", type=D.DiscountType.PERCENTAGE, value=20),
    ])

    match await D.resolve_code(store, "summer20", subtotal, "cust-1", now):
        case Ok(found):
            amount = D.calculate_discount(found, subtotal)
        case Error(e):
            ...  # CODE_NOT_FOUND, CODE_EXPIRED, MINIMUM_PURCHASE_NOT_MET, ...

Architecture:

    code ──► find_by_code ──┐
                            ├──► check_eligibility ──► calculate_discount
    none ──► list_automatic ┘        (window, minimum, usage)

    commit ──► record_redemption (atomic guard, store-owned)
"""

from tally.discount._types import (
    DiscountType,
    Discount,
    DiscountRedemption,
    normalize_code,
)
from tally.discount._store import (
    StoreError,
    LimitScope,
    LimitReached,
    DiscountStore,
    MemoryStore,
)
from tally.discount._calculate import calculate_discount
from tally.discount._resolve import (
    check_eligibility,
    resolve_code,
    resolve_automatic,
)

from tally.discount._sqlalchemy import (
    Base,
    DiscountTable,
    RedemptionTable,
    SQLAlchemyStore,
    create_database,
)

__all__ = (
    # Types
    "DiscountType",
    "Discount",
    "DiscountRedemption",
    "normalize_code",
    # Store
    "StoreError",
    "LimitScope",
    "LimitReached",
    "DiscountStore",
    "MemoryStore",
    # Resolution
    "check_eligibility",
    "resolve_code",
    "resolve_automatic",
    "calculate_discount",
    # SQLAlchemy
    "Base",
    "DiscountTable",
    "RedemptionTable",
    "SQLAlchemyStore",
    "create_database",
)
