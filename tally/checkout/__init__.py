"""
Checkout — order commit with the atomic usage guard.

    from tally import checkout as C

    request = C.CommitRequest(customer_id="cust-1", lines=lines, discount_code="SUMMER20")

    match await C.commit_order(engine, C.MemoryOrderBook(), request):
        case Ok(committed):
            ...  # committed.order_id, committed.breakdown, committed.redemption
        case Error(e):
            ...  # USAGE_LIMIT_EXCEEDED after a lost race: re-quote without the code
"""

from tally.checkout._types import (
    CommitRequest,
    CommittedOrder,
    OrderBook,
    PlacedOrder,
    MemoryOrderBook,
)
from tally.checkout._commit import (
    Compensator,
    run_compensators,
    commit_order,
)

__all__ = (
    "CommitRequest",
    "CommittedOrder",
    "OrderBook",
    "PlacedOrder",
    "MemoryOrderBook",
    "Compensator",
    "run_compensators",
    "commit_order",
)
