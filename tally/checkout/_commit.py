"""
Order commit — re-price, place, redeem; roll back on refusal.

    commit_order(engine, orders, request)
        1. engine.quote()            price again, never trust the quote
        2. orders.place()            compensator: orders.cancel()
        3. store.record_redemption() atomic usage guard
    Any failure after step 2 runs the compensators in reverse.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from kungfu import Result, Ok, Error

from tally._errors import PricingError, PricingErrors
from tally.checkout._types import CommitRequest, CommittedOrder, OrderBook
from tally.discount import DiscountRedemption, LimitReached, LimitScope
from tally.totals import PricingEngine

logger = logging.getLogger(__name__)

type Compensator = Callable[[], Awaitable[None]]
"""A compensation action that undoes a step."""


# ═══════════════════════════════════════════════════════════════════════════════
# run_compensators(): Rollback
# ═══════════════════════════════════════════════════════════════════════════════


async def run_compensators(compensators: list[Compensator]) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    comp_run = 0
    comp_failed = 0

    for comp in reversed(compensators):
        try:
            await comp()
            comp_run += 1
        except Exception:
            logger.exception("Compensation step failed")
            comp_failed += 1

    return comp_run, comp_failed


# ═══════════════════════════════════════════════════════════════════════════════
# commit_order()
# ═══════════════════════════════════════════════════════════════════════════════


async def commit_order(
    engine: PricingEngine,
    orders: OrderBook,
    request: CommitRequest,
    now: datetime | None = None,
) -> Result[CommittedOrder, PricingError]:
    """
    Commit an order with its discount.

    On a usage-limit refusal the order is cancelled and the caller gets
    USAGE_LIMIT_EXCEEDED / CUSTOMER_USAGE_LIMIT_EXCEEDED, even though the
    checkout page accepted the code. Re-quote without the code and ask
    the shopper again.

    Example:
        match await commit_order(engine, orders, request):
            case Ok(committed):
                capture_payment(committed.breakdown.grand_total)
            case Error(e) if e.kind.recoverable:
                requote_without_code()
            case Error(e):
                raise RuntimeError(e.message)
    """
    moment = now or datetime.now(timezone.utc)

    match await engine.quote(
        request.lines, request.discount_code, request.customer_id, moment
    ):
        case Ok(quote):
            pass
        case Error(e):
            return Error(e)

    breakdown = quote.breakdown
    compensators: list[Compensator] = []

    match await orders.place(request.customer_id, request.lines, breakdown):
        case Ok(order_id):
            compensators.append(lambda: orders.cancel(order_id))
        case Error(store_error):
            logger.warning("Order placement failed: %s", store_error.message)
            return Error(PricingErrors.store_error(store_error.message))

    discount = quote.discount
    if discount is None:
        logger.info(
            "Committed order %s for %s: %s", order_id, request.customer_id, breakdown.grand_total
        )
        return Ok(CommittedOrder(order_id, breakdown))

    redemption = DiscountRedemption(
        discount_id=discount.id,
        customer_id=request.customer_id,
        order_id=order_id,
        amount_discounted=breakdown.discount_amount,
        created_at=moment,
    )

    match await engine.store.record_redemption(discount, redemption):
        case Ok(recorded):
            logger.info(
                "Committed order %s for %s: %s (discount %s, -%s)",
                order_id,
                request.customer_id,
                breakdown.grand_total,
                discount.id,
                breakdown.discount_amount,
            )
            return Ok(CommittedOrder(order_id, breakdown, recorded))

        case Error(LimitReached() as refused):
            comp_run, comp_failed = await run_compensators(compensators)
            logger.warning(
                "Usage guard refused %s for order %s (%s limit %d); rolled back %d step(s), %d failed",
                discount.id,
                order_id,
                refused.scope.name,
                refused.limit,
                comp_run,
                comp_failed,
            )
            if refused.scope is LimitScope.CUSTOMER:
                return Error(
                    PricingErrors.customer_usage_limit_exceeded(
                        discount.code, request.customer_id, refused.limit
                    )
                )
            return Error(PricingErrors.usage_limit_exceeded(discount.code, refused.limit))

        case Error(store_error):
            await run_compensators(compensators)
            logger.warning("Recording redemption failed: %s", store_error.message)
            return Error(PricingErrors.store_error(store_error.message))


__all__ = (
    "Compensator",
    "run_compensators",
    "commit_order",
)
