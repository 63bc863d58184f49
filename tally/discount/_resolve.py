"""
Discount resolution — code lookup and eligibility.

    code → find_by_code → window → minimum → usage limits → Discount

The usage check here is advisory: two checkouts can both pass it. The
store's record_redemption() is what enforces the limit at commit.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from kungfu import Result, Ok, Error

from tally._errors import PricingError, PricingErrors
from tally._types import as_utc
from tally.discount._calculate import calculate_discount
from tally.discount._store import DiscountStore
from tally.discount._types import Discount, normalize_code

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Eligibility
# ═══════════════════════════════════════════════════════════════════════════════


async def check_eligibility(
    store: DiscountStore,
    discount: Discount,
    subtotal: Decimal,
    customer_id: str,
    now: datetime,
) -> Result[Discount, PricingError]:
    """Validity window, minimum purchase, then usage limits."""
    moment = as_utc(now)

    if discount.starts_at is not None and moment < as_utc(discount.starts_at):
        return Error(PricingErrors.code_not_yet_active(discount.code, discount.starts_at))

    if discount.ends_at is not None and moment > as_utc(discount.ends_at):
        return Error(PricingErrors.code_expired(discount.code, discount.ends_at))

    if subtotal < discount.minimum_purchase_amount:
        return Error(
            PricingErrors.minimum_purchase_not_met(
                discount.code, discount.minimum_purchase_amount, subtotal
            )
        )

    if discount.usage_limit is not None:
        match await store.count_redemptions(discount.id):
            case Ok(used):
                if used >= discount.usage_limit:
                    return Error(
                        PricingErrors.usage_limit_exceeded(discount.code, discount.usage_limit)
                    )
            case Error(e):
                return Error(_store_failed(e.message))

    if discount.usage_limit_per_customer is not None:
        match await store.count_redemptions(discount.id, customer_id):
            case Ok(used):
                if used >= discount.usage_limit_per_customer:
                    return Error(
                        PricingErrors.customer_usage_limit_exceeded(
                            discount.code, customer_id, discount.usage_limit_per_customer
                        )
                    )
            case Error(e):
                return Error(_store_failed(e.message))

    return Ok(discount)


# ═══════════════════════════════════════════════════════════════════════════════
# Code
# ═══════════════════════════════════════════════════════════════════════════════


async def resolve_code(
    store: DiscountStore,
    code: str,
    subtotal: Decimal,
    customer_id: str,
    now: datetime,
) -> Result[Discount, PricingError]:
    """
    Resolve a shopper-entered code.

    Example:
        match await resolve_code(store, "summer20", subtotal, "cust-1", now):
            case Ok(discount):
                amount = calculate_discount(discount, subtotal)
            case Error(e):
                show(e.message)
    """
    wanted = normalize_code(code)

    match await store.find_by_code(wanted):
        case Ok(None):
            logger.debug("Discount code %s not found", wanted)
            return Error(PricingErrors.code_not_found(wanted))
        case Ok(discount):
            pass
        case Error(e):
            return Error(_store_failed(e.message))

    if not discount.is_active:
        return Error(PricingErrors.code_not_found(wanted))

    result = await check_eligibility(store, discount, subtotal, customer_id, now)
    match result:
        case Ok(_):
            logger.debug("Discount code %s accepted (%s)", wanted, discount.id)
        case Error(e):
            logger.debug("Discount code %s rejected: %s", wanted, e.kind.name)
    return result


# ═══════════════════════════════════════════════════════════════════════════════
# Automatic
# ═══════════════════════════════════════════════════════════════════════════════


async def resolve_automatic(
    store: DiscountStore,
    subtotal: Decimal,
    customer_id: str,
    now: datetime,
) -> Result[Discount | None, PricingError]:
    """
    Best eligible automatic discount, or Ok(None).

    Each candidate runs the same window/minimum/usage checks; ineligible
    ones are skipped. Largest amount wins, ties go to the lowest id.
    """
    match await store.list_automatic():
        case Ok(candidates):
            pass
        case Error(e):
            return Error(_store_failed(e.message))

    best: Discount | None = None
    best_amount = Decimal("-1")

    for candidate in sorted(candidates, key=lambda d: d.id):
        if not candidate.is_automatic_candidate:
            continue
        match await check_eligibility(store, candidate, subtotal, customer_id, now):
            case Ok(discount):
                amount = calculate_discount(discount, subtotal)
                if amount > best_amount:
                    best, best_amount = discount, amount
            case Error(e):
                if not e.kind.recoverable:
                    return Error(e)
                logger.debug("Automatic discount %s skipped: %s", candidate.id, e.kind.name)

    return Ok(best)


def _store_failed(message: str) -> PricingError:
    logger.warning("Discount store failure: %s", message)
    return PricingErrors.store_error(message)


__all__ = (
    "check_eligibility",
    "resolve_code",
    "resolve_automatic",
)
