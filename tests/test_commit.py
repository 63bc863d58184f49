import asyncio
from decimal import Decimal

from kungfu import Ok, Error

from tally import PricingErrorKind
from tally.checkout import (
    CommitRequest,
    MemoryOrderBook,
    commit_order,
    run_compensators,
)
from tally.discount import MemoryStore, StoreError
from tally.totals import PricingEngine

from helpers import NOW, fixed, line, unwrap_ok, unwrap_err


def commit(engine, orders, customer_id, code=None, lines=None):
    request = CommitRequest(customer_id, tuple(lines or [line("100.00")]), code)
    return commit_order(engine, orders, request, NOW)


def test_commit_without_discount(engine):
    orders = MemoryOrderBook()

    committed = unwrap_ok(asyncio.run(commit(engine, orders, "cust-1")))

    assert committed.order_id == "ORD-000001"
    assert committed.redemption is None
    assert committed.breakdown.grand_total == Decimal("108.00")
    assert list(orders.orders) == ["ORD-000001"]
    assert engine.store.redemptions == ()


def test_commit_records_redemption(engine):
    orders = MemoryOrderBook()

    committed = unwrap_ok(asyncio.run(commit(engine, orders, "cust-1", "summer20")))

    assert committed.breakdown.discount_amount == Decimal("20.00")
    assert committed.redemption.discount_id == "d-summer"
    assert committed.redemption.order_id == committed.order_id
    assert committed.redemption.amount_discounted == Decimal("20.00")
    assert engine.store.redemptions == (committed.redemption,)


def test_commit_rejects_before_placing(engine):
    orders = MemoryOrderBook()

    error = unwrap_err(asyncio.run(commit(engine, orders, "cust-1", "NOPE")))

    assert error.kind is PricingErrorKind.CODE_NOT_FOUND
    assert orders.orders == {}


def test_concurrent_single_use_commits_let_exactly_one_through(engine):
    orders = MemoryOrderBook(yield_on_place=True)

    async def race():
        return await asyncio.gather(
            commit(engine, orders, "cust-1", "ONCE"),
            commit(engine, orders, "cust-2", "ONCE"),
        )

    results = asyncio.run(race())

    winners = [r for r in results if isinstance(r, Ok)]
    losers = [r for r in results if isinstance(r, Error)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert unwrap_err(losers[0]).kind is PricingErrorKind.USAGE_LIMIT_EXCEEDED
    # The losing order was cancelled
    assert list(orders.orders) == [unwrap_ok(winners[0]).order_id]
    assert len(engine.store.redemptions) == 1


def test_concurrent_commits_by_same_customer_hit_customer_limit(engine):
    orders = MemoryOrderBook(yield_on_place=True)

    async def race():
        return await asyncio.gather(
            commit(engine, orders, "cust-1", "LOYAL15"),
            commit(engine, orders, "cust-1", "LOYAL15"),
        )

    first, second = asyncio.run(race())

    assert unwrap_ok(first).breakdown.discount_amount == Decimal("15.00")
    error = unwrap_err(second)
    assert error.kind is PricingErrorKind.CUSTOMER_USAGE_LIMIT_EXCEEDED
    assert error.details["limit"] == 1
    assert len(orders.orders) == 1


def test_requote_without_code_after_refusal(engine):
    orders = MemoryOrderBook(yield_on_place=True)

    async def race_then_retry():
        results = await asyncio.gather(
            commit(engine, orders, "cust-1", "ONCE"),
            commit(engine, orders, "cust-2", "ONCE"),
        )
        loser = next(i for i, r in enumerate(results) if isinstance(r, Error))
        customer = ("cust-1", "cust-2")[loser]
        return await commit(engine, orders, customer)

    retried = unwrap_ok(asyncio.run(race_then_retry()))

    assert retried.breakdown.discount_amount == Decimal("0.00")
    assert retried.breakdown.grand_total == Decimal("108.00")
    assert len(orders.orders) == 2


def test_store_failure_on_redeem_cancels_order():
    class BrokenStore(MemoryStore):
        async def record_redemption(self, discount, redemption):
            return Error(StoreError("connection reset"))

    engine = PricingEngine(BrokenStore([fixed("d", "TAKE5", "5.00")]))
    orders = MemoryOrderBook()

    error = unwrap_err(asyncio.run(commit(engine, orders, "cust-1", "TAKE5")))

    assert error.kind is PricingErrorKind.STORE_ERROR
    assert not error.kind.recoverable
    assert orders.orders == {}


def test_run_compensators_reverse_order_and_failures():
    calls = []

    def step(name, fail=False):
        async def undo():
            calls.append(name)
            if fail:
                raise RuntimeError(name)

        return undo

    ran, failed = asyncio.run(
        run_compensators([step("place"), step("reserve", fail=True), step("notify")])
    )

    assert calls == ["notify", "reserve", "place"]
    assert (ran, failed) == (2, 1)
