import asyncio
from datetime import timedelta
from decimal import Decimal

from kungfu import Ok, Error

from tally import PricingEngine, PricingErrorKind
from tally.checkout import CommitRequest, MemoryOrderBook, commit_order
from tally.discount import (
    DiscountRedemption,
    LimitReached,
    LimitScope,
    SQLAlchemyStore,
    create_database,
)

from helpers import NOW, fixed, line, percentage, unwrap_ok, unwrap_err


async def seeded(*discounts):
    session_factory, engine = await create_database()
    store = SQLAlchemyStore(session_factory)
    for discount in discounts:
        unwrap_ok(await store.save_discount(discount))
    return store, engine


def redemption(discount_id, customer="cust-1", order="ORD-1", amount="5.00"):
    return DiscountRedemption(discount_id, customer, order, Decimal(amount), NOW)


def test_find_by_code_round_trips_definition():
    async def scenario():
        original = fixed(
            "d-welcome",
            "WELCOME10",
            "10.00",
            name="Welcome",
            minimum_purchase_amount=Decimal("50.00"),
            usage_limit=100,
            usage_limit_per_customer=1,
            starts_at=NOW - timedelta(days=1),
            ends_at=NOW + timedelta(days=30),
        )
        store, engine = await seeded(original)
        found = unwrap_ok(await store.find_by_code("welcome10"))
        await engine.dispose()
        return original, found

    original, found = asyncio.run(scenario())
    assert found == original


def test_inactive_and_unknown_codes_are_not_found():
    async def scenario():
        store, engine = await seeded(percentage("d", "OLD", "10", is_active=False))
        results = (
            unwrap_ok(await store.find_by_code("OLD")),
            unwrap_ok(await store.find_by_code("MISSING")),
        )
        await engine.dispose()
        return results

    assert asyncio.run(scenario()) == (None, None)


def test_list_automatic():
    async def scenario():
        store, engine = await seeded(
            fixed("a-2", None, "2.00", is_automatic=True),
            fixed("a-1", None, "1.00", is_automatic=True),
            fixed("coded", "CODE", "1.00", is_automatic=True),
            fixed("manual", None, "1.00"),
        )
        found = unwrap_ok(await store.list_automatic())
        await engine.dispose()
        return [d.id for d in found]

    assert asyncio.run(scenario()) == ["a-1", "a-2"]


def test_counts_and_guard_for_single_use_code():
    async def scenario():
        once = fixed("d-once", "ONCE", "5.00", usage_limit=1)
        store, engine = await seeded(once)
        first = await store.record_redemption(once, redemption("d-once", "cust-1", "ORD-1"))
        second = await store.record_redemption(once, redemption("d-once", "cust-2", "ORD-2"))
        total = unwrap_ok(await store.count_redemptions("d-once"))
        for_cust_2 = unwrap_ok(await store.count_redemptions("d-once", "cust-2"))
        await engine.dispose()
        return first, second, total, for_cust_2

    first, second, total, for_cust_2 = asyncio.run(scenario())
    assert unwrap_ok(first).order_id == "ORD-1"
    assert unwrap_err(second) == LimitReached("d-once", LimitScope.TOTAL, 1)
    assert total == 1
    assert for_cust_2 == 0


def test_guard_per_customer_limit_rolls_back_counter():
    async def scenario():
        loyal = percentage("d-loyal", "LOYAL", "15", usage_limit=2, usage_limit_per_customer=1)
        store, engine = await seeded(loyal)
        unwrap_ok(await store.record_redemption(loyal, redemption("d-loyal", "cust-1", "ORD-1")))
        refused = await store.record_redemption(loyal, redemption("d-loyal", "cust-1", "ORD-2"))
        # The refused attempt must not have consumed the second global slot
        other = await store.record_redemption(loyal, redemption("d-loyal", "cust-2", "ORD-3"))
        await engine.dispose()
        return refused, other

    refused, other = asyncio.run(scenario())
    assert unwrap_err(refused).scope is LimitScope.CUSTOMER
    assert unwrap_ok(other).customer_id == "cust-2"


def test_guard_for_unknown_discount_is_store_error():
    async def scenario():
        store, engine = await seeded()
        ghost = fixed("ghost", "GHOST", "1.00")
        result = await store.record_redemption(ghost, redemption("ghost"))
        await engine.dispose()
        return result

    error = unwrap_err(asyncio.run(scenario()))
    assert "ghost" in error.message


def test_engine_over_sqlalchemy_store():
    async def scenario():
        store, engine = await seeded(
            percentage("d-summer", "SUMMER20", "20"),
            fixed("d-once", "ONCE", "5.00", usage_limit=1),
        )
        unwrap_ok(
            await store.record_redemption(
                fixed("d-once", "ONCE", "5.00", usage_limit=1),
                redemption("d-once", "cust-other"),
            )
        )
        pricing = PricingEngine(store)
        summer = await pricing.compute_order_total([line("100.00")], "summer20", "cust-1", NOW)
        once = await pricing.compute_order_total([line("100.00")], "ONCE", "cust-1", NOW)
        await engine.dispose()
        return summer, once

    summer, once = asyncio.run(scenario())
    assert unwrap_ok(summer).grand_total == Decimal("88.00")
    assert unwrap_err(once).kind is PricingErrorKind.USAGE_LIMIT_EXCEEDED


def test_concurrent_guard_calls_never_exceed_the_limit():
    async def scenario():
        once = fixed("d-once", "ONCE", "5.00", usage_limit=1)
        store, engine = await seeded(once)
        results = await asyncio.gather(
            store.record_redemption(once, redemption("d-once", "cust-a", "ORD-A")),
            store.count_redemptions("d-once"),
            store.record_redemption(once, redemption("d-once", "cust-b", "ORD-B")),
            store.count_redemptions("d-once"),
            store.record_redemption(once, redemption("d-once", "cust-c", "ORD-C")),
        )
        later = await store.record_redemption(once, redemption("d-once", "cust-x", "ORD-X"))
        total = unwrap_ok(await store.count_redemptions("d-once"))
        await engine.dispose()
        return results, later, total

    results, later, total = asyncio.run(scenario())

    guards = [results[0], results[2], results[4], later]
    assert len([r for r in guards if isinstance(r, Ok)]) == 1
    assert all(
        unwrap_err(r).scope is LimitScope.TOTAL for r in guards if isinstance(r, Error)
    )
    assert total == 1


def test_concurrent_commits_over_sqlalchemy_store():
    async def scenario():
        once = fixed("d-once", "ONCE", "5.00", usage_limit=1)
        store, engine = await seeded(once)
        pricing = PricingEngine(store)
        orders = MemoryOrderBook(yield_on_place=True)

        def commit(customer_id):
            request = CommitRequest(customer_id, (line("100.00"),), "ONCE")
            return commit_order(pricing, orders, request, NOW)

        results = await asyncio.gather(commit("cust-1"), commit("cust-2"), commit("cust-3"))
        later = await commit("cust-4")
        total = unwrap_ok(await store.count_redemptions("d-once"))
        await engine.dispose()
        return results, later, total, orders

    results, later, total, orders = asyncio.run(scenario())

    winners = [r for r in results if isinstance(r, Ok)]
    assert len(winners) == 1
    for result in results:
        if isinstance(result, Error):
            assert unwrap_err(result).kind is PricingErrorKind.USAGE_LIMIT_EXCEEDED
    assert unwrap_err(later).kind is PricingErrorKind.USAGE_LIMIT_EXCEEDED
    assert total == 1
    assert list(orders.orders) == [unwrap_ok(winners[0]).order_id]


def test_guard_reads_per_customer_limit_from_stored_row():
    async def scenario():
        stored = percentage("d-loyal", "LOYAL", "15", usage_limit_per_customer=1)
        store, engine = await seeded(stored)
        # Caller holds a snapshot taken before the limit was set
        stale = percentage("d-loyal", "LOYAL", "15")
        unwrap_ok(await store.record_redemption(stale, redemption("d-loyal", "cust-1", "ORD-1")))
        refused = await store.record_redemption(stale, redemption("d-loyal", "cust-1", "ORD-2"))
        total = unwrap_ok(await store.count_redemptions("d-loyal"))
        await engine.dispose()
        return refused, total

    refused, total = asyncio.run(scenario())

    assert unwrap_err(refused) == LimitReached("d-loyal", LimitScope.CUSTOMER, 1)
    assert total == 1
