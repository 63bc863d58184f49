"""
SQLAlchemy integration — discount store backed by the storefront schema.

Usage:
    session_factory, engine = await create_database("sqlite+aiosqlite:///shop.db")
    store = SQLAlchemyStore(session_factory)

    await store.save_discount(Discount(id="d1", code="SUMMER20", ...))
    result = await store.find_by_code("summer20")

The usage guard:
    record_redemption() runs in ONE transaction:
        1. UPDATE discounts SET times_used = times_used + 1
           WHERE id = :id AND (usage_limit IS NULL OR times_used < usage_limit)
           → 0 rows means the global limit is reached.
        2. Read usage_limit_per_customer from the same row and COUNT
           redemptions for (discount, customer).
        3. INSERT the redemption, COMMIT.
    Any refusal rolls the whole transaction back. Calls on one store are
    serialized with an asyncio.Lock.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Any, cast

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from kungfu import Result, Ok, Error

from tally._types import as_utc
from tally.discount._store import LimitReached, LimitScope, StoreError
from tally.discount._types import (
    Discount,
    DiscountRedemption,
    DiscountType,
    normalize_code,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class DiscountTable(Base):
    __tablename__ = "discounts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    code: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_automatic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    minimum_purchase_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_limit_per_customer: Mapped[int | None] = mapped_column(Integer, nullable=True)
    starts_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Counter behind the usage guard; mirrors the redemption count
    times_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class RedemptionTable(Base):
    __tablename__ = "discount_redemptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discount_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("discounts.id", ondelete="CASCADE"), index=True
    )
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    order_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount_discounted: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    if ":memory:" in url:
        # One shared connection, otherwise every session sees an empty DB
        engine = create_async_engine(url, echo=False, poolclass=StaticPool)
    else:
        engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


# ═══════════════════════════════════════════════════════════════════════════════
# Store
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyStore:
    """
    DiscountStore over async SQLAlchemy sessions.

    Note: Calls on one store run one at a time. With in-memory SQLite every
    session shares a single connection, so a rollback or a pool reset in one
    session would otherwise undo another session's uncommitted guard update.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._lock = asyncio.Lock()

    async def save_discount(self, discount: Discount) -> Result[None, StoreError]:
        """Insert or replace a discount definition (back-office side)."""
        try:
            async with self._lock, self._session_factory() as session:
                existing = await session.get(DiscountTable, discount.id)
                times_used = existing.times_used if existing is not None else 0
                await session.merge(_to_row(discount, times_used))
                await session.commit()
                return Ok(None)

        except Exception as e:
            return Error(StoreError(f"Failed to save discount: {e}", e))

    async def find_by_code(self, code: str) -> Result[Discount | None, StoreError]:
        try:
            async with self._lock, self._session_factory() as session:
                stmt = select(DiscountTable).where(
                    func.upper(DiscountTable.code) == normalize_code(code),
                    DiscountTable.is_active.is_(True),
                )
                result = await session.execute(stmt)
                row = result.scalars().first()
                return Ok(_to_discount(row) if row is not None else None)

        except Exception as e:
            return Error(StoreError(f"Failed to find discount: {e}", e))

    async def list_automatic(self) -> Result[list[Discount], StoreError]:
        try:
            async with self._lock, self._session_factory() as session:
                stmt = (
                    select(DiscountTable)
                    .where(
                        DiscountTable.is_active.is_(True),
                        DiscountTable.is_automatic.is_(True),
                        DiscountTable.code.is_(None),
                    )
                    .order_by(DiscountTable.id)
                )
                result = await session.execute(stmt)
                return Ok([_to_discount(row) for row in result.scalars()])

        except Exception as e:
            return Error(StoreError(f"Failed to list automatic discounts: {e}", e))

    async def count_redemptions(
        self,
        discount_id: str,
        customer_id: str | None = None,
    ) -> Result[int, StoreError]:
        try:
            async with self._lock, self._session_factory() as session:
                return Ok(await _count(session, discount_id, customer_id))

        except Exception as e:
            return Error(StoreError(f"Failed to count redemptions: {e}", e))

    async def record_redemption(
        self,
        discount: Discount,
        redemption: DiscountRedemption,
    ) -> Result[DiscountRedemption, LimitReached | StoreError]:
        try:
            async with self._lock, self._session_factory() as session:
                stmt = (
                    update(DiscountTable)
                    .where(
                        DiscountTable.id == discount.id,
                        or_(
                            DiscountTable.usage_limit.is_(None),
                            DiscountTable.times_used < DiscountTable.usage_limit,
                        ),
                    )
                    .values(times_used=DiscountTable.times_used + 1)
                )
                cursor = cast(CursorResult[Any], await session.execute(stmt))

                if cursor.rowcount == 0:
                    await session.rollback()
                    limit = await session.scalar(
                        select(DiscountTable.usage_limit).where(
                            DiscountTable.id == discount.id
                        )
                    )
                    if limit is None:
                        return Error(StoreError(f"Discount not found: {discount.id}"))
                    return Error(LimitReached(discount.id, LimitScope.TOTAL, limit))

                # Read from the row just updated, same source as the global limit
                per_customer = await session.scalar(
                    select(DiscountTable.usage_limit_per_customer).where(
                        DiscountTable.id == discount.id
                    )
                )
                if per_customer is not None:
                    used = await _count(session, discount.id, redemption.customer_id)
                    if used >= per_customer:
                        await session.rollback()
                        return Error(
                            LimitReached(discount.id, LimitScope.CUSTOMER, per_customer)
                        )

                session.add(
                    RedemptionTable(
                        discount_id=redemption.discount_id,
                        customer_id=redemption.customer_id,
                        order_id=redemption.order_id,
                        amount_discounted=redemption.amount_discounted,
                        created_at=as_utc(redemption.created_at),
                    )
                )
                await session.commit()
                return Ok(redemption)

        except Exception as e:
            return Error(StoreError(f"Failed to record redemption: {e}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# Mapping
# ═══════════════════════════════════════════════════════════════════════════════


async def _count(
    session: AsyncSession,
    discount_id: str,
    customer_id: str | None,
) -> int:
    stmt = (
        select(func.count())
        .select_from(RedemptionTable)
        .where(RedemptionTable.discount_id == discount_id)
    )
    if customer_id is not None:
        stmt = stmt.where(RedemptionTable.customer_id == customer_id)
    result = await session.execute(stmt)
    return int(result.scalar_one())


def _to_row(discount: Discount, times_used: int) -> DiscountTable:
    return DiscountTable(
        id=discount.id,
        name=discount.name,
        code=discount.code,
        discount_type=discount.type.value,
        discount_value=discount.value,
        is_active=discount.is_active,
        is_automatic=discount.is_automatic,
        minimum_purchase_amount=discount.minimum_purchase_amount,
        usage_limit=discount.usage_limit,
        usage_limit_per_customer=discount.usage_limit_per_customer,
        starts_at=as_utc(discount.starts_at) if discount.starts_at else None,
        ends_at=as_utc(discount.ends_at) if discount.ends_at else None,
        times_used=times_used,
    )


def _to_discount(row: DiscountTable) -> Discount:
    # SQLite drops tzinfo on the way back; as_utc restores it
    return Discount(
        id=row.id,
        name=row.name,
        code=row.code,
        type=DiscountType(row.discount_type),
        value=row.discount_value,
        is_active=row.is_active,
        is_automatic=row.is_automatic,
        minimum_purchase_amount=row.minimum_purchase_amount,
        usage_limit=row.usage_limit,
        usage_limit_per_customer=row.usage_limit_per_customer,
        starts_at=as_utc(row.starts_at) if row.starts_at else None,
        ends_at=as_utc(row.ends_at) if row.ends_at else None,
    )


__all__ = (
    "Base",
    "DiscountTable",
    "RedemptionTable",
    "create_database",
    "SQLAlchemyStore",
)
