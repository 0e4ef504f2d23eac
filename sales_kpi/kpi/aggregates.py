"""
Sales Aggregates

Read-only projections over the sales fact table, recomputed on every read:

- Daily: revenue and distinct-transaction count per transaction date
- Daily by category: revenue per (transaction date, product category)

The builders return SQLAlchemy Select constructs so callers can compose them
further; the fetch helpers execute them and return typed rows.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

import structlog
from sqlalchemy import Select, and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sales_kpi.database.models import Sale

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class DailyAggregate:
    """Revenue and order count for one transaction date"""
    txn_date: date
    revenue: Decimal
    orders: int


@dataclass(frozen=True)
class CategoryDailyAggregate:
    """Revenue for one product category on one transaction date"""
    txn_date: date
    product_category: str
    revenue: Decimal


def as_money(value: Any) -> Decimal:
    """Coerce a driver-returned amount (Decimal, float or int) to a 2-decimal Decimal"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT)


def sales_daily(txn_date: Optional[date] = None) -> Select:
    """
    Build the daily aggregate query.

    Args:
        txn_date: Restrict to a single date. The filter is applied before
            grouping so an index on txn_date narrows the scan.
    """
    stmt = select(
        Sale.txn_date.label("txn_date"),
        func.sum(Sale.total_amount).label("revenue"),
        func.count(func.distinct(Sale.transaction_id)).label("orders"),
    )
    if txn_date is not None:
        stmt = stmt.where(Sale.txn_date == txn_date)
    return stmt.group_by(Sale.txn_date)


def sales_daily_by_category(txn_date: Optional[date] = None) -> Select:
    """Build the per-date, per-category revenue query"""
    stmt = select(
        Sale.txn_date.label("txn_date"),
        Sale.product_category.label("product_category"),
        func.sum(Sale.total_amount).label("revenue"),
    )
    if txn_date is not None:
        stmt = stmt.where(Sale.txn_date == txn_date)
    return stmt.group_by(Sale.txn_date, Sale.product_category)


async def fetch_daily_aggregate(session: AsyncSession, txn_date: date) -> Optional[DailyAggregate]:
    """Return the daily aggregate row for a date, or None if there were no sales"""
    result = await session.execute(sales_daily(txn_date))
    row = result.one_or_none()
    if row is None:
        return None
    return DailyAggregate(
        txn_date=row.txn_date,
        revenue=as_money(row.revenue),
        orders=int(row.orders),
    )


async def fetch_category_aggregates(session: AsyncSession, txn_date: date) -> List[CategoryDailyAggregate]:
    """Return one row per category that had sales on the date (unordered)"""
    result = await session.execute(sales_daily_by_category(txn_date))
    return [
        CategoryDailyAggregate(
            txn_date=row.txn_date,
            product_category=row.product_category,
            revenue=as_money(row.revenue),
        )
        for row in result.all()
    ]


async def fetch_daily_aggregates(
    session: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[DailyAggregate]:
    """
    Return the daily projection ordered by date, optionally bounded (inclusive).
    """
    conditions = []
    if start_date is not None:
        conditions.append(Sale.txn_date >= start_date)
    if end_date is not None:
        conditions.append(Sale.txn_date <= end_date)

    stmt = sales_daily()
    if conditions:
        stmt = stmt.where(and_(*conditions))
    result = await session.execute(stmt.order_by(Sale.txn_date))

    rows = [
        DailyAggregate(txn_date=row.txn_date, revenue=as_money(row.revenue), orders=int(row.orders))
        for row in result.all()
    ]
    logger.debug("Daily aggregates fetched", rows=len(rows), start_date=str(start_date), end_date=str(end_date))
    return rows


async def latest_sales_dates(session: AsyncSession, limit: int = 5) -> List[date]:
    """Most recent distinct transaction dates, newest first"""
    result = await session.execute(
        select(Sale.txn_date).distinct().order_by(Sale.txn_date.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def count_sales(session: AsyncSession) -> int:
    """Number of transactions in the fact table"""
    result = await session.execute(select(func.count()).select_from(Sale))
    return int(result.scalar_one())
