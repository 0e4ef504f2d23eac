"""
KPI API Endpoints

Invocation surface for automation: the daily KPI summary and the daily
aggregate projection it is built from.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from sales_kpi.database.connection import get_db_dependency
from sales_kpi.kpi.aggregates import fetch_daily_aggregates
from sales_kpi.kpi.summary import ZERO_MONEY, KpiSummary, get_daily_kpi_report

router = APIRouter()
logger = structlog.get_logger(__name__)


class DailySalesData(BaseModel):
    """Daily aggregate data point"""
    date: date
    revenue: Decimal
    orders: int


class DailySalesSeries(BaseModel):
    """Daily aggregate response"""
    data: List[DailySalesData]
    total_revenue: Decimal
    total_orders: int


@router.get("/daily-summary", response_model=KpiSummary)
async def get_daily_summary(
    response: Response,
    report_date: Optional[str] = Query(None, alias="ReportDate", description="YYYY-MM-DD or ISO-8601 timestamp"),
    db: AsyncSession = Depends(get_db_dependency),
) -> KpiSummary:
    """
    Daily KPI summary.

    Always answers 200 with exactly one record; malformed dates yield the
    "Invalid ReportDate" record and days without sales the "No data" record.
    The X-KPI-Status header tells the three cases apart.
    """
    report = await get_daily_kpi_report(db, report_date)
    response.headers["X-KPI-Status"] = report.status.value
    return report.summary


@router.get("/daily", response_model=DailySalesSeries)
async def get_daily_sales(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: AsyncSession = Depends(get_db_dependency),
) -> DailySalesSeries:
    """Revenue and order count per day, ordered by date"""
    rows = await fetch_daily_aggregates(db, start_date, end_date)
    data = [
        DailySalesData(date=row.txn_date, revenue=row.revenue, orders=row.orders)
        for row in rows
    ]
    logger.info("Daily sales returned", data_points=len(data))
    return DailySalesSeries(
        data=data,
        total_revenue=sum((row.revenue for row in rows), ZERO_MONEY),
        total_orders=sum(row.orders for row in rows),
    )
