"""
Daily KPI Summary

Turns a text report date into exactly one KPI summary record:

1. Normalize and strictly parse the date (invalid input -> sentinel record)
2. Load the margin rate from the config store
3. Read the daily and per-category aggregates for that date
4. Derive average order value, estimated margin and the top category
5. Coalesce missing values to zero / "No data"

The operation is a pure read and never raises for bad input, so unattended
automation always gets a well-formed single record back.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_pascal
from sqlalchemy.ext.asyncio import AsyncSession

from sales_kpi.config import get_settings
from sales_kpi.exceptions import MissingConfigError
from sales_kpi.kpi.aggregates import (
    CENT,
    CategoryDailyAggregate,
    DailyAggregate,
    fetch_category_aggregates,
    fetch_daily_aggregate,
)
from sales_kpi.kpi.config_store import get_config_value
from sales_kpi.kpi.report_date import normalize_report_date

logger = structlog.get_logger(__name__)

INVALID_REPORT_DATE = "Invalid ReportDate"
NO_DATA = "No data"

AOV_SCALE = Decimal("0.000001")
ZERO_MONEY = Decimal("0.00")
ZERO_AOV = Decimal("0.000000")


class SummaryStatus(str, Enum):
    """Exit state of a summary computation"""
    INVALID_INPUT = "invalid_input"
    NO_DATA = "no_data"
    HAS_DATA = "has_data"


class KpiSummary(BaseModel):
    """
    Daily KPI summary record.

    Serialized with PascalCase names (ReportDate, TotalRevenue, ...) for
    automation consumers; Python code uses the snake_case attributes.
    """
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, frozen=True)

    report_date: Optional[date]
    total_revenue: Decimal
    total_orders: int
    avg_order_value: Decimal
    estimated_margin: Decimal
    top_category: str
    top_category_revenue: Decimal

    @classmethod
    def invalid(cls) -> "KpiSummary":
        """Sentinel returned for unparseable report dates"""
        return cls(
            report_date=None,
            total_revenue=ZERO_MONEY,
            total_orders=0,
            avg_order_value=ZERO_AOV,
            estimated_margin=ZERO_MONEY,
            top_category=INVALID_REPORT_DATE,
            top_category_revenue=ZERO_MONEY,
        )


def select_top_category(rows: Iterable[CategoryDailyAggregate]) -> Optional[CategoryDailyAggregate]:
    """
    Highest revenue wins; equal revenue goes to the smaller category name.

    Names compare by code point, independent of any database collation.
    """
    rows = list(rows)
    if not rows:
        return None
    return min(rows, key=lambda r: (-r.revenue, r.product_category))


@dataclass(frozen=True)
class DailyKpiFigures:
    """
    KPI inputs for a valid report date, before presentation.

    Absent values stay None here: no sales row, no category row, or no
    margin rate configured. to_summary() is the only place they collapse
    to zero / "No data".
    """
    report_date: date
    daily: Optional[DailyAggregate]
    top_category: Optional[CategoryDailyAggregate]
    margin_rate: Optional[Decimal]

    @property
    def status(self) -> SummaryStatus:
        if self.daily is None:
            return SummaryStatus.NO_DATA
        return SummaryStatus.HAS_DATA

    @property
    def average_order_value(self) -> Optional[Decimal]:
        if self.daily is None:
            return None
        if self.daily.orders == 0:
            return ZERO_AOV
        return (self.daily.revenue / Decimal(self.daily.orders)).quantize(AOV_SCALE, rounding=ROUND_HALF_UP)

    @property
    def estimated_margin(self) -> Optional[Decimal]:
        if self.daily is None or self.margin_rate is None:
            return None
        return (self.daily.revenue * self.margin_rate).quantize(CENT, rounding=ROUND_HALF_UP)

    def to_summary(self) -> KpiSummary:
        daily = self.daily
        top = self.top_category
        return KpiSummary(
            report_date=self.report_date,
            total_revenue=daily.revenue if daily is not None else ZERO_MONEY,
            total_orders=daily.orders if daily is not None else 0,
            avg_order_value=_coalesce(self.average_order_value, ZERO_AOV),
            estimated_margin=_coalesce(self.estimated_margin, ZERO_MONEY),
            top_category=top.product_category if top is not None else NO_DATA,
            top_category_revenue=top.revenue if top is not None else ZERO_MONEY,
        )


def _coalesce(value: Optional[Decimal], default: Decimal) -> Decimal:
    return default if value is None else value


@dataclass(frozen=True)
class KpiReport:
    """Summary record together with how it was reached"""
    status: SummaryStatus
    summary: KpiSummary
    figures: Optional[DailyKpiFigures] = None


async def get_daily_kpi_figures(
    session: AsyncSession,
    report_date: date,
    margin_rate_key: Optional[str] = None,
    require_margin_rate: Optional[bool] = None,
) -> DailyKpiFigures:
    """
    Read the margin rate and both aggregates for an already-parsed date.

    Raises:
        MissingConfigError: margin rate absent and strict handling enabled
    """
    kpi_settings = get_settings().kpi
    key = margin_rate_key or kpi_settings.margin_rate_key
    strict = kpi_settings.require_margin_rate if require_margin_rate is None else require_margin_rate

    margin_rate = await get_config_value(session, key)
    if margin_rate is None:
        if strict:
            raise MissingConfigError(key)
        logger.warning("margin_rate_missing", key=key, report_date=str(report_date))

    daily = await fetch_daily_aggregate(session, report_date)
    categories = await fetch_category_aggregates(session, report_date)

    return DailyKpiFigures(
        report_date=report_date,
        daily=daily,
        top_category=select_top_category(categories),
        margin_rate=margin_rate,
    )


async def get_daily_kpi_report(
    session: AsyncSession,
    report_date: Optional[str],
    margin_rate_key: Optional[str] = None,
    require_margin_rate: Optional[bool] = None,
) -> KpiReport:
    """Compute the KPI summary and keep the exit state alongside it"""
    day = normalize_report_date(report_date)
    if day is None:
        logger.info("Invalid report date", report_date=repr(report_date))
        return KpiReport(status=SummaryStatus.INVALID_INPUT, summary=KpiSummary.invalid())

    # aggregate and config reads log under the same report_date
    with structlog.contextvars.bound_contextvars(report_date=day.isoformat()):
        figures = await get_daily_kpi_figures(
            session,
            day,
            margin_rate_key=margin_rate_key,
            require_margin_rate=require_margin_rate,
        )
        summary = figures.to_summary()

        logger.info(
            "KPI summary computed",
            status=figures.status.value,
            total_revenue=str(summary.total_revenue),
            total_orders=summary.total_orders,
            top_category=summary.top_category,
        )
    return KpiReport(status=figures.status, summary=summary, figures=figures)


async def get_daily_kpi_summary(
    session: AsyncSession,
    report_date: Optional[str],
    margin_rate_key: Optional[str] = None,
    require_margin_rate: Optional[bool] = None,
) -> KpiSummary:
    """
    Return the single KPI summary record for a text report date.

    Args:
        session: Database session (read only)
        report_date: Date text from automation; None, blank, "YYYY-MM-DD"
            or an ISO timestamp
        margin_rate_key: Config key of the margin rate (defaults to settings)
        require_margin_rate: Raise MissingConfigError instead of reporting a
            zero margin when the key is absent (defaults to settings)

    Returns:
        KpiSummary: always exactly one record

    Example:
        async with get_db() as db:
            summary = await get_daily_kpi_summary(db, "2023-12-29T07:00:00Z")
    """
    report = await get_daily_kpi_report(
        session,
        report_date,
        margin_rate_key=margin_rate_key,
        require_margin_rate=require_margin_rate,
    )
    return report.summary
