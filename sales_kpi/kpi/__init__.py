"""
KPI Module
"""
from .aggregates import (
    CategoryDailyAggregate,
    DailyAggregate,
    fetch_category_aggregates,
    fetch_daily_aggregate,
    fetch_daily_aggregates,
    sales_daily,
    sales_daily_by_category,
)
from .config_store import ensure_config_default, get_config_value, list_config, set_config_value
from .report_date import normalize_report_date
from .summary import (
    INVALID_REPORT_DATE,
    NO_DATA,
    KpiSummary,
    SummaryStatus,
    get_daily_kpi_report,
    get_daily_kpi_summary,
)

__all__ = [
    "CategoryDailyAggregate",
    "DailyAggregate",
    "fetch_category_aggregates",
    "fetch_daily_aggregate",
    "fetch_daily_aggregates",
    "sales_daily",
    "sales_daily_by_category",
    "ensure_config_default",
    "get_config_value",
    "list_config",
    "set_config_value",
    "normalize_report_date",
    "INVALID_REPORT_DATE",
    "NO_DATA",
    "KpiSummary",
    "SummaryStatus",
    "get_daily_kpi_report",
    "get_daily_kpi_summary",
]
