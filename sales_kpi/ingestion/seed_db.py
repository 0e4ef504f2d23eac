"""
Database Setup

Creates the sales schema, guarantees the margin rate parameter exists,
optionally bulk loads a sales file, then logs a few sanity checks.

Usage:
    sales-kpi-setup --file data/raw/retail_sales_dataset.csv
    python -m sales_kpi.ingestion.seed_db --skip-load
"""

import argparse
import asyncio
from typing import List, Optional

import structlog

from sales_kpi.config import get_settings
from sales_kpi.config.logging import configure_logging
from sales_kpi.database.connection import close_database, create_schema, get_db, init_database
from sales_kpi.ingestion.batch_loader import BatchFileConfig, LoadStatus, create_batch_loader
from sales_kpi.kpi.aggregates import count_sales, latest_sales_dates
from sales_kpi.kpi.config_store import ensure_config_default
from sales_kpi.kpi.summary import get_daily_kpi_summary

logger = structlog.get_logger(__name__)
settings = get_settings()


async def ensure_margin_rate() -> bool:
    """Insert the default margin rate unless an operator already set one"""
    async with get_db() as db:
        return await ensure_config_default(
            db,
            settings.kpi.margin_rate_key,
            settings.kpi.default_margin_rate,
        )


async def load_sales(file_path: Optional[str] = None) -> LoadStatus:
    """Bulk load the sales file into the fact table"""
    loader = create_batch_loader()
    async with get_db() as db:
        result = await loader.load(BatchFileConfig.from_settings(file_path), db)
    if result.status == LoadStatus.FAILED:
        logger.error("Sales load failed", file=result.file_path, error=result.error_message)
    return result.status


async def log_sanity_checks(sample_days: int = 5) -> None:
    """Row count, most recent dates and the KPI summary for the latest one"""
    async with get_db() as db:
        rows = await count_sales(db)
        dates = await latest_sales_dates(db, limit=sample_days)
        logger.info("Rows loaded", rows=rows, latest_dates=[str(d) for d in dates])

        if dates:
            summary = await get_daily_kpi_summary(db, dates[0].isoformat())
            logger.info("Latest daily KPI summary", **summary.model_dump(mode="json", by_alias=True))


async def main(file_path: Optional[str] = None, skip_load: bool = False, database_url: Optional[str] = None) -> int:
    logger.info("Starting database setup...")
    engine = await init_database(database_url)

    try:
        await create_schema(engine)
        inserted = await ensure_margin_rate()
        logger.info("Margin rate ensured", key=settings.kpi.margin_rate_key, inserted=inserted)

        status = LoadStatus.COMPLETED
        if not skip_load:
            status = await load_sales(file_path)

        await log_sanity_checks()
        logger.info("Database setup completed", load_status=status.value)
        return 1 if status == LoadStatus.FAILED else 0
    except Exception as e:
        logger.error(f"Setup failed: {e}")
        raise
    finally:
        await close_database()


def run(argv: Optional[List[str]] = None) -> int:
    """Console script entry point"""
    parser = argparse.ArgumentParser(description="Create the sales KPI schema and load sales data")
    parser.add_argument("--file", help="Sales CSV to load (default: INGEST_SOURCE_FILE)")
    parser.add_argument("--skip-load", action="store_true", help="Only create schema and config defaults")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    return asyncio.run(main(args.file, args.skip_load, args.database_url))


if __name__ == "__main__":
    raise SystemExit(run())
