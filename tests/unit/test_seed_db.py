"""
Unit Tests - Database Setup Script
"""
import asyncio
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine

from sales_kpi.database.models import KpiConfig, Sale
from sales_kpi.ingestion import seed_db


async def read_margin_rate(url: str):
    engine = create_async_engine(url)
    async with engine.connect() as conn:
        rate = await conn.scalar(select(KpiConfig.config_value).where(KpiConfig.config_key == "MarginRate"))
    await engine.dispose()
    return rate


class TestSetupScript:
    """Tests for schema creation, config default and initial load"""

    async def test_setup_loads_file_and_seeds_margin_rate(self, sales_csv, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        url = f"sqlite+aiosqlite:///{tmp_path / 'kpi.db'}"

        exit_code = await seed_db.main(file_path=str(sales_csv), database_url=url)

        assert exit_code == 0
        engine = create_async_engine(url)
        async with engine.connect() as conn:
            rows = await conn.scalar(select(func.count()).select_from(Sale))
            rate = await conn.scalar(select(KpiConfig.config_value).where(KpiConfig.config_key == "MarginRate"))
        await engine.dispose()

        assert rows == 4
        assert rate == Decimal("0.3000")

    async def test_rerun_keeps_operator_margin_rate(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        url = f"sqlite+aiosqlite:///{tmp_path / 'kpi.db'}"
        await seed_db.main(skip_load=True, database_url=url)

        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.execute(
                KpiConfig.__table__.update()
                .where(KpiConfig.config_key == "MarginRate")
                .values(config_value=Decimal("0.4500"))
            )

        exit_code = await seed_db.main(skip_load=True, database_url=url)

        async with engine.connect() as conn:
            rate = await conn.scalar(select(KpiConfig.config_value))
        await engine.dispose()

        assert exit_code == 0
        assert rate == Decimal("0.4500")

    async def test_missing_file_exits_nonzero(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        url = f"sqlite+aiosqlite:///{tmp_path / 'kpi.db'}"

        exit_code = await seed_db.main(file_path=str(tmp_path / "missing.csv"), database_url=url)

        assert exit_code == 1


class TestSetupCommand:
    """Tests for the sales-kpi-setup console entry point"""

    def test_run_passes_arguments(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        levels = []
        monkeypatch.setattr(seed_db, "configure_logging", lambda level=None: levels.append(level))
        url = f"sqlite+aiosqlite:///{tmp_path / 'kpi.db'}"

        exit_code = seed_db.run(["--skip-load", "--database-url", url, "--log-level", "DEBUG"])

        assert exit_code == 0
        assert levels == ["DEBUG"]
        assert asyncio.run(read_margin_rate(url)) == Decimal("0.3000")

    def test_run_reports_failed_load(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(seed_db, "configure_logging", lambda level=None: None)
        url = f"sqlite+aiosqlite:///{tmp_path / 'kpi.db'}"

        exit_code = seed_db.run(["--file", str(tmp_path / "missing.csv"), "--database-url", url])

        assert exit_code == 1
