"""
Test Suite Configuration
"""
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, List

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sales_kpi.database.models import Base, KpiConfig, Sale

from tests.factories import EXAMPLE_DAY, make_sale


@pytest.fixture
async def test_engine():
    """In-memory SQLite engine with the full schema"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Database session rolled back after each test"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def add_sales(test_db):
    """Insert Sale rows into the test session"""
    async def _add(sales: List[Sale]) -> None:
        test_db.add_all(sales)
        await test_db.flush()
    return _add


@pytest.fixture
async def margin_rate(test_db) -> Decimal:
    """MarginRate set to 0.30"""
    rate = Decimal("0.3000")
    test_db.add(KpiConfig(config_key="MarginRate", config_value=rate))
    await test_db.flush()
    return rate


@pytest.fixture
async def example_day(add_sales, margin_rate) -> date:
    """
    2023-12-29: 94 orders, revenue 10200.50.

    Windows 54 x 100.00 = 5400.00
    Doors   30 x 120.00 = 3600.00
    Siding  10 x 120.05 = 1200.50
    """
    sales = (
        [make_sale(EXAMPLE_DAY, "Windows", "100.00") for _ in range(54)]
        + [make_sale(EXAMPLE_DAY, "Doors", "120.00") for _ in range(30)]
        + [make_sale(EXAMPLE_DAY, "Siding", "120.05") for _ in range(10)]
        + [make_sale(date(2023, 12, 28), "Doors", "999.99")]
    )
    await add_sales(sales)
    return EXAMPLE_DAY


@pytest.fixture
def sales_csv(tmp_path):
    """Retail sales export with a header row, four good rows and four bad ones"""
    path = tmp_path / "retail_sales_dataset.csv"
    path.write_text(
        "Transaction ID,Date,Customer ID,Gender,Age,Product Category,Quantity,Price per Unit,Total Amount\n"
        "1,2023-11-24,CUST001,Male,34,Beauty,3,50,150\n"
        "2,2023-02-27,CUST002,Female,26,Clothing,2,500,1000\n"
        "3,2023-01-13,CUST003,Male,50,Electronics,1,30,30\n"
        "4,2023-11-24,CUST004,Male,37,Clothing,1,500,500\n"
        "5,not-a-date,CUST005,Male,30,Beauty,2,50,100\n"
        "6,2023-05-21,CUST006,Female,45,,1,25,25\n"
        "7,2023-05-21,CUST007,Female,45,Beauty,-1,25,-25\n"
        "3,2023-01-13,CUST003,Male,50,Electronics,1,30,30\n"
    )
    return path
