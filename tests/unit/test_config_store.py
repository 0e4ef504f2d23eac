"""
Unit Tests - KPI Config Store
"""
from decimal import Decimal

from sales_kpi.kpi.config_store import (
    ensure_config_default,
    get_config_value,
    list_config,
    set_config_value,
)


class TestConfigStore:
    """Tests for config get / default-upsert / update"""

    async def test_absent_key_returns_none(self, test_db):
        assert await get_config_value(test_db, "MarginRate") is None

    async def test_ensure_default_inserts_once(self, test_db):
        assert await ensure_config_default(test_db, "MarginRate", Decimal("0.30")) is True
        assert await ensure_config_default(test_db, "MarginRate", Decimal("0.30")) is False
        assert await get_config_value(test_db, "MarginRate") == Decimal("0.3000")

    async def test_ensure_default_keeps_operator_value(self, test_db):
        await set_config_value(test_db, "MarginRate", Decimal("0.42"))

        inserted = await ensure_config_default(test_db, "MarginRate", Decimal("0.30"))

        assert inserted is False
        assert await get_config_value(test_db, "MarginRate") == Decimal("0.42")

    async def test_set_overwrites(self, test_db, margin_rate):
        stored = await set_config_value(test_db, "MarginRate", 0.35)

        assert stored == Decimal("0.3500")
        assert await get_config_value(test_db, "MarginRate") == Decimal("0.35")

    async def test_values_use_four_decimals(self, test_db):
        stored = await set_config_value(test_db, "Rate", "0.123456")
        assert stored == Decimal("0.1235")

    async def test_list_config(self, test_db, margin_rate):
        await set_config_value(test_db, "DiscountCap", "5")
        assert await list_config(test_db) == {
            "DiscountCap": Decimal("5.0000"),
            "MarginRate": Decimal("0.3000"),
        }
