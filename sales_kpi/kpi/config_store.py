"""
KPI Config Store

Named decimal business parameters kept in the kpi_config table.
"""

from decimal import Decimal
from typing import Dict, Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sales_kpi.database.models import KpiConfig

logger = structlog.get_logger(__name__)

CONFIG_SCALE = Decimal("0.0001")

Number = Union[Decimal, float, int, str]


def _to_config_value(value: Number) -> Decimal:
    # NUMERIC(10,4)
    return Decimal(str(value)).quantize(CONFIG_SCALE)


async def get_config_value(session: AsyncSession, key: str) -> Optional[Decimal]:
    """Return the value stored under key, or None if the key is absent"""
    result = await session.execute(
        select(KpiConfig.config_value).where(KpiConfig.config_key == key)
    )
    value = result.scalar_one_or_none()
    if value is None:
        return None
    return _to_config_value(value)


async def ensure_config_default(session: AsyncSession, key: str, value: Number) -> bool:
    """
    Insert key with a default value unless it already exists.

    An existing value is never overwritten, so calling this at every setup
    run keeps operator changes.

    Returns:
        True if the default was inserted, False if the key was already present
    """
    existing = await session.get(KpiConfig, key)
    if existing is not None:
        logger.debug("Config key already set", key=key, value=str(existing.config_value))
        return False

    session.add(KpiConfig(config_key=key, config_value=_to_config_value(value)))
    await session.flush()
    logger.info("Config default inserted", key=key, value=str(_to_config_value(value)))
    return True


async def set_config_value(session: AsyncSession, key: str, value: Number) -> Decimal:
    """
    Administrative update: create or overwrite key.

    Returns:
        The stored value at config precision
    """
    stored = _to_config_value(value)
    existing = await session.get(KpiConfig, key)
    if existing is None:
        session.add(KpiConfig(config_key=key, config_value=stored))
    else:
        existing.config_value = stored
    await session.flush()
    logger.info("Config value set", key=key, value=str(stored))
    return stored


async def list_config(session: AsyncSession) -> Dict[str, Decimal]:
    """All config parameters keyed by name"""
    result = await session.execute(select(KpiConfig).order_by(KpiConfig.config_key))
    return {row.config_key: _to_config_value(row.config_value) for row in result.scalars().all()}
