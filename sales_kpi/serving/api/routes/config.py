"""
Config API Endpoints

Administrative access to the KPI config store.
"""

from decimal import Decimal
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from sales_kpi.database.connection import get_db_dependency
from sales_kpi.kpi.config_store import get_config_value, list_config, set_config_value

router = APIRouter()
logger = structlog.get_logger(__name__)


class ConfigParameter(BaseModel):
    """A single config parameter"""
    key: str
    value: Decimal


class ConfigUpdate(BaseModel):
    """Administrative update body"""
    value: Decimal = Field(..., ge=0, max_digits=10, decimal_places=4)


@router.get("", response_model=Dict[str, Decimal])
async def get_all_config(db: AsyncSession = Depends(get_db_dependency)) -> Dict[str, Decimal]:
    """All config parameters"""
    return await list_config(db)


@router.get("/{key}", response_model=ConfigParameter)
async def get_config(key: str, db: AsyncSession = Depends(get_db_dependency)) -> ConfigParameter:
    """Single config parameter; 404 when the key is not set"""
    value = await get_config_value(db, key)
    if value is None:
        raise HTTPException(status_code=404, detail=f"Config parameter '{key}' not found")
    return ConfigParameter(key=key, value=value)


@router.put("/{key}", response_model=ConfigParameter)
async def put_config(
    key: str,
    update: ConfigUpdate,
    db: AsyncSession = Depends(get_db_dependency),
) -> ConfigParameter:
    """Create or overwrite a config parameter"""
    stored = await set_config_value(db, key, update.value)
    logger.info("Config updated via API", key=key, value=str(stored))
    return ConfigParameter(key=key, value=stored)
