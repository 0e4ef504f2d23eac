"""
API Routes Module
"""
from .health import router as health_router
from .kpi import router as kpi_router
from .config import router as config_router

__all__ = [
    "health_router",
    "kpi_router",
    "config_router",
]
