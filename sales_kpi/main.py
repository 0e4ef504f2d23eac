"""
FastAPI Application

Main entry point for the Daily Sales KPI API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from sales_kpi.config import get_settings
from sales_kpi.config.logging import configure_logging
from sales_kpi.database.connection import init_database, close_database
from sales_kpi.serving.api.middleware import RequestLoggingMiddleware
from sales_kpi.serving.api.routes import (
    config_router,
    health_router,
    kpi_router,
)

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting Daily Sales KPI API", environment=settings.app_env)

    # The API still starts without a database; /health/ready reports it
    try:
        await init_database()
    except Exception as e:
        logger.warning(f"Database init failed: {e}")

    yield

    logger.info("Shutting down...")
    await close_database()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Daily Sales KPI API",
        description="Resilient daily sales KPI summary for automation",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(kpi_router, prefix="/api/v1/kpi", tags=["KPI"])
    app.include_router(config_router, prefix="/api/v1/config", tags=["Config"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Daily Sales KPI API",
            "version": settings.version,
            "environment": settings.app_env,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
