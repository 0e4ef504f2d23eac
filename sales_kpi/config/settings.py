"""
Daily Sales KPI Service
Centralized Configuration Management

Pydantic settings with environment variable support, validation, and type safety.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Warehouse Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="sales_kpi", alias="database", description="Database name")
    user: str = Field(default="sales_kpi", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Database URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL - uses DATABASE_URL if set, otherwise builds an asyncpg URL"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class KpiSettings(BaseSettings):
    """KPI Computation Configuration"""

    model_config = SettingsConfigDict(env_prefix="KPI_")

    margin_rate_key: str = Field(default="MarginRate", description="Config Store key holding the margin rate")
    default_margin_rate: Decimal = Field(
        default=Decimal("0.30"),
        description="Margin rate written at setup when the key is missing",
    )
    require_margin_rate: bool = Field(
        default=False,
        description="Raise instead of reporting a zero margin when the margin rate is missing",
    )

    @field_validator("default_margin_rate")
    @classmethod
    def validate_margin_rate(cls, v: Decimal) -> Decimal:
        """Margin rate must fit NUMERIC(10,4) and be non-negative"""
        if v < 0:
            raise ValueError("Margin rate must be non-negative")
        return v.quantize(Decimal("0.0001"))


class IngestionSettings(BaseSettings):
    """Sales File Ingestion Configuration"""

    model_config = SettingsConfigDict(env_prefix="INGEST_")

    source_file: str = Field(default="./data/raw/retail_sales_dataset.csv", description="Sales CSV to bulk load")
    dead_letter_path: str = Field(default="./data/raw/dead_letter", description="Rejected rows directory")
    delimiter: str = Field(default=",", description="Field delimiter")
    encoding: str = Field(default="utf8", description="File encoding")
    chunk_size: int = Field(default=1000, description="Rows per insert statement")


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or console")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only the JSON and console renderers exist"""
        if v.lower() not in ("json", "console"):
            raise ValueError("Log format must be 'json' or 'console'")
        return v.lower()


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="sales-kpi", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    kpi: KpiSettings = Field(default_factory=KpiSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
