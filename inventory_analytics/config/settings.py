"""
Inventory Analytics Engine
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety. The analytics
thresholds live here so every report reads them from one place.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational data store configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="inventory", description="Database name")
    user: str = Field(default="inventory", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Full URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class AnalyticsSettings(BaseSettings):
    """Thresholds and windows used by the aggregation engine"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    aging_base_period_days: int = Field(default=15, ge=1, description="Base aging period; 30/45 day cuts are 2x/3x")
    default_window_days: int = Field(default=30, ge=0, description="Trailing window used when no dates are given")
    fast_moving_top_n: int = Field(default=10, ge=1, description="Products shown in the fast mover ranking")
    summary_top_n: int = Field(default=3, ge=1, description="Entries shown per summary card")
    executive_top_products: int = Field(default=5, ge=1, description="Top products kept per executive")
    days_of_inventory_sentinel: int = Field(default=999, description="Days of inventory reported when nothing sold")

    high_tier_fraction: float = Field(default=0.2, gt=0, le=1, description="Share of executives ranked high")
    medium_tier_fraction: float = Field(default=0.5, gt=0, le=1, description="Cumulative share ranked high or medium")

    stock_critical_ratio: float = Field(default=0.25, description="Stock below sold * ratio is critical")
    stock_low_ratio: float = Field(default=0.5, description="Stock below sold * ratio is low")

    sale_statuses: List[str] = Field(
        default=["delivered", "completed"],
        description="Order statuses whose items count as sales for stock aging",
    )
    fetch_page_size: int = Field(default=1000, ge=1, description="Rows per paginated read")

    @field_validator("medium_tier_fraction")
    @classmethod
    def validate_medium_fraction(cls, v: float, info) -> float:
        """Medium cut-off must not fall below the high cut-off"""
        high = info.data.get("high_tier_fraction", 0.2)
        if v < high:
            raise ValueError("medium_tier_fraction must be >= high_tier_fraction")
        return v


class ExportSettings(BaseSettings):
    """Tabular export configuration"""

    model_config = SettingsConfigDict(env_prefix="EXPORT_")

    output_dir: str = Field(default="./exports", description="Directory for exported reports")
    default_format: str = Field(default="csv", description="Export format: csv or xlsx")

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate export format"""
        allowed = ["csv", "xlsx"]
        if v.lower() not in allowed:
            raise ValueError(f"Export format must be one of: {allowed}")
        return v.lower()


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


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
    app_name: str = Field(default="inventory-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
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
