"""
Marketplace Analytics Engine
Centralized Configuration Management

Pydantic settings with environment variable support, validation, and type
safety. Every tunable of the analytics engine lives here so calculators never
hardcode thresholds.
"""

from functools import lru_cache
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    """Analytics Engine Configuration"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    timezone: str = Field(default="UTC", description="Reporting time zone for all bucketing")
    default_interval: str = Field(default="daily", description="Interval used when a request omits one")
    on_time_grace_minutes: float = Field(default=0.0, ge=0, description="Grace window for on-time deliveries")
    peak_quantile: float = Field(default=0.75, ge=0, le=1, description="Heatmap quantile a peak hour must exceed")
    max_peak_windows: int = Field(default=3, ge=0, description="Max peak windows reported per restaurant")
    top_n: int = Field(default=5, ge=1, description="Size of top restaurant/product lists")
    favorite_products: int = Field(default=3, ge=1, description="Favorite products listed per customer")
    max_workers: int = Field(default=4, ge=1, description="Calculator worker pool size")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the IANA time zone name"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @property
    def tz(self) -> ZoneInfo:
        """Reporting time zone object"""
        return ZoneInfo(self.timezone)


class DataLakeSettings(BaseSettings):
    """Data Lake Storage Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    curated_path: str = Field(default="./data/curated", description="Curated zone path")


class SecuritySettings(BaseSettings):
    """API Security Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


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
        populate_by_name=True,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="marketplace-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    data_lake: DataLakeSettings = Field(default_factory=DataLakeSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
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
