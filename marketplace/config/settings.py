"""
Multi-Tenant Marketplace Backend
Centralized Configuration Management

Pydantic settings with environment variable support for the database,
token verification, logging and the reporting layer.
"""

from functools import lru_cache
from typing import List
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="marketplace", alias="POSTGRES_DATABASE", description="Database name")
    user: str = Field(default="marketplace", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url_override: str = Field(default="", alias="DATABASE_URL", description="Full async URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        if self.url_override:
            return self.url_override
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class SecuritySettings(BaseSettings):
    """Token verification and CORS configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    jwt_secret_key: SecretStr = Field(default="jwt-secret-change-me", alias="JWT_SECRET_KEY", description="JWT secret key")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM", description="JWT algorithm")
    jwt_expiration_hours: int = Field(default=24, alias="JWT_EXPIRATION_HOURS", description="JWT expiration in hours")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        alias="ALLOWED_ORIGINS",
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class AnalyticsSettings(BaseSettings):
    """Reporting window and ranking defaults"""

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    default_window_days: int = Field(default=30, description="Trailing window used when no dates are given")
    top_n: int = Field(default=10, description="Length of ranked top lists")
    recent_orders: int = Field(default=10, description="Number of recent orders in platform reports")

    @field_validator("default_window_days", "top_n", "recent_orders")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Analytics defaults must be positive")
        return v


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
    app_name: str = Field(default="marketplace", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=4000, alias="PORT", description="API port")
    api_workers: int = Field(default=4, alias="API_WORKERS", description="API workers")

    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)

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
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
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
