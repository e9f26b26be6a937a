"""
Core Configuration Module
Uses pydantic-settings for environment variable management.
All secrets loaded from .env file - NEVER hardcode secrets.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    project_name: str = "AgriDrone"
    environment: str = Field(default="development", description="development | staging | production")
    debug: bool = Field(default=True)
    api_v1_str: str = "/api/v1"

    # Database - PostgreSQL (sqlite+aiosqlite accepted for local runs)
    database_url: str = Field(
        default="postgresql+asyncpg://agridrone:agridrone@db:5432/agridrone",
        description="Full database URL",
    )
    db_pool_size: int = Field(default=20, description="SQLAlchemy connection pool size")
    db_max_overflow: int = Field(default=10, description="Max overflow connections")
    db_echo: bool = Field(default=False, description="Echo SQL queries")
    run_db_init: bool = False

    # Security
    secret_key: str = Field(default="CHANGE_ME_IN_PRODUCTION", description="JWT Secret Key")
    algorithm: str = Field(default="HS256", description="JWT Algorithm")
    access_token_expire_minutes: int = Field(default=60 * 24, description="Token expiry in minutes")

    # CORS
    cors_origins: str = Field(default="http://localhost:5173", description="Allowed CORS origins")
    backend_cors_origins: str = Field(default="", description="CORS origins as comma-separated string")

    # Pricing
    default_currency: str = Field(default="EUR", max_length=3)
    default_distance_km: float = Field(default=20.0, description="Travel distance when a location is unknown")
    pricing_version: str = Field(default="pricing_v2_rate_cards", description="Stamped on every pricing snapshot")

    # Sentry (Error Tracking)
    sentry_dsn: str = Field(default="", description="Sentry DSN for error tracking")
    sentry_traces_sample_rate: float = Field(default=0.1, description="Sentry traces sample rate")

    # Prometheus
    prometheus_enabled: bool = Field(default=True, description="Enable Prometheus metrics")

    # Application Version
    app_version: str = Field(default="1.0.0", description="Application version")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from backend_cors_origins or cors_origins."""
        origins = self.backend_cors_origins or self.cors_origins
        if origins:
            return [o.strip() for o in origins.split(",") if o.strip()]
        return []

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver."""
        url = self.database_url
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.async_database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
