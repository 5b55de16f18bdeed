"""
Configuration management for the tenant access engine.

This module provides centralized configuration management supporting:
- Environment variables
- Local development defaults
- Trial and enforcement tuning knobs
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

logger = structlog.get_logger(__name__)


class Settings(BaseSettings):
    """
    Main application settings with smart defaults for local development.
    """

    # Environment Detection
    ENVIRONMENT: str = Field(
        default="local",
        description="Environment (local/development/production)"
    )
    DEBUG: bool = Field(
        default=False,
        description="Debug mode"
    )

    # Core Application Settings
    APP_NAME: str = Field(
        default="Tenant Access Engine",
        description="Application name"
    )
    APP_VERSION: str = Field(
        default="1.0.0",
        description="Application version"
    )

    # CORS Configuration
    CORS_ORIGINS: str = Field(
        default="*",
        description="Comma-separated CORS origins"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )
    LOG_FORMAT: str = Field(
        default="console",
        description="Log format (json/console)"
    )

    # Record store
    RECORD_STORE_BACKEND: str = Field(
        default="memory",
        description="Record store backend (memory/postgres)"
    )

    # PostgreSQL Configuration
    POSTGRES_URL: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL"
    )
    POSTGRES_HOST: str = Field(
        default="localhost",
        description="PostgreSQL host"
    )
    POSTGRES_PORT: int = Field(
        default=5432,
        description="PostgreSQL port"
    )
    POSTGRES_USER: str = Field(
        default="access_user",
        description="PostgreSQL user"
    )
    POSTGRES_PASSWORD: str = Field(
        default="access_password",
        description="PostgreSQL password"
    )
    POSTGRES_DB: str = Field(
        default="tenant-access",
        description="PostgreSQL database name"
    )
    POSTGRES_POOL_SIZE: int = Field(
        default=10,
        description="SQLAlchemy connection pool size"
    )

    # Trial configuration
    GLOBAL_TRIAL_SCOPE_ID: str = Field(
        default="admin",
        description="Scope id of the global trial configuration document"
    )
    DEFAULT_TRIAL_DAYS: int = Field(
        default=30,
        description="Trial length in days when no definition applies"
    )
    DEFAULT_TRIAL_MINUTES: int = Field(
        default=0,
        description="Extra trial minutes when no definition applies"
    )
    TRIAL_REMINDER_DAYS: int = Field(
        default=3,
        description="Window (days before end) for the closing-soon notice"
    )
    TRIAL_FINAL_NOTICE_DAYS: int = Field(
        default=1,
        description="Window (days before end) for the final notice"
    )
    TRIAL_SWEEP_INTERVAL_MINUTES: int = Field(
        default=60,
        description="Interval of the background expiry sweep; 0 disables it"
    )

    # Enforcement
    SUBSCRIPTION_CHECK_INTERVAL_MINUTES: int = Field(
        default=10,
        description="Interval of the periodic session status check"
    )
    ACCESS_DENIED_REDIRECT_URL: str = Field(
        default="/#/subscription-plans",
        description="Where denied sessions are sent"
    )
    SUBSCRIPTION_ERROR_KEY: str = Field(
        default="subscription_error",
        description="Handoff key carrying the denial reason across the redirect"
    )

    # Notifications
    TRIAL_NOTIFICATION_WEBHOOK_URL: Optional[str] = Field(
        default=None,
        description="Webhook receiving trial notices (logs locally when unset)"
    )
    NOTIFICATION_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for webhook notice delivery"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate and normalize environment name."""
        v = v.lower()
        if v not in ('local', 'development', 'staging', 'production', 'test'):
            logger.warning(f"Unknown environment: {v}, defaulting to 'local'")
            return 'local'
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return v

    @field_validator('LOG_FORMAT', 'RECORD_STORE_BACKEND')
    @classmethod
    def normalize_choice(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator('SUBSCRIPTION_CHECK_INTERVAL_MINUTES', 'TRIAL_REMINDER_DAYS', 'TRIAL_FINAL_NOTICE_DAYS')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator('DEFAULT_TRIAL_DAYS', 'DEFAULT_TRIAL_MINUTES', 'TRIAL_SWEEP_INTERVAL_MINUTES')
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Value cannot be negative")
        return v

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == 'production'

    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == 'local'

    def get_cors_origins(self) -> List[str]:
        """Get CORS origins as a list."""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    def get_postgres_url(self) -> str:
        """Get PostgreSQL connection URL."""
        if self.POSTGRES_URL:
            return self.POSTGRES_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    def uses_postgres(self) -> bool:
        return self.RECORD_STORE_BACKEND == "postgres"


@lru_cache()
def get_settings() -> Settings:
    """Load settings from environment variables and the .env file."""
    settings = Settings()

    logger.info(
        "Settings loaded",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        record_store=settings.RECORD_STORE_BACKEND,
        webhook_configured=bool(settings.TRIAL_NOTIFICATION_WEBHOOK_URL),
    )
    return settings


__all__ = ["Settings", "get_settings"]
