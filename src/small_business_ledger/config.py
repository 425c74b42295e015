"""Centralized configuration management using pydantic-settings.

Configuration is loaded from environment variables with sensible defaults.
All settings can be overridden via environment variables or a .env file.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development. Override via
    environment variables (prefixed with SBL_) or .env file.

    Examples:
        SBL_SQLITE_PATH=/var/lib/sbl/ledger.db
        SBL_LOG_LEVEL=DEBUG
        SBL_DEFAULT_LANGUAGE=tr
        SBL_ENVIRONMENT=production
    """

    model_config = SettingsConfigDict(
        env_prefix="SBL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Small Business Ledger"
    environment: Environment = Environment.DEVELOPMENT

    # Storage collaborator used by the CLI
    sqlite_path: Path = Field(
        default=Path("small_business_ledger.db"),
        description="SQLite database file path",
    )

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: Literal["json", "console"] | None = Field(
        default=None,
        validate_default=True,
        description="Log output format; unset means json in production, console elsewhere",
    )
    log_file: Path | None = Field(default=None, description="Optional log file path")

    # Presentation
    default_language: Literal["en", "tr"] = Field(
        default="en", description="Language used for single-language output"
    )
    currency_symbol: str = Field(default="£", min_length=1, max_length=3)

    # VAT summary report defaults
    include_monthly_breakdown: bool = True
    include_category_breakdown: bool = False

    @field_validator("log_format", mode="before")
    @classmethod
    def set_log_format_from_environment(cls, v: str | None, info) -> str:
        """Default to JSON logging in production."""
        if v:
            return v
        if info.data.get("environment") == Environment.PRODUCTION:
            return "json"
        return "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings.

    Returns:
        Configured Settings instance.
    """
    return Settings()
