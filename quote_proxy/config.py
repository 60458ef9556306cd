"""
Configuration module for the quote proxy.

This module provides centralized configuration management using Pydantic settings.
All configuration values can be overridden via environment variables or .env file.
"""

from functools import lru_cache
from typing import Annotated, List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .validators import DEFAULT_ALLOWED_SYMBOLS


class Settings(BaseSettings):
    """
    Application settings for the quote proxy.

    Attributes:
        ALPHA_VANTAGE_API_KEY: API key sent with every provider request
        ALPHA_VANTAGE_BASE_URL: Provider query endpoint
        REQUEST_TIMEOUT: Outbound HTTP timeout in seconds
        CACHE_TTL_SECONDS: Lifetime of a cached price series
        PROVIDER_MIN_INTERVAL_SECONDS: Gap between the end of one provider call
            and the start of the next
        PROVIDER_MAX_CALLS_PER_MINUTE: Provider calls allowed per rolling minute
        USAGE_RETENTION_DAYS: Number of days of usage counters kept in memory
        ALLOWED_SYMBOLS: Symbols the proxy is willing to serve
    """

    APP_NAME: str = Field(default="Stock Quote Proxy")

    # Provider configuration
    ALPHA_VANTAGE_API_KEY: str = Field(
        default="demo",
        description="Alpha Vantage API key",
    )
    ALPHA_VANTAGE_BASE_URL: str = Field(
        default="https://www.alphavantage.co/query",
        description="Alpha Vantage query endpoint",
    )
    REQUEST_TIMEOUT: float = Field(
        default=10.0,
        gt=0,
        le=60.0,
        description="Timeout for provider requests in seconds",
    )

    # Cache and throttling
    CACHE_TTL_SECONDS: int = Field(default=3600, gt=0)
    PROVIDER_MIN_INTERVAL_SECONDS: float = Field(default=13.0, ge=0)
    PROVIDER_MAX_CALLS_PER_MINUTE: int = Field(default=5, ge=1)

    # Usage tracking
    USAGE_RETENTION_DAYS: int = Field(default=30, ge=1)
    USAGE_LIMIT_DAILY: int = Field(default=500, ge=1)
    USAGE_LIMIT_HOURLY: int = Field(default=30, ge=1)
    USAGE_LIMIT_MINUTELY: int = Field(default=5, ge=1)

    ALLOWED_SYMBOLS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: sorted(DEFAULT_ALLOWED_SYMBOLS),
        description="Symbols the proxy serves",
    )

    # Server configuration
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3006, ge=1, le=65535)
    CORS_ORIGINS: str = Field(default="*")

    # Logging configuration
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    LOG_JSON: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("ALLOWED_SYMBOLS", mode="before")
    @classmethod
    def split_symbols(cls, value):
        """Accept a comma separated string from the environment."""
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        return [str(symbol).strip().upper() for symbol in value]

    @field_validator("ALPHA_VANTAGE_BASE_URL")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """
        Validate that the provider URL is properly formatted.

        Raises:
            ValueError: If URL is invalid
        """
        value = value.rstrip("/")
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(
                f"Provider URL must start with http:// or https://, got: {value}"
            )
        return value


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
