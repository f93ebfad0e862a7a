"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration for the ProductBoard client
from environment variables, with sensible defaults and .env support.

Example:
    >>> from pbkit.config import get_settings
    >>> settings = get_settings()
    >>> settings.cache_ttl_seconds
    300.0

    # Or with environment variables:
    # PRODUCTBOARD_API_TOKEN=pb-xxxx
    # PRODUCTBOARD_RATE_LIMIT_PER_MINUTE=50
    # PRODUCTBOARD_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, PositiveFloat, PositiveInt, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.productboard.com"


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="PRODUCTBOARD_LOG_",
        extra="ignore",
    )
    
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"
    
    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class PBSettings(BaseSettings):
    """Root settings for the ProductBoard client and its tools.
    
    Loads configuration from environment variables with PRODUCTBOARD_ prefix.
    Only the API token is required.
    
    Example environment variables:
        PRODUCTBOARD_API_TOKEN=pb-xxxx
        PRODUCTBOARD_API_BASE_URL=https://api.eu.productboard.com
        PRODUCTBOARD_CACHE_TTL_SECONDS=600
        PRODUCTBOARD_RATE_LIMIT_PER_MINUTE=50
        PRODUCTBOARD_LOG_FORMAT=json
    """
    
    model_config = SettingsConfigDict(
        env_prefix="PRODUCTBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )
    
    api_token: SecretStr = Field(..., description="ProductBoard API bearer token")
    api_base_url: str = Field(default=DEFAULT_BASE_URL, description="REST API base URL")
    cache_ttl_seconds: PositiveFloat = Field(default=300.0, description="Response cache TTL in seconds")
    cache_max_entries: PositiveInt = Field(default=500, description="Max cached responses")
    rate_limit_per_minute: PositiveInt = Field(default=100, description="Max outbound requests per minute")
    request_timeout: PositiveFloat = Field(default=30.0, description="Per-request timeout in seconds")
    max_retries: Annotated[int, Field(ge=0, le=10)] = 3
    
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    
    @field_validator("api_token")
    @classmethod
    def _require_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("ProductBoard API token must not be empty")
        return v
    
    @field_validator("api_base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, v: str) -> str:
        """Normalize base URL (no trailing slash)."""
        if not isinstance(v, str):
            return v
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base URL must start with http:// or https://")
        return v


@lru_cache(maxsize=1)
def get_settings() -> PBSettings:
    """Get the settings instance loaded from the environment (cached)."""
    return PBSettings()  # type: ignore[call-arg]


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).
    
    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
