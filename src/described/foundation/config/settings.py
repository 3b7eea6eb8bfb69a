"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from described.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.cache.enabled
    True
    >>> settings.http.timeout
    30.0

    # Or with environment variables:
    # DESCRIBED_CACHE_ENABLED=false
    # DESCRIBED_CACHE_REDIS_URL=redis://localhost:6379/0
    # DESCRIBED_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, PositiveFloat, PositiveInt, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Server-side result cache configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DESCRIBED_CACHE_",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Global switch for server-side caching")
    max_entries: PositiveInt = Field(default=1000, description="Max entries held by the in-memory store")
    redis_url: SecretStr | None = Field(default=None, description="Redis URL for the default external store")
    key_prefix: str = Field(default="described:", description="Key prefix used by external stores")

    @computed_field
    @property
    def backend(self) -> Literal["memory", "redis"]:
        """Determine default store backend from configuration."""
        return "redis" if self.redis_url else "memory"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DESCRIBED_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "none"


class HttpSettings(BaseSettings):
    """HTTP client defaults for endpoint dispatch."""

    model_config = SettingsConfigDict(
        env_prefix="DESCRIBED_HTTP_",
        extra="ignore",
    )

    timeout: PositiveFloat = Field(default=30.0, description="Transport timeout in seconds")
    verify_ssl: bool = True
    follow_redirects: bool = True
    user_agent: str = "described-tools/0.1"


class DescribedSettings(BaseSettings):
    """Root settings for described tools.

    Loads configuration from environment variables with DESCRIBED_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        DESCRIBED_CACHE_ENABLED=false
        DESCRIBED_CACHE_MAX_ENTRIES=5000
        DESCRIBED_LOG_FORMAT=json
        DESCRIBED_HTTP_TIMEOUT=60
    """

    model_config = SettingsConfigDict(
        env_prefix="DESCRIBED_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)


@lru_cache(maxsize=1)
def get_settings() -> DescribedSettings:
    """Get the global settings instance (cached)."""
    return DescribedSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
