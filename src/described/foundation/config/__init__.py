"""Configuration: environment-driven settings via pydantic-settings."""

from .settings import (
    CacheSettings,
    DescribedSettings,
    HttpSettings,
    LoggingSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "DescribedSettings",
    "CacheSettings",
    "LoggingSettings",
    "HttpSettings",
    "get_settings",
    "clear_settings_cache",
]
