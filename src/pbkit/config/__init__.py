"""Configuration loaded from PRODUCTBOARD_* environment variables."""

from .settings import DEFAULT_BASE_URL, LoggingSettings, PBSettings, clear_settings_cache, get_settings

__all__ = ["PBSettings", "LoggingSettings", "get_settings", "clear_settings_cache", "DEFAULT_BASE_URL"]
