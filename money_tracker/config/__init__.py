"""Configuration package."""

from money_tracker.config.settings import (
    AppSettings,
    AssistantSettings,
    LocalStoreSettings,
    OfflineCacheSettings,
    Settings,
    SupabaseSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AssistantSettings",
    "LocalStoreSettings",
    "OfflineCacheSettings",
    "Settings",
    "SupabaseSettings",
    "get_settings",
    "validate_all_settings",
]
