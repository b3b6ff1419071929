"""Configuration package."""

from daybook.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    QueueSettings,
    Settings,
    SupabaseSettings,
    SyncSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "QueueSettings",
    "Settings",
    "SupabaseSettings",
    "SyncSettings",
    "get_settings",
    "validate_all_settings",
]
