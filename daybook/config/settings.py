"""
Configuration Management for Daybook Sync

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The offline core has three outside dependencies (the device store, the
remote backend and the network probe); every knob for them lives in
this module and is validated when first read.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class QueueSettings(BaseSettings):
    """Local durable queue (SQLite file on the device)."""

    model_config = SettingsConfigDict(
        env_prefix="DAYBOOK_QUEUE_",
        extra="ignore"
    )

    db_path: str = Field(
        default="daybook_offline.db",
        description="Path of the SQLite file holding pending entries and cached config"
    )
    busy_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How long SQLite waits on a locked database"
    )


class SyncSettings(BaseSettings):
    """Drain cycle, trigger and connectivity probe configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DAYBOOK_SYNC_",
        extra="ignore"
    )

    result_display_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long the last drain outcome stays visible"
    )
    periodic_interval_seconds: int = Field(
        default=60,
        ge=0,
        description="Seconds between periodic drains (0 disables)"
    )
    connectivity_check_seconds: int = Field(
        default=10,
        ge=1,
        description="Seconds between connectivity probes"
    )
    probe_host: str = Field(
        default="8.8.8.8",
        description="Host used to decide whether the device is online"
    )
    probe_port: int = Field(
        default=53,
        ge=1,
        le=65535,
    )
    probe_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
    )


class SupabaseSettings(BaseSettings):
    """Supabase (PostgREST) remote backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Project URL, e.g. https://xyz.supabase.co"
    )
    api_key: str = Field(
        ...,
        description="API key sent as apikey and bearer token"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
    )
    duplicate_error_code: str = Field(
        default="23505",
        description="Postgres error code meaning unique_violation"
    )

    @field_validator('url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    daily_entries_sheet_name: str = Field(default="DailyEntries")
    income_breakdown_sheet_name: str = Field(default="DailyIncomeBreakdown")
    receipts_sheet_name: str = Field(default="DailyReceipts")
    parameters_sheet_name: str = Field(default="DailyParameters")
    product_usage_sheet_name: str = Field(default="DailyProductUsage")
    products_sheet_name: str = Field(default="ManagedProducts")

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    remote_backend: Literal["supabase", "google_sheets"] = Field(
        default="supabase",
        description="Which remote store receives synchronized entries"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are built on access so a missing remote backend
    # does not stop the offline queue from working.

    @property
    def queue(self) -> QueueSettings:
        return QueueSettings()

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, Union[bool, str]]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries describing failures.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("queue", "sync", "supabase", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
