"""
Configuration Management for Money Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Remote store and auth backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Base URL of the Supabase project"
    )
    anon_key: str = Field(
        ...,
        description="Public anon key sent as the apikey header"
    )

    # Table names within the project
    transactions_table: str = Field(
        default="expenses",
        description="Table holding income/expense transactions"
    )
    categories_table: str = Field(
        default="categories",
        description="Table holding custom categories"
    )
    functions_path: str = Field(
        default="/functions/v1",
        description="Path prefix of the edge functions"
    )

    @field_validator('url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def rest_url(self) -> str:
        return f"{self.url}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.url}/auth/v1"

    @property
    def functions_url(self) -> str:
        return f"{self.url}{self.functions_path}"


class OfflineCacheSettings(BaseSettings):
    """Offline cache manager configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OFFLINE_CACHE_",
        extra="ignore"
    )

    version: str = Field(
        default="v1",
        min_length=1,
        description="Version token embedded in partition names"
    )
    static_assets: str = Field(
        default="/,/index.html,/manifest.json,/icons/icon-192x192.png,/icons/icon-512x512.png",
        description="Comma-separated list of app-shell asset paths"
    )
    app_origin: str = Field(
        default="http://localhost:8080",
        description="Origin the app-shell assets are fetched from on install"
    )
    api_path_prefix: str = Field(
        default="/api/",
        description="Path prefix marking API requests"
    )
    api_host_pattern: str = Field(
        default="supabase",
        description="Substring of the remote backend's host name"
    )
    excluded_schemes: str = Field(
        default="chrome-extension",
        description="Comma-separated URL schemes never touched by the cache"
    )
    storage_dir: Optional[Path] = Field(
        default=None,
        description="Directory for the on-disk cache (in-memory when unset)"
    )

    @property
    def static_assets_list(self) -> list[str]:
        """Get static asset paths as a list."""
        return [path.strip() for path in self.static_assets.split(",") if path.strip()]

    @property
    def excluded_schemes_list(self) -> list[str]:
        return [
            scheme.strip().lower().rstrip(":")
            for scheme in self.excluded_schemes.split(",")
            if scheme.strip()
        ]

    @property
    def static_partition(self) -> str:
        return f"static-{self.version}"

    @property
    def dynamic_partition(self) -> str:
        return f"dynamic-{self.version}"


class LocalStoreSettings(BaseSettings):
    """Local (anonymous) persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOCAL_STORE_",
        extra="ignore"
    )

    path: Path = Field(
        default=Path(".money_tracker/local_storage.json"),
        description="File emulating browser local storage"
    )
    transactions_key: str = Field(
        default="expenses",
        description="Key of the serialized transaction array"
    )
    session_key: str = Field(
        default="auth-session",
        description="Key of the persisted auth session"
    )


class AssistantSettings(BaseSettings):
    """AI finance assistant configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ASSISTANT_",
        extra="ignore"
    )

    chat_function: str = Field(
        default="ai-finance-chat",
        description="Edge function answering finance questions"
    )
    speech_function: str = Field(
        default="speech-to-text",
        description="Edge function transcribing recorded questions"
    )
    max_history: int = Field(
        default=20,
        ge=0,
        le=200,
        description="Chat messages kept and sent as context"
    )


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
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Transaction rules
    max_note_length: int = Field(
        default=128,
        ge=1,
        le=1000,
        description="Maximum length of a transaction note"
    )
    other_category: str = Field(
        default="other",
        description="Sentinel category for income and orphaned transactions"
    )
    currency_symbol: str = Field(
        default="Rp",
        description="Prefix used when formatting amounts"
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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def offline_cache(self) -> OfflineCacheSettings:
        return OfflineCacheSettings()

    @property
    def local_store(self) -> LocalStoreSettings:
        return LocalStoreSettings()

    @property
    def assistant(self) -> AssistantSettings:
        return AssistantSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
    Useful for startup checks.
    """
    results: dict[str, bool | str] = {}

    settings = get_settings()

    for name in ("supabase", "offline_cache", "local_store", "assistant", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
