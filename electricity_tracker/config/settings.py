"""
Configuration Management for the Electricity Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The storage backend discriminator, the local data directory and the REST
base URL all come from the environment, so the same code runs against
local files or a server without edits.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BackendKind = Literal["local", "api", "document-store"]


class StorageSettings(BaseSettings):
    """Persistence backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ELECTRICITY_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: BackendKind = Field(
        default="local",
        description="Which storage backend to use"
    )
    data_dir: Path = Field(
        default=Path(".electricity_data"),
        description="Directory holding the local backend's JSON files"
    )
    api_base_url: str = Field(
        default="http://localhost:3001/api",
        description="Base URL of the REST backend"
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class BillingDefaults(BaseSettings):
    """Rates applied before the user has saved any of their own."""

    model_config = SettingsConfigDict(
        env_prefix="ELECTRICITY_BILLING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    unit_rate: float = Field(
        default=7.0,
        ge=0,
        description="Price per kWh"
    )
    service_fee: float = Field(
        default=7.0,
        ge=0,
        description="Service fee percentage"
    )
    minimum_charge: float = Field(
        default=0.0,
        ge=0,
        description="Billing floor for a meter interval"
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
        description="Standard library log level name"
    )
    history_display_limit: int = Field(
        default=10,
        ge=1,
        le=365,
        description="How many recent usage days to show"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def billing(self) -> BillingDefaults:
        return BillingDefaults()

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

    Returns a dict of {setting_name: is_valid}, plus a
    `<setting_name>_error` entry for each section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "billing", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
