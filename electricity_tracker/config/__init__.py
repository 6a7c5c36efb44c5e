"""Configuration package."""

from electricity_tracker.config.settings import (
    AppSettings,
    BackendKind,
    BillingDefaults,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BackendKind",
    "BillingDefaults",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
