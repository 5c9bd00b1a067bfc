"""Configuration package."""

from intime.config.settings import (
    AppSettings,
    ConversionSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ConversionSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
