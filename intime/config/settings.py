"""
Configuration Management for Intime

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: The wage rate, the workday length and the input ceiling are
configuration, not code. Changing them must never require touching the
conversion algorithm.
"""

from datetime import timedelta, timezone
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from intime.models.snapshot import DayKeyPolicy


class ConversionSettings(BaseSettings):
    """Wage-rate constants used to convert money into lifetime and back."""

    model_config = SettingsConfigDict(
        env_prefix="INTIME_CONVERSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    wage_per_hour: float = Field(
        default=10030.0,
        gt=0,
        description="Hourly wage (KRW) used as the exchange rate"
    )
    hours_per_day: float = Field(
        default=8.0,
        gt=0,
        le=24,
        description="Working hours that make up one lived day"
    )
    max_amount: int = Field(
        default=1_000_000_000_000_000,
        ge=1,
        description="Largest balance accepted from the input field"
    )


class StorageSettings(BaseSettings):
    """Durable key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="INTIME_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    path: str = Field(
        default=".intime/storage.json",
        description="Path to the JSON key-value file"
    )
    entries_key: str = Field(
        default="intimeEntries",
        min_length=1,
        description="Key holding the snapshot collection"
    )
    audit_key: str = Field(
        default="intimeAudit",
        min_length=1,
        description="Key holding the recent audit events"
    )
    max_audit_events: int = Field(
        default=500,
        ge=1,
        description="How many audit events are kept in storage"
    )
    seed_defaults: bool = Field(
        default=True,
        description="Fall back to the built-in sample entries when nothing is stored"
    )

    @field_validator('entries_key', 'audit_key')
    @classmethod
    def strip_key(cls, v: str) -> str:
        """Keys are compared verbatim, so surrounding whitespace is dropped."""
        v = v.strip()
        if not v:
            raise ValueError("Storage key cannot be blank")
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

    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG and show the session state on the page"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root log level"
    )

    # Time conventions
    utc_offset_hours: float = Field(
        default=9.0,
        ge=-12,
        le=14,
        description="Fixed UTC offset for stored timestamps and day keys (KST by default)"
    )
    day_key_policy: DayKeyPolicy = Field(
        default=DayKeyPolicy.FULL_DATE,
        description="How registrations decide they replace an earlier entry"
    )

    # Countdown
    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between countdown ticks"
    )
    autosave_interval_ticks: int = Field(
        default=60,
        ge=0,
        description="Flush the live countdown every N ticks (0 disables)"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @property
    def tzinfo(self) -> timezone:
        """The fixed-offset timezone every timestamp is expressed in."""
        return timezone(timedelta(hours=self.utc_offset_hours))


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

    # Sub-settings are loaded lazily so one broken section
    # does not take the others down with it

    @property
    def conversion(self) -> ConversionSettings:
        return ConversionSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

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


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    "<setting_name>_error" entries for the ones that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("conversion", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
