"""Tests for configuration loading."""

from datetime import timedelta, timezone

import pytest
from pydantic import ValidationError

from intime.config import (
    AppSettings,
    ConversionSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from intime.models.snapshot import DayKeyPolicy


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestDefaults:
    """Tests for default values."""

    def test_conversion_defaults(self):
        settings = ConversionSettings()
        assert settings.wage_per_hour == 10030.0
        assert settings.hours_per_day == 8.0
        assert settings.max_amount == 10 ** 15

    def test_storage_defaults(self):
        settings = StorageSettings()
        assert settings.entries_key == "intimeEntries"
        assert settings.audit_key == "intimeAudit"
        assert settings.seed_defaults is True

    def test_app_defaults(self):
        settings = AppSettings(_env_file=None)
        assert settings.tzinfo == timezone(timedelta(hours=9))
        assert settings.day_key_policy == DayKeyPolicy.FULL_DATE
        assert settings.tick_interval_seconds == 1.0
        assert settings.debug_mode is False


class TestEnvironment:
    """Tests for environment overrides."""

    def test_prefixed_overrides(self, monkeypatch):
        monkeypatch.setenv("INTIME_CONVERSION_WAGE_PER_HOUR", "12000")
        monkeypatch.setenv("INTIME_STORAGE_SEED_DEFAULTS", "false")

        assert ConversionSettings().wage_per_hour == 12000
        assert StorageSettings().seed_defaults is False

    def test_app_overrides(self, monkeypatch):
        monkeypatch.setenv("UTC_OFFSET_HOURS", "0")
        monkeypatch.setenv("DAY_KEY_POLICY", "month_day")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("DEBUG_MODE", "true")

        settings = AppSettings(_env_file=None)

        assert settings.tzinfo == timezone.utc
        assert settings.day_key_policy == DayKeyPolicy.MONTH_DAY
        assert settings.log_level == "DEBUG"
        assert settings.debug_mode is True

    def test_storage_keys_are_stripped(self):
        assert StorageSettings(entries_key="  ledger ").entries_key == "ledger"
        with pytest.raises(ValidationError):
            StorageSettings(entries_key="   ")

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            ConversionSettings(hours_per_day=25)
        with pytest.raises(ValidationError):
            ConversionSettings(wage_per_hour=0)
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None, log_level="LOUD")


class TestValidateAllSettings:
    """Tests for validate_all_settings."""

    def test_all_valid(self):
        results = validate_all_settings()
        assert results == {"conversion": True, "storage": True, "app": True}

    def test_reports_broken_section(self, monkeypatch):
        monkeypatch.setenv("INTIME_CONVERSION_HOURS_PER_DAY", "-1")

        results = validate_all_settings()

        assert results["conversion"] is False
        assert "conversion_error" in results
        assert results["storage"] is True
