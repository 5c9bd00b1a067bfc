"""Tests for the amount <-> lifetime conversion engine."""

import pytest

from intime.config import ConversionSettings
from intime.conversion import SECONDS_PER_DAY, SECONDS_PER_YEAR, ConversionEngine


@pytest.fixture
def engine() -> ConversionEngine:
    return ConversionEngine(wage_per_hour=10030, hours_per_day=8)


class TestAmountToSeconds:
    """Tests for amount_to_seconds."""

    def test_sample_balances(self, engine):
        """Test the three sample balances against the formula."""
        assert engine.amount_to_seconds(175525) == 189000  # 2일 4시간 30분
        assert engine.amount_to_seconds(106987) == 115200  # 1일 8시간
        assert engine.amount_to_seconds(53493) == 57599

    def test_one_working_day_buys_one_day(self, engine):
        """Test that 8 hours of wages buy exactly 24 hours."""
        assert engine.amount_to_seconds(10030 * 8) == SECONDS_PER_DAY

    def test_zero_and_negative(self, engine):
        assert engine.amount_to_seconds(0) == 0
        assert engine.amount_to_seconds(-500) == 0

    def test_result_is_floored(self, engine):
        """Test that partial seconds are dropped."""
        # 3 won is worth about 3.23 seconds
        assert engine.amount_to_seconds(3) == 3


class TestSecondsToAmount:
    """Tests for seconds_to_amount."""

    def test_inverse_of_exact_conversion(self, engine):
        assert engine.seconds_to_amount(189000) == pytest.approx(175525)

    def test_zero_and_negative(self, engine):
        assert engine.seconds_to_amount(0) == 0.0
        assert engine.seconds_to_amount(-10) == 0.0

    def test_wage_per_second(self, engine):
        assert engine.wage_per_second == pytest.approx(10030 * 8 / 86400)
        assert engine.seconds_to_amount(1) == pytest.approx(engine.wage_per_second)

    def test_round_trip_within_one_second(self, engine):
        """Test amount -> seconds -> amount -> seconds stays within a second."""
        amounts = list(range(0, 5000, 7)) + [106987, 999_999_999, 10 ** 12]
        for amount in amounts:
            seconds = engine.amount_to_seconds(amount)
            again = engine.amount_to_seconds(engine.seconds_to_amount(seconds))
            assert abs(again - seconds) <= 1, amount


class TestFormatting:
    """Tests for duration and amount display."""

    def test_breakdown_of_92016(self, engine):
        """Test the documented decomposition of 92,016 seconds."""
        b = engine.breakdown(92016)
        assert (b.years, b.months, b.days) == (0, 0, 1)
        assert (b.hours, b.minutes, b.seconds) == (1, 33, 36)

    def test_format_duration_of_92016(self, engine):
        assert engine.format_duration(92016) == "0년 0개월 1일 1시간 33분 36초"

    def test_breakdown_uses_fixed_size_units(self, engine):
        """Test 365-day years and 30-day months."""
        b = engine.breakdown(400 * SECONDS_PER_DAY)
        assert (b.years, b.months, b.days) == (1, 1, 5)

        b = engine.breakdown(364 * SECONDS_PER_DAY)
        assert (b.years, b.months, b.days) == (0, 12, 4)

    def test_breakdown_round_trips_total(self, engine):
        for seconds in (0, 59, 3600, 92016, 40_000_000):
            assert engine.breakdown(seconds).total_seconds == seconds

    def test_list_text_drops_leading_zero_units(self, engine):
        assert engine.format_list_text(92016) == "1일 1시간 33분 36초"
        assert engine.format_list_text(57600) == "16시간 0분 0초"
        assert engine.format_list_text(0) == "0시간 0분 0초"

    def test_list_text_keeps_inner_zero_units(self, engine):
        assert engine.format_list_text(SECONDS_PER_YEAR + 5) == "1년 0개월 0일 0시간 0분 5초"
        assert engine.format_list_text(40 * SECONDS_PER_DAY) == "1개월 10일 0시간 0분 0초"
        assert engine.format_list_text(10 * SECONDS_PER_DAY) == "10일 0시간 0분 0초"

    def test_format_amount(self, engine):
        assert engine.format_amount(1000000) == "1,000,000"
        assert engine.format_amount(999) == "999"
        assert engine.format_amount(0) == "0"

    def test_final_minute(self, engine):
        assert engine.is_final_minute(59) is True
        assert engine.is_final_minute(1) is True
        assert engine.is_final_minute(60) is False
        assert engine.is_final_minute(0) is False


class TestSanitizeAmountInput:
    """Tests for sanitize_amount_input."""

    def test_strips_separators_and_symbols(self, engine):
        assert engine.sanitize_amount_input("1,000,000") == 1000000
        assert engine.sanitize_amount_input("₩ 12a3") == 123

    def test_empty_and_invalid_are_zero(self, engine):
        assert engine.sanitize_amount_input("") == 0
        assert engine.sanitize_amount_input("abc") == 0
        assert engine.sanitize_amount_input(None) == 0

    def test_clamps_to_maximum(self):
        engine = ConversionEngine(max_amount=1000)
        assert engine.sanitize_amount_input("99999") == 1000
        assert engine.sanitize_amount_input(5000) == 1000

    def test_numeric_input(self, engine):
        assert engine.sanitize_amount_input(12.7) == 12
        assert engine.sanitize_amount_input(-5) == 0
        assert engine.sanitize_amount_input(float("nan")) == 0


class TestEngineConstruction:
    """Tests for engine configuration."""

    def test_rejects_non_positive_rates(self):
        with pytest.raises(ValueError):
            ConversionEngine(wage_per_hour=0)
        with pytest.raises(ValueError):
            ConversionEngine(hours_per_day=-1)

    def test_from_settings(self):
        settings = ConversionSettings(wage_per_hour=20000, hours_per_day=4, max_amount=10)
        engine = ConversionEngine.from_settings(settings)
        assert engine.wage_per_hour == 20000
        assert engine.hours_per_day == 4
        assert engine.max_amount == 10
        # 4 hours at 20,000 buys one day
        assert engine.amount_to_seconds(80000) == SECONDS_PER_DAY
