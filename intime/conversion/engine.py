"""
Conversion Engine

Pure amount <-> lifetime arithmetic. No state beyond three constants, no I/O.

The exchange rate: one working hour is worth `wage_per_hour`, and
`hours_per_day` working hours buy one full 24-hour day of life. So

    seconds = floor(amount / wage_per_hour / hours_per_day * 86400)
    amount  = seconds * hours_per_day / 86400 * wage_per_hour

With the defaults (10,030 KRW/h, 8 h/day) a balance of 106,987 buys
115,200 seconds, i.e. 1 day 8 hours.

DESIGN DECISION: Durations are broken down with fixed-size units
(365-day years, 30-day months). The result is a display approximation and is
deliberately not calendar-aware.
"""

import math
import re
from typing import Optional, Union

from intime.config import ConversionSettings
from intime.models.snapshot import DurationBreakdown


SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
SECONDS_PER_MONTH = 30 * SECONDS_PER_DAY
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY

_NON_DIGITS = re.compile(r"[^\d]")
_LEADING_ZERO_UNITS = ("0년", "0개월", "0일")


class ConversionEngine:
    """
    Converts balances to lifetime and lifetime to balances and display text.

    Every method is deterministic and side-effect free.
    """

    def __init__(
        self,
        wage_per_hour: float = 10030.0,
        hours_per_day: float = 8.0,
        max_amount: int = 1_000_000_000_000_000,
    ):
        if wage_per_hour <= 0:
            raise ValueError("wage_per_hour must be positive")
        if hours_per_day <= 0:
            raise ValueError("hours_per_day must be positive")
        self._wage_per_hour = float(wage_per_hour)
        self._hours_per_day = float(hours_per_day)
        self._max_amount = int(max_amount)

    @classmethod
    def from_settings(cls, settings: ConversionSettings) -> "ConversionEngine":
        return cls(
            wage_per_hour=settings.wage_per_hour,
            hours_per_day=settings.hours_per_day,
            max_amount=settings.max_amount,
        )

    @property
    def wage_per_hour(self) -> float:
        return self._wage_per_hour

    @property
    def hours_per_day(self) -> float:
        return self._hours_per_day

    @property
    def max_amount(self) -> int:
        return self._max_amount

    @property
    def wage_per_second(self) -> float:
        """Balance consumed by one second of lifetime."""
        return self._wage_per_hour * self._hours_per_day / SECONDS_PER_DAY

    # -------------------------------------------------------------------------
    # Amount <-> seconds
    # -------------------------------------------------------------------------

    def amount_to_seconds(self, amount: Union[int, float]) -> int:
        """Lifetime bought by `amount`, in whole seconds."""
        if amount <= 0:
            return 0
        seconds = amount / self._wage_per_hour / self._hours_per_day * SECONDS_PER_DAY
        return max(math.floor(seconds), 0)

    def seconds_to_amount(self, seconds: Union[int, float]) -> float:
        """Balance equivalent of `seconds` of lifetime."""
        if seconds <= 0:
            return 0.0
        amount = seconds * self._hours_per_day / SECONDS_PER_DAY * self._wage_per_hour
        return max(amount, 0.0)

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    @staticmethod
    def breakdown(seconds: int) -> DurationBreakdown:
        """Split seconds into years, months, days, hours, minutes, seconds."""
        rest = max(int(seconds), 0)
        years, rest = divmod(rest, SECONDS_PER_YEAR)
        months, rest = divmod(rest, SECONDS_PER_MONTH)
        days, rest = divmod(rest, SECONDS_PER_DAY)
        hours, rest = divmod(rest, SECONDS_PER_HOUR)
        minutes, rest = divmod(rest, SECONDS_PER_MINUTE)
        return DurationBreakdown(
            years=years,
            months=months,
            days=days,
            hours=hours,
            minutes=minutes,
            seconds=rest,
        )

    @classmethod
    def format_duration(cls, seconds: int) -> str:
        """Full countdown text, e.g. '0년 0개월 1일 1시간 33분 36초'."""
        b = cls.breakdown(seconds)
        return (
            f"{b.years}년 {b.months}개월 {b.days}일 "
            f"{b.hours}시간 {b.minutes}분 {b.seconds}초"
        )

    @classmethod
    def format_list_text(cls, seconds: int) -> str:
        """
        Compact text for history entries, e.g. '1일 1시간 33분 36초'.

        Leading zero years, months and days are dropped, in that order; a
        zero unit after a non-zero one is kept.
        """
        text = cls.format_duration(seconds)
        for unit in _LEADING_ZERO_UNITS:
            if text.startswith(unit + " "):
                text = text[len(unit) + 1:]
        return text

    @staticmethod
    def is_final_minute(seconds: int) -> bool:
        """True during the last minute of a running countdown."""
        return 0 < seconds <= 59

    # -------------------------------------------------------------------------
    # Input handling
    # -------------------------------------------------------------------------

    def sanitize_amount_input(self, raw: Optional[Union[str, int, float]]) -> int:
        """
        Turn raw field input into a balance.

        Everything but digits is dropped ("1,000원" -> 1000), the result is
        clamped to the configured maximum, and empty input is 0.
        """
        if raw is None:
            return 0
        if isinstance(raw, bool):
            return 0
        if isinstance(raw, (int, float)):
            if not math.isfinite(raw) or raw <= 0:
                return 0
            return min(int(raw), self._max_amount)

        digits = _NON_DIGITS.sub("", str(raw))
        if not digits:
            return 0
        return min(int(digits), self._max_amount)

    @staticmethod
    def format_amount(amount: Union[int, float]) -> str:
        """Thousands-separated balance, e.g. 1000000 -> '1,000,000'."""
        return f"{int(max(amount, 0)):,}"
