"""Amount <-> lifetime conversion package."""

from intime.conversion.engine import (
    SECONDS_PER_DAY,
    SECONDS_PER_MONTH,
    SECONDS_PER_YEAR,
    ConversionEngine,
)

__all__ = [
    "SECONDS_PER_DAY",
    "SECONDS_PER_MONTH",
    "SECONDS_PER_YEAR",
    "ConversionEngine",
]
