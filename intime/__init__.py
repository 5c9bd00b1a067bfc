"""
Intime - Source Package

Converts a bank balance into "remaining lifetime" at a fixed wage and
workday length, and keeps that lifetime counting down across sessions.

DESIGN PRINCIPLES:
1. Conversion math is pure and deterministic
2. Time that passed while nobody was watching still counts
3. One countdown, one tick, never two
4. Storage failures degrade to defaults, never to crashes
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Intime Team"
