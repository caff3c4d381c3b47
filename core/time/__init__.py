"""
Tracechain Core Time - Public API
==================================
Explicit clock protocol for ledger substrates.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    TickingClock,
    format_timestamp,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "TickingClock",
    "format_timestamp",
]
