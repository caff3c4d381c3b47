"""
Tracechain Core Time - Explicit Clock Protocol
===============================================
No datetime.now() inside lifecycle logic.

Lifecycle operations take their timestamp from the ledger
(`invocation_timestamp()`), which is identical on every replica that
evaluates the same invocation. Clocks exist only for the ledger
substrates, which stamp invocations and commits.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


# ══════════════════════════════════════════════════════════════
# CLOCK PROTOCOL
# ══════════════════════════════════════════════════════════════

class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class SystemClock:
    """Production clock - real system time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock - returns a fixed timestamp until advanced.

    Usage:
        clock = FixedClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
        assert clock.now_utc().year == 2025
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def advance(self, seconds: float) -> None:
        """Advance the fixed time (useful for multi-step test scenarios)."""
        self._fixed_dt = self._fixed_dt + timedelta(seconds=seconds)


class TickingClock:
    """
    Test clock - every read returns the previous value plus `step`.

    Gives each ledger invocation a distinct, ordered timestamp without
    depending on wall-clock resolution.
    """

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        if start.tzinfo is None:
            raise ValueError("TickingClock requires timezone-aware datetime.")
        if step <= timedelta(0):
            raise ValueError("TickingClock step must be positive.")
        self._next = start
        self._step = step

    def now_utc(self) -> datetime:
        current = self._next
        self._next = current + self._step
        return current


# ══════════════════════════════════════════════════════════════
# FORMATTING
# ══════════════════════════════════════════════════════════════

def format_timestamp(value: datetime) -> str:
    """Render an invocation timestamp as stored in provenance records."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
