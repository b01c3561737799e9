# src/ubiledger/runtime/clock.py
from __future__ import annotations

"""Day-granularity time sources.

The ledger only ever sees whole days since the Unix epoch. Production uses the
wall clock; tests and replays inject a FixedClock.
"""

import time
from datetime import date, timedelta
from typing import Protocol

from ubiledger.ledger.constants import SECONDS_PER_DAY

_EPOCH = date(1970, 1, 1)


class Clock(Protocol):
    def today(self) -> int: ...


class SystemClock:
    """Wall-clock days since epoch. Never reports a day earlier than one it already reported."""

    def __init__(self) -> None:
        self._last = 0

    def today(self) -> int:
        day = int(time.time()) // SECONDS_PER_DAY
        if day < self._last:
            day = self._last
        self._last = day
        return day


class FixedClock:
    """Synthetic clock pinned to a day counter."""

    def __init__(self, day: int = 0) -> None:
        self._day = int(day)

    def today(self) -> int:
        return self._day

    def set_day(self, day: int) -> None:
        d = int(day)
        if d < self._day:
            raise ValueError(f"clock cannot move backwards: {self._day} -> {d}")
        self._day = d

    def advance(self, days: int = 1) -> int:
        self.set_day(self._day + int(days))
        return self._day


def days_to_string(days: int) -> str:
    """Render a day counter as DD-MM-YYYY."""
    d = _EPOCH + timedelta(days=int(days))
    return f"{d.day:02d}-{d.month:02d}-{d.year}"


__all__ = ["Clock", "FixedClock", "SystemClock", "days_to_string"]
