from __future__ import annotations

"""
Clock sources for the governance engine.

Every operation reads "now" exactly once from an injected clock. Time is
integer UNIX seconds, monotonically non-decreasing but not strictly
increasing: two calls inside the same tick observe the same value, which is
what makes same-second duplicate proposals detectable.
"""

import time
from threading import Lock
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock seconds, clamped so it never goes backwards."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = Lock()

    def now(self) -> int:
        with self._lock:
            t = int(time.time())
            if t < self._last:
                t = self._last
            self._last = t
            return t


class ManualClock:
    """
    Deterministic clock for tests and offline tooling.

    Usage:
        clock = ManualClock(1_700_000_000)
        clock.advance(ONE_WEEK)
    """

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("start must be non-negative")
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError("clock cannot move backwards")
        self._now = int(timestamp)
        return self._now


__all__ = ["Clock", "SystemClock", "ManualClock"]
