"""Clocks for driving the substrate: wall clock and simulated time."""

from __future__ import annotations

import time


class MonotonicClock:
    """Real clock backed by time.monotonic() and time.sleep()."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class SimulatedClock:
    """Deterministic clock: time only moves when someone sleeps.

    Every process attached to the same SimulatedClock shares one timeline,
    so settle waits and propagation delays play out identically on every
    run without real waiting.

    Example:
        >>> clock = SimulatedClock()
        >>> clock.sleep(0.5)
        >>> clock.now()
        0.5
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def sleep(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("cannot sleep a negative duration")
        self._now += seconds

    def advance(self, seconds: float) -> None:
        """Alias of sleep() for tests that move time explicitly."""
        self.sleep(seconds)
