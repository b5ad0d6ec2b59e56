"""Tests for the substrate clocks."""

import pytest

from tapconf.substrate.base import Clock
from tapconf.substrate.clock import MonotonicClock, SimulatedClock


class TestSimulatedClock:
    def test_time_moves_only_on_sleep(self) -> None:
        clock = SimulatedClock(start=10.0)

        assert clock.now() == 10.0
        clock.sleep(0.25)
        clock.advance(0.75)
        assert clock.now() == 11.0

    def test_negative_sleep(self) -> None:
        with pytest.raises(ValueError):
            SimulatedClock().sleep(-0.1)

    def test_is_a_clock(self) -> None:
        assert isinstance(SimulatedClock(), Clock)


class TestMonotonicClock:
    def test_never_goes_backwards(self) -> None:
        clock = MonotonicClock()
        first = clock.now()
        clock.sleep(0)

        assert clock.now() >= first
        assert isinstance(clock, Clock)
