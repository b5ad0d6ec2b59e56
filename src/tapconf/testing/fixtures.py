"""Pytest fixtures and context managers for tapconf tests.

Load as a plugin with ``pytest_plugins = ["tapconf.testing.fixtures"]``.

Fixtures:
    simulated_clock: Fresh SimulatedClock starting at 0.
    network: InMemoryNetwork on the simulated clock, zero-ish propagation delay.
    substrate: Process "pub" attached to ``network``.
    observer: Process "observer" attached to ``network``.
    harness_config: Small HarnessConfig suitable for fast runs.

Context managers:
    in_memory_run(): Yields a TapConformanceRun on a fresh in-memory network.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import pytest

from tapconf.config import HarnessConfig
from tapconf.harness.orchestrator import TapConformanceRun
from tapconf.substrate.clock import SimulatedClock
from tapconf.substrate.memory import InMemoryNetwork, InMemoryProcess

DEFAULT_PROPAGATION_DELAY = 0.1


@pytest.fixture
def simulated_clock() -> SimulatedClock:
    return SimulatedClock()


@pytest.fixture
def network(simulated_clock: SimulatedClock) -> InMemoryNetwork:
    """In-memory network sharing the test's simulated clock."""
    return InMemoryNetwork(simulated_clock, propagation_delay=DEFAULT_PROPAGATION_DELAY)


@pytest.fixture
def substrate(network: InMemoryNetwork) -> InMemoryProcess:
    """The process the harness under test runs in."""
    return network.attach("pub")


@pytest.fixture
def observer(network: InMemoryNetwork) -> InMemoryProcess:
    """A second process that only observes the registry."""
    return network.attach("observer")


@pytest.fixture
def harness_config() -> HarnessConfig:
    """Small but complete run: N=2, M=20, half-second settle."""
    return HarnessConfig(n_addrs=2, max_msg_count=20, settle_seconds=0.5)


@contextmanager
def in_memory_run(
    observers: int = 0,
    propagation_delay: float = DEFAULT_PROPAGATION_DELAY,
    **config_values: Any,
) -> Iterator[TapConformanceRun]:
    """Context manager that provides a run wired to a fresh in-memory network.

    On exit, every process leaves the network.

    Args:
        observers: Number of extra observer processes to attach.
        propagation_delay: Tap removal delay of the network.
        **config_values: HarnessConfig fields.

    Yields:
        A TapConformanceRun in the BOOTSTRAP phase.
    """
    config = HarnessConfig.create(**config_values)
    net = InMemoryNetwork(SimulatedClock(), propagation_delay=propagation_delay)
    process = net.attach("pub")
    watchers = [net.attach(f"observer{i}") for i in range(observers)]
    try:
        yield TapConformanceRun(process, config, observers=watchers)
    finally:
        for watcher in watchers:
            watcher.finish()
        process.finish()
