"""tapconf - conformance harness for publish/subscribe taps.

Exercises a messaging substrate that supports taps (transparent copies of
every message sent to a service) and service properties, then checks that
tap removal and property removal converge across every observer.

Example:
    >>> from tapconf import HarnessConfig, TapConformanceRun
    >>> from tapconf.substrate import InMemoryNetwork, SimulatedClock
    >>> network = InMemoryNetwork(SimulatedClock())
    >>> report = TapConformanceRun(network.attach("pub"), HarnessConfig()).run()
    >>> report.passed
    True
"""

__version__ = "0.1.0"

from tapconf.config import HarnessConfig
from tapconf.errors import (
    ConfigurationError,
    ProtocolViolationError,
    SubstrateOperationError,
    TapConformanceError,
)
from tapconf.harness.orchestrator import RunReport, TapConformanceRun

__all__ = [
    "__version__",
    "ConfigurationError",
    "HarnessConfig",
    "ProtocolViolationError",
    "RunReport",
    "SubstrateOperationError",
    "TapConformanceError",
    "TapConformanceRun",
]
