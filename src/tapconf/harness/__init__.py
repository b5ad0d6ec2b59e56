"""The conformance protocol: address spaces, properties, taps, traffic and convergence."""

from tapconf.harness.address_space import AddressSpace
from tapconf.harness.convergence import ConvergenceChecker, SettleWait, run_for_awhile
from tapconf.harness.dispatcher import (
    CopyHandler,
    MessageDispatcher,
    PrimaryHandler,
    expected_copy_count,
    expected_primary_count,
    verify_final_counts,
)
from tapconf.harness.listing import ServiceListing
from tapconf.harness.machine import VALID_TRANSITIONS, advance, can_transition
from tapconf.harness.orchestrator import ObserverTap, RunReport, TapConformanceRun
from tapconf.harness.properties import PropertyLedger, get_property
from tapconf.harness.taps import TapRegistry, assert_not_a_tap, assert_tap_visible

__all__ = [
    "AddressSpace",
    "ConvergenceChecker",
    "CopyHandler",
    "MessageDispatcher",
    "ObserverTap",
    "PrimaryHandler",
    "PropertyLedger",
    "RunReport",
    "ServiceListing",
    "SettleWait",
    "TapConformanceRun",
    "TapRegistry",
    "VALID_TRANSITIONS",
    "advance",
    "assert_not_a_tap",
    "assert_tap_visible",
    "can_transition",
    "expected_copy_count",
    "expected_primary_count",
    "get_property",
    "run_for_awhile",
    "verify_final_counts",
]
