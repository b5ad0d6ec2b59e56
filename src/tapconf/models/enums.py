"""Enumerations for tapconf.

This module defines all enum types used by the harness and the substrate
to ensure type safety and prevent magic strings.
"""

from enum import Enum


class ServiceKind(str, Enum):
    """Kind of a service listing entry.

    A tapped service is listed once as PLAIN (its own entry) and once more
    as TAP per tap relation, all entries sharing the tappee's name.

    Example:
        >>> ServiceKind.TAP.value
        'tap'
    """

    PLAIN = "plain"
    TAP = "tap"


class TapMode(str, Enum):
    """Delivery reliability class of a tap relation.

    Example:
        >>> TapMode("reliable") is TapMode.RELIABLE
        True
    """

    RELIABLE = "reliable"
    BEST_EFFORT = "best_effort"
    KEEP_SENDER = "keep_sender"


class OpResult(str, Enum):
    """Status returned by substrate operations."""

    SUCCESS = "success"
    FAIL = "fail"
    NO_SERVICE = "no_service"
    SERVICE_EXISTS = "service_exists"
    BAD_NAME = "bad_name"
    NOT_FOUND = "not_found"

    def is_success(self) -> bool:
        return self is OpResult.SUCCESS


class HandlerOutcome(str, Enum):
    """What a message handler reports back after processing one message."""

    ACCEPTED = "accepted"
    STREAM_END = "stream_end"


class RunPhase(str, Enum):
    """Phases of a conformance run.

    Terminal phases are: TERMINAL, FAILED.

    Example:
        >>> RunPhase.TERMINAL.is_terminal()
        True
        >>> RunPhase.DRAINING.is_terminal()
        False
    """

    BOOTSTRAP = "bootstrap"
    RUNNING = "running"
    TEARDOWN = "teardown"
    DRAINING = "draining"
    VERIFYING = "verifying"
    TERMINAL = "terminal"
    FAILED = "failed"

    @classmethod
    def terminal_states(cls) -> frozenset["RunPhase"]:
        """Return all terminal phases."""
        return frozenset({cls.TERMINAL, cls.FAILED})

    def is_terminal(self) -> bool:
        """Check if this phase ends the run."""
        return self in self.terminal_states()
