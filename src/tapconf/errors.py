"""tapconf Error Taxonomy.

This module defines the error hierarchy for the harness. Every failure is
fatal: the harness exists to stop loudly on the first deviation, so nothing
here is retried or recovered from.

Three families:
- ConfigurationError: invalid settings, raised before any service exists
- ProtocolViolationError (and subclasses): the substrate misbehaved
- SubstrateOperationError: a substrate call returned a non-success result
"""

from __future__ import annotations

from typing import Any


class TapConformanceError(Exception):
    """Base exception for all tapconf errors.

    Attributes:
        code: Error code following the tapconf:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(TapConformanceError):
    """Raised when the harness configuration is invalid.

    Detected before any service is created; the run never starts.

    Attributes:
        field: Name of the offending setting, if known
    """

    def __init__(
        self, reason: str, field: str | None = None, details: dict[str, Any] | None = None
    ) -> None:
        details_dict: dict[str, Any] = {}
        if field is not None:
            details_dict["field"] = field
        if details:
            details_dict.update(details)
        super().__init__(
            code="tapconf:config/invalid",
            message=f"Invalid configuration: {reason}",
            details=details_dict,
        )
        self.field = field


class ProtocolViolationError(TapConformanceError):
    """Raised when the substrate's observable behavior breaks a harness invariant."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str = "tapconf:protocol/violation",
    ) -> None:
        super().__init__(code=code, message=message, details=details or {})


class SequenceMismatchError(ProtocolViolationError):
    """Raised when a handler receives an out-of-order or malformed message.

    Attributes:
        address: Address the message arrived on
        expected: Sequence number the handler expected
        received: Sequence number actually received
    """

    def __init__(
        self,
        address: str,
        expected: int | str,
        received: int | str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Sequence mismatch on {address}: expected {expected!r}, got {received!r}",
            code="tapconf:protocol/sequence_mismatch",
            details={
                "address": address,
                "expected": expected,
                "received": received,
                **(details or {}),
            },
        )
        self.address = address
        self.expected = expected
        self.received = received


class TapVisibilityError(ProtocolViolationError):
    """Raised when a listing shows a tap where none may exist, or hides one.

    Attributes:
        service: Name of the service whose entries were checked
    """

    def __init__(self, service: str, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=f"Unexpected tap visibility for {service!r}: {reason}",
            code="tapconf:protocol/tap_visibility",
            details={"service": service, **(details or {})},
        )
        self.service = service


class StalePropertyError(ProtocolViolationError):
    """Raised when a listing's properties differ from what was set.

    Attributes:
        service: Service whose properties were checked
        expected: Expected key/value mapping
        actual: Mapping decoded from the listing
    """

    def __init__(
        self,
        service: str,
        expected: dict[str, str],
        actual: dict[str, str],
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Properties of {service!r} are {actual!r}, expected {expected!r}",
            code="tapconf:protocol/stale_property",
            details={
                "service": service,
                "expected": expected,
                "actual": actual,
                **(details or {}),
            },
        )
        self.service = service
        self.expected = expected
        self.actual = actual


class CounterMismatchError(ProtocolViolationError):
    """Raised when a final message counter does not match its closed form.

    Attributes:
        counter: Counter name (e.g. "msg_count", "copy_count")
        expected: Closed-form expectation
        actual: Observed value
    """

    def __init__(
        self, counter: str, expected: int, actual: int, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message=f"{counter} is {actual}, expected {expected}",
            code="tapconf:protocol/counter_mismatch",
            details={"counter": counter, "expected": expected, "actual": actual, **(details or {})},
        )
        self.counter = counter
        self.expected = expected
        self.actual = actual


class SubstrateOperationError(TapConformanceError):
    """Raised when a substrate operation returns a non-success result.

    Treated exactly like a protocol violation: fatal.

    Attributes:
        operation: Name of the substrate operation
        result: Result value returned by the substrate
    """

    def __init__(
        self, operation: str, result: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            code="tapconf:substrate/operation_failed",
            message=f"Substrate operation {operation} failed: {result}",
            details={"operation": operation, "result": result, **(details or {})},
        )
        self.operation = operation
        self.result = result


class InvalidPhaseTransitionError(TapConformanceError):
    """Raised when a run attempts a phase transition outside the phase table.

    Attributes:
        from_phase: The current phase
        to_phase: The attempted target phase
    """

    def __init__(
        self, from_phase: str, to_phase: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            code="tapconf:run/invalid_transition",
            message=f"Invalid transition from '{from_phase}' to '{to_phase}'",
            details={"from_phase": from_phase, "to_phase": to_phase, **(details or {})},
        )
        self.from_phase = from_phase
        self.to_phase = to_phase
