"""Tests for the tapconf error taxonomy."""

from tapconf.errors import (
    ConfigurationError,
    CounterMismatchError,
    InvalidPhaseTransitionError,
    ProtocolViolationError,
    SequenceMismatchError,
    StalePropertyError,
    SubstrateOperationError,
    TapConformanceError,
    TapVisibilityError,
)


class TestTapConformanceError:
    """Test TapConformanceError base class."""

    def test_basic_error_creation(self) -> None:
        error = TapConformanceError(code="tapconf:test/error", message="Test error message")

        assert error.code == "tapconf:test/error"
        assert error.message == "Test error message"
        assert error.details == {}
        assert str(error) == "Test error message"

    def test_to_dict(self) -> None:
        error = TapConformanceError("tapconf:test/x", "msg", {"k": 1})

        assert error.to_dict() == {"code": "tapconf:test/x", "message": "msg", "details": {"k": 1}}

    def test_error_details_not_shared(self) -> None:
        error1 = TapConformanceError("code", "msg", {"key": "value1"})
        error2 = TapConformanceError("code", "msg", {"key": "value2"})

        assert error1.details["key"] == "value1"
        assert error2.details["key"] == "value2"


class TestConfigurationError:
    def test_field_in_details(self) -> None:
        error = ConfigurationError("fan-out count must be >= 1", field="n_addrs")

        assert error.code == "tapconf:config/invalid"
        assert error.field == "n_addrs"
        assert error.details == {"field": "n_addrs"}
        assert "fan-out count" in error.message


class TestProtocolViolations:
    """All violation kinds share the ProtocolViolationError base."""

    def test_sequence_mismatch(self) -> None:
        error = SequenceMismatchError("/pubunistr0/äta", expected=4, received=6)

        assert isinstance(error, ProtocolViolationError)
        assert error.code == "tapconf:protocol/sequence_mismatch"
        assert error.details["expected"] == 4
        assert error.details["received"] == 6
        assert "/pubunistr0/äta" in error.message

    def test_tap_visibility(self) -> None:
        error = TapVisibilityError("subunistr0", "listed as a tap")

        assert isinstance(error, ProtocolViolationError)
        assert error.service == "subunistr0"
        assert error.code == "tapconf:protocol/tap_visibility"

    def test_stale_property(self) -> None:
        error = StalePropertyError("pubunistr0", {}, {"attr1": "value1"})

        assert isinstance(error, ProtocolViolationError)
        assert error.actual == {"attr1": "value1"}
        assert error.details["expected"] == {}

    def test_counter_mismatch(self) -> None:
        error = CounterMismatchError("copy_count", expected=202, actual=200)

        assert isinstance(error, ProtocolViolationError)
        assert error.message == "copy_count is 200, expected 202"


class TestOtherErrors:
    def test_substrate_operation_error(self) -> None:
        error = SubstrateOperationError("create_tap", "no_service", {"tappee": "x"})

        assert error.code == "tapconf:substrate/operation_failed"
        assert error.details == {"operation": "create_tap", "result": "no_service", "tappee": "x"}
        assert not isinstance(error, ProtocolViolationError)

    def test_invalid_phase_transition(self) -> None:
        error = InvalidPhaseTransitionError("draining", "running")

        assert error.from_phase == "draining"
        assert error.to_phase == "running"
        assert error.message == "Invalid transition from 'draining' to 'running'"
