"""Phase state machine of a conformance run.

Example:
    >>> from tapconf.models.enums import RunPhase
    >>> can_transition(RunPhase.RUNNING, RunPhase.TEARDOWN)
    True
    >>> can_transition(RunPhase.DRAINING, RunPhase.RUNNING)
    False
"""

from tapconf.errors import InvalidPhaseTransitionError
from tapconf.models.enums import RunPhase

__all__ = ["RunPhase", "VALID_TRANSITIONS", "advance", "can_transition"]

VALID_TRANSITIONS: dict[RunPhase, set[RunPhase]] = {
    RunPhase.BOOTSTRAP: {RunPhase.RUNNING, RunPhase.FAILED},
    RunPhase.RUNNING: {RunPhase.TEARDOWN, RunPhase.FAILED},
    RunPhase.TEARDOWN: {RunPhase.DRAINING, RunPhase.FAILED},
    RunPhase.DRAINING: {RunPhase.VERIFYING, RunPhase.FAILED},
    RunPhase.VERIFYING: {RunPhase.TERMINAL, RunPhase.FAILED},
    RunPhase.TERMINAL: set(),  # Terminal state
    RunPhase.FAILED: set(),  # Terminal state
}


def can_transition(from_phase: RunPhase, to_phase: RunPhase) -> bool:
    """Check if a run may move from one phase to another."""
    return to_phase in VALID_TRANSITIONS.get(from_phase, set())


def advance(from_phase: RunPhase, to_phase: RunPhase) -> RunPhase:
    """Validate a phase change and return the new phase.

    Raises:
        InvalidPhaseTransitionError: If the transition is not in the table.
    """
    if not can_transition(from_phase, to_phase):
        raise InvalidPhaseTransitionError(from_phase.value, to_phase.value)
    return to_phase
