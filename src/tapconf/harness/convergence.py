"""Settle waits and listing checks after asynchronous state changes.

Tap removal (and, on some substrates, property removal) is not visible
everywhere the moment the call returns. Instead of asserting right after a
mutation, the harness keeps the substrate running for a bounded settle
wait and only then checks fresh listings from every observer.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from tapconf.harness.listing import ServiceListing
from tapconf.observability import get_logger
from tapconf.substrate.base import MessagingSubstrate

logger = get_logger(__name__)

# A listing check raises a TapConformanceError subclass when it fails.
ListingCheck = Callable[[ServiceListing], None]

DEFAULT_POLL_QUANTUM = 0.002


@dataclass(frozen=True)
class SettleWait:
    """A pending settle wait: checks to apply once ``deadline`` has passed."""

    deadline: float
    checks: tuple[ListingCheck, ...]
    label: str = "settled"

    def due(self, now: float) -> bool:
        return now >= self.deadline


def run_for_awhile(
    substrate: MessagingSubstrate,
    duration: float,
    quantum: float = DEFAULT_POLL_QUANTUM,
    companions: Iterable[MessagingSubstrate] = (),
) -> int:
    """Poll and sleep until ``duration`` seconds pass on the substrate clock.

    ``companions`` are other processes sharing the same clock; they are
    polled on every step too so their queued traffic keeps flowing.

    Returns:
        Number of messages delivered while waiting.
    """
    if duration < 0:
        raise ValueError("duration must be >= 0")
    if quantum <= 0:
        raise ValueError("quantum must be > 0")
    others = list(companions)
    delivered = 0
    deadline = substrate.now() + duration
    while substrate.now() < deadline:
        delivered += substrate.poll()
        for other in others:
            delivered += other.poll()
        substrate.sleep(quantum * 1000.0)
    return delivered


class ConvergenceChecker:
    """Applies listing checks to the local process and every observer.

    Attributes:
        substrate: The process the harness runs in.
        observers: Other processes whose view of the registry must converge.
        settle_seconds: Default settle wait.
        poll_quantum: Sleep between polls while settling, in seconds.
    """

    def __init__(
        self,
        substrate: MessagingSubstrate,
        settle_seconds: float = 1.0,
        poll_quantum: float = DEFAULT_POLL_QUANTUM,
        observers: Sequence[MessagingSubstrate] = (),
    ) -> None:
        if settle_seconds <= 0:
            raise ValueError("settle_seconds must be > 0")
        self.substrate = substrate
        self.settle_seconds = settle_seconds
        self.poll_quantum = poll_quantum
        self.observers = list(observers)
        self.passes = 0

    def listings(self) -> list[ServiceListing]:
        """Fresh listing from the local process, then from each observer."""
        return [ServiceListing.capture(s) for s in (self.substrate, *self.observers)]

    def check_now(self, checks: Iterable[ListingCheck], label: str = "check") -> None:
        """Apply ``checks`` to fresh listings without waiting."""
        checks = list(checks)
        listings = self.listings()
        for listing in listings:
            for check in checks:
                check(listing)
        self.passes += 1
        logger.info(
            "tapconf.convergence.passed",
            label=label,
            listings=len(listings),
            entries=[len(listing) for listing in listings],
            checks=len(checks),
        )

    def begin_settle(
        self,
        checks: Iterable[ListingCheck],
        duration: float | None = None,
        label: str = "settled",
    ) -> SettleWait:
        """Start a settle wait without blocking; complete it once due."""
        wait = self.settle_seconds if duration is None else duration
        logger.debug("tapconf.convergence.settling", label=label, seconds=wait)
        return SettleWait(
            deadline=self.substrate.now() + wait,
            checks=tuple(checks),
            label=label,
        )

    def complete(self, wait: SettleWait) -> None:
        """Apply the checks of a settle wait whose deadline has passed."""
        if not wait.due(self.substrate.now()):
            raise ValueError(f"settle wait {wait.label!r} is not due yet")
        self.check_now(wait.checks, label=wait.label)

    def wait_until_settled(
        self,
        checks: Iterable[ListingCheck],
        duration: float | None = None,
        label: str = "settled",
    ) -> None:
        """Keep the substrate running for ``duration``, then apply ``checks``.

        Blocking form of begin_settle() + complete().

        Raises:
            TapConformanceError: Whatever the first failing check raises.
        """
        wait = self.begin_settle(checks, duration, label)
        remaining = max(0.0, wait.deadline - self.substrate.now())
        run_for_awhile(self.substrate, remaining, self.poll_quantum, companions=self.observers)
        self.check_now(wait.checks, label=wait.label)
