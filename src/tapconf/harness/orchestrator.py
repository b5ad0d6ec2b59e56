"""Conformance run: sequences the harness components into phases.

Phases, in order:

1. bootstrap: clock master, both address spaces, properties on the tappee,
   tap ``<pub>0 -> <sub>0``, and one tap ``<pub>0 -> <copy><i>`` owned by
   each observer process.
2. running: send the numbered stream plus sentinel; once
   ``listing_threshold`` messages are out, check the listing while traffic
   continues. Ends when the sentinel has been sent and received.
3. teardown: remove every tap and every property.
4. draining: keep delivering in-flight messages for one settle wait.
5. verifying: no tap left and no property left, checked twice with a
   settle wait in between.
6. terminal: closed-form counters (observer copies included), then release
   every service.

Any failed check moves the run to ``failed`` and re-raises; there is no
recovery path.

The run never blocks inside a phase. ``tick()`` does one bounded step and
returns; ``run()`` is the driver loop that alternates ticks with substrate
polls and poll-quantum sleeps.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from functools import partial
from typing import Any

from pydantic import Field

from tapconf.config import HarnessConfig
from tapconf.errors import CounterMismatchError, ProtocolViolationError, TapConformanceError
from tapconf.harness.address_space import AddressSpace
from tapconf.harness.convergence import ConvergenceChecker, ListingCheck, SettleWait
from tapconf.harness.dispatcher import (
    CopyHandler,
    MessageDispatcher,
    PrimaryHandler,
    expected_copy_count,
    expected_primary_count,
    verify_final_counts,
)
from tapconf.harness.machine import advance, can_transition
from tapconf.harness.properties import PropertyLedger
from tapconf.harness.taps import TapRegistry, assert_not_a_tap
from tapconf.models.base import TapconfBaseModel
from tapconf.models.constants import INITIAL_PROPERTIES, METHOD_SUFFIX, TYPE_SIGNATURE
from tapconf.models.enums import RunPhase, TapMode
from tapconf.models.ids import generate_run_id
from tapconf.observability import get_logger
from tapconf.substrate.base import MessagingSubstrate, ensure_success

logger = get_logger(__name__)

# Post-teardown listing passes: one after draining, one after a further settle wait.
VERIFY_PASSES = 2


class RunReport(TapconfBaseModel):
    """Summary of a conformance run."""

    run_id: str
    passed: bool
    phase: RunPhase
    phases: list[RunPhase] = Field(default_factory=list)
    n_addrs: int
    max_msg_count: int
    sent: int
    msg_count: int
    copy_count: int
    expected_msg_count: int
    expected_copy_count: int
    observer_copy_counts: dict[str, int] = Field(default_factory=dict)
    sentinels: int
    listing_checks: int
    elapsed: float
    error: dict[str, Any] | None = None


class ObserverTap:
    """A tap owned by an observer process, copying the tappee into its own service.

    The observer creates ``service``, binds a CopyHandler on it and taps the
    tappee from its side, so every Nth message crosses a process boundary.
    """

    def __init__(self, observer: MessagingSubstrate, service: str, stride: int) -> None:
        self.observer = observer
        self.service = service
        self.handler = CopyHandler(stride=stride)
        self.taps = TapRegistry(observer)

    def bootstrap(self, tappee: str) -> None:
        ensure_success(
            "create_service", self.observer.create_service(self.service), service=self.service
        )
        ensure_success(
            "bind_method",
            self.observer.bind_method(self.service, METHOD_SUFFIX, TYPE_SIGNATURE, self.handler),
            service=self.service,
        )
        self.taps.create_tap(tappee, self.service, TapMode.RELIABLE)

    def verify_count(self, max_msg_count: int, n_addrs: int) -> None:
        expected = expected_copy_count(max_msg_count, n_addrs)
        if self.handler.count != expected:
            raise CounterMismatchError(
                f"copy_count[{self.service}]",
                expected,
                self.handler.count,
                details={"process": self.observer.name},
            )

    def release(self) -> None:
        ensure_success(
            "destroy_service", self.observer.destroy_service(self.service), service=self.service
        )


class TapConformanceRun:
    """One conformance run against one substrate process.

    Attributes:
        substrate: Process the harness runs in.
        config: Run settings.
        observers: Other processes on the same substrate. Each taps the
            tappee into its own copy service, and their listings must
            converge as well.
        phase: Current phase.
        error: The error that failed the run, if any.
    """

    def __init__(
        self,
        substrate: MessagingSubstrate,
        config: HarnessConfig | None = None,
        observers: Sequence[MessagingSubstrate] = (),
        run_id: str | None = None,
    ) -> None:
        self.config = config if config is not None else HarnessConfig()
        self.substrate = substrate
        self.observers = list(observers)
        self.run_id = run_id or generate_run_id()
        self.log = logger.bind(run_id=self.run_id, process=substrate.name)

        n_addrs = self.config.n_addrs
        self.publishers = AddressSpace(self.config.publisher_prefix, n_addrs)
        self.subscribers = AddressSpace(self.config.subscriber_prefix, n_addrs)
        self.tappee = self.publishers.service_name(0)
        self.tapper = self.subscribers.service_name(0)
        self.observer_taps = [
            ObserverTap(observer, f"{self.config.copy_prefix}{i}", n_addrs)
            for i, observer in enumerate(self.observers)
        ]

        self.primary = PrimaryHandler()
        self.copy = CopyHandler(stride=n_addrs)
        self.properties = PropertyLedger(substrate)
        self.taps = TapRegistry(substrate)
        self.dispatcher = MessageDispatcher(substrate, self.publishers, self.config.max_msg_count)
        self.convergence = ConvergenceChecker(
            substrate,
            settle_seconds=self.config.settle_seconds,
            poll_quantum=self.config.poll_quantum,
            observers=self.observers,
        )

        self.phase = RunPhase.BOOTSTRAP
        self.phases: list[RunPhase] = [RunPhase.BOOTSTRAP]
        self.error: TapConformanceError | None = None
        self._listing_checked = False
        self._sentinel_sent_at: float | None = None
        self._pending: SettleWait | None = None
        self._verify_passes = 0
        self._started_at: float | None = None
        self._finished_at: float | None = None

    @property
    def copy_services(self) -> list[str]:
        """Names of the copy services owned by observer processes."""
        return [o.service for o in self.observer_taps]

    # Checks

    def in_traffic_checks(self) -> list[ListingCheck]:
        """Checks applied while the tap exists and traffic flows."""
        checks: list[ListingCheck] = [self.taps.verify, self.properties.verify]
        checks.extend(o.taps.verify for o in self.observer_taps)
        for name in (*self.publishers, *self.subscribers, *self.copy_services):
            if name != self.tappee:
                checks.append(partial(assert_not_a_tap, name=name, must_exist=True))
        return checks

    def post_teardown_checks(self) -> list[ListingCheck]:
        """Checks applied once the tap and properties are gone."""
        checks: list[ListingCheck] = [
            partial(assert_not_a_tap, name=name, must_exist=True)
            for name in (*self.subscribers, *self.publishers, *self.copy_services)
        ]
        checks.append(self.properties.verify)
        return checks

    # Driver

    def tick(self) -> bool:
        """Run one step of the current phase; return True once terminal.

        Raises:
            TapConformanceError: On the first violation; the run is then
                in the FAILED phase.
        """
        if self.phase.is_terminal():
            return True
        if self._started_at is None:
            self._started_at = self.substrate.now()
        step: dict[RunPhase, Callable[[], None]] = {
            RunPhase.BOOTSTRAP: self._bootstrap,
            RunPhase.RUNNING: self._running,
            RunPhase.TEARDOWN: self._teardown,
            RunPhase.DRAINING: self._draining,
            RunPhase.VERIFYING: self._verifying,
        }
        try:
            step[self.phase]()
        except TapConformanceError as exc:
            self._fail(exc)
            raise
        return self.phase.is_terminal()

    def poll(self) -> int:
        """Let the substrate (and every observer) deliver pending messages.

        Raises:
            TapConformanceError: If a handler rejects a delivered message;
                the run is then in the FAILED phase.
        """
        try:
            delivered = self.substrate.poll()
            for observer in self.observers:
                delivered += observer.poll()
        except TapConformanceError as exc:
            self._fail(exc)
            raise
        return delivered

    def run(self) -> RunReport:
        """Drive the run to completion.

        Returns:
            The final report (always passed; failures raise instead).

        Raises:
            TapConformanceError: On the first violation.
        """
        self.log.info(
            "tapconf.run.started",
            n_addrs=self.config.n_addrs,
            max_msg_count=self.config.max_msg_count,
            settle_seconds=self.config.settle_seconds,
            observers=[o.name for o in self.observers],
        )
        while not self.tick():
            self.poll()
            self.substrate.sleep(self.config.poll_quantum_ms)
        report = self.report()
        self.log.info(
            "tapconf.run.passed",
            msg_count=report.msg_count,
            copy_count=report.copy_count,
            elapsed=report.elapsed,
        )
        return report

    def report(self) -> RunReport:
        start = self._started_at if self._started_at is not None else self.substrate.now()
        end = self._finished_at if self._finished_at is not None else self.substrate.now()
        return RunReport(
            run_id=self.run_id,
            passed=self.phase is RunPhase.TERMINAL and self.error is None,
            phase=self.phase,
            phases=list(self.phases),
            n_addrs=self.config.n_addrs,
            max_msg_count=self.config.max_msg_count,
            sent=self.dispatcher.sent,
            msg_count=self.primary.count,
            copy_count=self.copy.count,
            expected_msg_count=expected_primary_count(self.config.max_msg_count),
            expected_copy_count=expected_copy_count(
                self.config.max_msg_count, self.config.n_addrs
            ),
            observer_copy_counts={o.service: o.handler.count for o in self.observer_taps},
            sentinels=self.primary.sentinels,
            listing_checks=self.convergence.passes,
            elapsed=max(0.0, end - start),
            error=self.error.to_dict() if self.error is not None else None,
        )

    # Phases

    def _move(self, to_phase: RunPhase) -> None:
        previous = self.phase
        self.phase = advance(previous, to_phase)
        self.phases.append(to_phase)
        self.log.info(
            "tapconf.run.phase_changed",
            from_phase=previous.value,
            to_phase=to_phase.value,
            sent=self.dispatcher.sent,
        )

    def _fail(self, exc: TapConformanceError) -> None:
        self.error = exc
        self._finished_at = self.substrate.now()
        if can_transition(self.phase, RunPhase.FAILED):
            self._move(RunPhase.FAILED)
        self.log.error("tapconf.run.failed", **exc.to_dict())

    def _bootstrap(self) -> None:
        ensure_success("set_clock_master", self.substrate.set_clock_master())
        self.publishers.bootstrap(self.substrate, self.primary)
        self.subscribers.bootstrap(self.substrate, self.copy)
        for key, value in INITIAL_PROPERTIES:
            self.properties.set(self.tappee, key, value)
        self.taps.create_tap(self.tappee, self.tapper, TapMode.RELIABLE)
        for observer_tap in self.observer_taps:
            observer_tap.bootstrap(self.tappee)
        self._move(RunPhase.RUNNING)

    def _running(self) -> None:
        if not self.dispatcher.finished:
            self.dispatcher.send_batch(self.config.send_batch)
            if self.dispatcher.finished:
                self._sentinel_sent_at = self.substrate.now()

        if not self._listing_checked and self.dispatcher.sent >= self.config.listing_threshold:
            self.convergence.check_now(self.in_traffic_checks(), label="in_traffic")
            self._listing_checked = True

        if self.dispatcher.finished and self.primary.stream_ended:
            self._move(RunPhase.TEARDOWN)
        elif self._sentinel_sent_at is not None:
            waited = self.substrate.now() - self._sentinel_sent_at
            if waited > self.config.stream_timeout:
                raise ProtocolViolationError(
                    "sentinel was sent but never delivered",
                    details={"waited": waited, "msg_count": self.primary.count},
                )

    def _teardown(self) -> None:
        self.taps.remove_all()
        for observer_tap in self.observer_taps:
            observer_tap.taps.remove_all()
        self.properties.clear_all()
        self._pending = self.convergence.begin_settle(
            self.post_teardown_checks(), label="post_teardown"
        )
        self._move(RunPhase.DRAINING)

    def _draining(self) -> None:
        if self._pending is not None and self._pending.due(self.substrate.now()):
            self._move(RunPhase.VERIFYING)

    def _verifying(self) -> None:
        if self._pending is None or not self._pending.due(self.substrate.now()):
            return
        self.convergence.complete(self._pending)
        self._verify_passes += 1
        if self._verify_passes < VERIFY_PASSES:
            self._pending = self.convergence.begin_settle(
                self.post_teardown_checks(), label="final"
            )
            return
        self._pending = None
        self._finish()

    def _finish(self) -> None:
        verify_final_counts(
            self.primary, self.copy, self.config.max_msg_count, self.config.n_addrs
        )
        for observer_tap in self.observer_taps:
            observer_tap.verify_count(self.config.max_msg_count, self.config.n_addrs)
            observer_tap.release()
        self.subscribers.release(self.substrate)
        self.publishers.release(self.substrate)
        self._finished_at = self.substrate.now()
        self._move(RunPhase.TERMINAL)
