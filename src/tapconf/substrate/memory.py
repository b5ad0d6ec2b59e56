"""In-memory messaging substrate for running the harness without a network.

InMemoryNetwork holds the shared service registry and tap graph. Each
InMemoryProcess attached to it plays one substrate process: it owns the
services it creates, has its own inbox, and only delivers messages when
polled. All processes share one Clock, typically a SimulatedClock, so a
whole multi-process run is deterministic.

Tap removal is asynchronous on purpose: ``remove_tap`` succeeds at once,
but the relation keeps mirroring messages and keeps appearing in listings
until ``propagation_delay`` seconds have passed on the shared clock.

Example:
    >>> network = InMemoryNetwork(SimulatedClock(), propagation_delay=0.1)
    >>> pub = network.attach("pub")
    >>> pub.create_service("pubunistr0")
    <OpResult.SUCCESS: 'success'>
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from pydantic import ValidationError

from tapconf.models.entities import Message, ServiceEntry
from tapconf.models.enums import OpResult, ServiceKind, TapMode
from tapconf.models.properties import encode_properties
from tapconf.observability import get_logger
from tapconf.substrate.base import Clock, MessageHandler
from tapconf.substrate.clock import SimulatedClock

logger = get_logger(__name__)


@dataclass
class _Method:
    types: str
    handler: MessageHandler


@dataclass
class _Service:
    name: str
    owner: str
    methods: dict[str, _Method] = field(default_factory=dict)
    properties: dict[str, str] = field(default_factory=dict)


@dataclass
class _Tap:
    tappee: str
    tapper: str
    mode: TapMode
    owner: str
    # Clock time at which a pending removal takes effect.
    removed_at: float | None = None

    def active(self, now: float) -> bool:
        return self.removed_at is None or now < self.removed_at


class InMemoryNetwork:
    """Shared registry, tap graph and clock for a set of in-memory processes.

    Attributes:
        clock: Time source shared by every attached process.
        propagation_delay: Seconds between remove_tap() and the tap vanishing.
        clock_master: Name of the process that elected itself clock master.
        rejected: Count of messages dropped for a type signature mismatch.
    """

    def __init__(self, clock: Clock | None = None, propagation_delay: float = 0.1) -> None:
        if propagation_delay < 0:
            raise ValueError("propagation_delay must be >= 0")
        self.clock: Clock = clock if clock is not None else SimulatedClock()
        self.propagation_delay = propagation_delay
        self.clock_master: str | None = None
        self.rejected = 0
        self._processes: dict[str, InMemoryProcess] = {}
        self._services: dict[str, _Service] = {}
        self._taps: list[_Tap] = []

    def attach(self, name: str) -> "InMemoryProcess":
        """Create a new process on this network."""
        if name in self._processes:
            raise ValueError(f"process {name!r} already attached")
        process = InMemoryProcess(self, name)
        self._processes[name] = process
        return process

    def detach(self, name: str) -> None:
        """Remove a process and every service it owns, as if it exited."""
        process = self._processes.pop(name, None)
        if process is None:
            return
        for service in [s.name for s in self._services.values() if s.owner == name]:
            self._drop_service(service)

    # Registry internals

    def _active_taps(self, tappee: str | None = None) -> list[_Tap]:
        now = self.clock.now()
        self._taps = [t for t in self._taps if t.active(now)]
        if tappee is None:
            return list(self._taps)
        return [t for t in self._taps if t.tappee == tappee]

    def _drop_service(self, name: str) -> None:
        self._services.pop(name, None)
        self._taps = [t for t in self._taps if t.tappee != name and t.tapper != name]

    def _snapshot(self) -> tuple[ServiceEntry, ...]:
        entries: list[ServiceEntry] = []
        taps = self._active_taps()
        for service in self._services.values():
            entries.append(
                ServiceEntry(
                    name=service.name,
                    kind=ServiceKind.PLAIN,
                    process=service.owner,
                    properties=encode_properties(service.properties),
                )
            )
            for tap in taps:
                if tap.tappee == service.name:
                    entries.append(
                        ServiceEntry(
                            name=service.name,
                            kind=ServiceKind.TAP,
                            tapper=tap.tapper,
                            process=tap.owner,
                        )
                    )
        return tuple(entries)

    def _route(self, message: Message) -> OpResult:
        service = self._services.get(message.service)
        if service is None:
            return OpResult.NO_SERVICE
        owner = self._processes.get(service.owner)
        if owner is None:
            return OpResult.NO_SERVICE
        owner._inbox.append(message)
        return OpResult.SUCCESS

    def _deliver(self, process: "InMemoryProcess", message: Message) -> None:
        service = self._services.get(message.service)
        if service is None or service.owner != process.name:
            logger.debug(
                "tapconf.substrate.dropped", address=message.address, reason="no_service"
            )
            return

        method = service.methods.get(message.suffix)
        if method is None:
            logger.warning(
                "tapconf.substrate.dropped", address=message.address, reason="no_method"
            )
        elif method.types != message.types:
            self.rejected += 1
            logger.warning(
                "tapconf.substrate.type_mismatch",
                address=message.address,
                expected=method.types,
                received=message.types,
            )
        else:
            method.handler.on_receive(message)

        for tap in self._active_taps(service.name):
            if tap.tapper in self._services:
                self._route(message.retarget(tap.tapper))


class InMemoryProcess:
    """One process on an InMemoryNetwork; satisfies MessagingSubstrate."""

    def __init__(self, network: InMemoryNetwork, name: str) -> None:
        self.network = network
        self.name = name
        self._inbox: deque[Message] = deque()
        self._listing: tuple[ServiceEntry, ...] | None = None

    def _owned(self, service: str) -> _Service | None:
        record = self.network._services.get(service)
        if record is None or record.owner != self.name:
            return None
        return record

    def create_service(self, name: str) -> OpResult:
        if not name or "/" in name:
            return OpResult.BAD_NAME
        if name in self.network._services:
            return OpResult.SERVICE_EXISTS
        self.network._services[name] = _Service(name=name, owner=self.name)
        logger.debug("tapconf.substrate.service_created", service=name, process=self.name)
        return OpResult.SUCCESS

    def destroy_service(self, name: str) -> OpResult:
        if self._owned(name) is None:
            return OpResult.NO_SERVICE
        self.network._drop_service(name)
        return OpResult.SUCCESS

    def bind_method(
        self, service: str, suffix: str, types: str, handler: MessageHandler
    ) -> OpResult:
        record = self._owned(service)
        if record is None:
            return OpResult.NO_SERVICE
        record.methods[suffix.strip("/")] = _Method(types=types, handler=handler)
        return OpResult.SUCCESS

    def set_property(self, service: str, key: str, value: str) -> OpResult:
        record = self._owned(service)
        if record is None:
            return OpResult.NO_SERVICE
        if not key:
            return OpResult.BAD_NAME
        record.properties[key] = value
        return OpResult.SUCCESS

    def remove_property(self, service: str, key: str) -> OpResult:
        record = self._owned(service)
        if record is None:
            return OpResult.NO_SERVICE
        if record.properties.pop(key, None) is None:
            return OpResult.NOT_FOUND
        return OpResult.SUCCESS

    def create_tap(self, tappee: str, tapper: str, mode: TapMode = TapMode.RELIABLE) -> OpResult:
        if tappee not in self.network._services:
            return OpResult.NO_SERVICE
        if not tapper or "/" in tapper:
            return OpResult.BAD_NAME
        for tap in self.network._active_taps(tappee):
            if tap.tapper == tapper and tap.removed_at is None:
                return OpResult.FAIL
        self.network._taps.append(_Tap(tappee=tappee, tapper=tapper, mode=mode, owner=self.name))
        return OpResult.SUCCESS

    def remove_tap(self, tappee: str, tapper: str) -> OpResult:
        for tap in self.network._active_taps(tappee):
            if tap.tapper == tapper and tap.owner == self.name and tap.removed_at is None:
                tap.removed_at = self.network.clock.now() + self.network.propagation_delay
                logger.debug(
                    "tapconf.substrate.tap_removal_pending",
                    tappee=tappee,
                    tapper=tapper,
                    effective_at=tap.removed_at,
                )
                return OpResult.SUCCESS
        return OpResult.FAIL

    def list_services(self) -> OpResult:
        self._listing = self.network._snapshot()
        return OpResult.SUCCESS

    def service_entry(self, index: int) -> ServiceEntry | None:
        if self._listing is None or index < 0 or index >= len(self._listing):
            return None
        return self._listing[index]

    def send(self, address: str, types: str, text: str, symbol: str, seq: int) -> OpResult:
        try:
            message = Message(address=address, types=types, text=text, symbol=symbol, seq=seq)
        except ValidationError:
            return OpResult.FAIL
        return self.network._route(message)

    def poll(self) -> int:
        """Deliver the messages queued when the poll started; return how many."""
        pending = len(self._inbox)
        for _ in range(pending):
            self.network._deliver(self, self._inbox.popleft())
        return pending

    def sleep(self, ms: float) -> None:
        self.network.clock.sleep(ms / 1000.0)

    def now(self) -> float:
        return self.network.clock.now()

    def set_clock_master(self) -> OpResult:
        self.network.clock_master = self.name
        return OpResult.SUCCESS

    def finish(self) -> None:
        """Leave the network, destroying every owned service."""
        self.network.detach(self.name)
