"""Interfaces of the external messaging substrate.

The harness never implements messaging itself. It drives any object that
satisfies MessagingSubstrate, a narrow operation set: service and method
creation, properties, taps, listing, sending and polling.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tapconf.errors import SubstrateOperationError
from tapconf.models.entities import Message, ServiceEntry
from tapconf.models.enums import HandlerOutcome, OpResult, TapMode


@runtime_checkable
class MessageHandler(Protocol):
    """Receives messages delivered to a bound method."""

    def on_receive(self, message: Message) -> HandlerOutcome: ...


@runtime_checkable
class Clock(Protocol):
    """Monotonic time source with a blocking sleep, both in seconds."""

    def now(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


@runtime_checkable
class MessagingSubstrate(Protocol):
    """Operations the harness needs from a publish/subscribe substrate.

    Listing is two-step: ``list_services()`` takes a snapshot, then
    ``service_entry(i)`` enumerates it by index and returns None once
    exhausted.
    """

    name: str

    def create_service(self, name: str) -> OpResult: ...

    def destroy_service(self, name: str) -> OpResult: ...

    def bind_method(
        self, service: str, suffix: str, types: str, handler: MessageHandler
    ) -> OpResult: ...

    def set_property(self, service: str, key: str, value: str) -> OpResult: ...

    def remove_property(self, service: str, key: str) -> OpResult: ...

    def create_tap(self, tappee: str, tapper: str, mode: TapMode) -> OpResult: ...

    def remove_tap(self, tappee: str, tapper: str) -> OpResult: ...

    def list_services(self) -> OpResult: ...

    def service_entry(self, index: int) -> ServiceEntry | None: ...

    def send(self, address: str, types: str, text: str, symbol: str, seq: int) -> OpResult: ...

    def poll(self) -> int: ...

    def sleep(self, ms: float) -> None: ...

    def now(self) -> float: ...

    def set_clock_master(self) -> OpResult: ...


def ensure_success(operation: str, result: OpResult, **details: object) -> None:
    """Raise SubstrateOperationError unless ``result`` is SUCCESS."""
    if not result.is_success():
        raise SubstrateOperationError(operation, result.value, details=dict(details))
