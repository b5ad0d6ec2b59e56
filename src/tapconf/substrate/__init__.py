"""Messaging substrate interfaces and the in-memory test double."""

from tapconf.substrate.base import Clock, MessageHandler, MessagingSubstrate, ensure_success
from tapconf.substrate.clock import MonotonicClock, SimulatedClock
from tapconf.substrate.memory import InMemoryNetwork, InMemoryProcess

__all__ = [
    "Clock",
    "InMemoryNetwork",
    "InMemoryProcess",
    "MessageHandler",
    "MessagingSubstrate",
    "MonotonicClock",
    "SimulatedClock",
    "ensure_success",
]
