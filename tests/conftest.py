"""Shared pytest fixtures for tapconf tests.

Substrate fixtures (simulated_clock, network, substrate, observer,
harness_config) come from the tapconf.testing.fixtures plugin.
"""

from __future__ import annotations

import pytest

from tapconf.harness.address_space import AddressSpace
from tapconf.harness.dispatcher import CopyHandler, PrimaryHandler
from tapconf.models.constants import TYPE_SIGNATURE, UNICODE_LITERAL
from tapconf.models.entities import Message
from tapconf.observability import configure_logging
from tapconf.substrate.memory import InMemoryProcess

pytest_plugins = ["tapconf.testing.fixtures"]


def make_message(seq: int, address: str = "/pubunistr0/äta", **overrides: object) -> Message:
    """Build a well-formed harness message."""
    values: dict[str, object] = {
        "address": address,
        "types": TYPE_SIGNATURE,
        "text": UNICODE_LITERAL,
        "symbol": UNICODE_LITERAL,
        "seq": seq,
    }
    values.update(overrides)
    return Message(**values)


@pytest.fixture
def publishers() -> AddressSpace:
    return AddressSpace("pubunistr", 2)


@pytest.fixture
def subscribers() -> AddressSpace:
    return AddressSpace("subunistr", 2)


@pytest.fixture
def wired(
    substrate: InMemoryProcess, publishers: AddressSpace, subscribers: AddressSpace
) -> tuple[PrimaryHandler, CopyHandler]:
    """Both address spaces created on ``substrate`` with fresh handlers bound."""
    primary = PrimaryHandler()
    copy = CopyHandler(stride=len(publishers))
    publishers.bootstrap(substrate, primary)
    subscribers.bootstrap(substrate, copy)
    return primary, copy


@pytest.fixture
def message_factory():
    """Factory fixture returning make_message()."""
    return make_message


@pytest.fixture
def restore_logging():
    """Reconfigure logging after a test that pointed it at a temporary stream."""
    yield
    configure_logging(log_format="console", log_level="WARNING", force=True)
