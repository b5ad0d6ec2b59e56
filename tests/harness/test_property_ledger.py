"""Tests for PropertyLedger against the in-memory substrate."""

import pytest

from tapconf.errors import StalePropertyError, SubstrateOperationError
from tapconf.harness.listing import ServiceListing
from tapconf.harness.properties import PropertyLedger, get_property
from tapconf.models.constants import INITIAL_PROPERTIES
from tapconf.substrate.memory import InMemoryNetwork, InMemoryProcess


@pytest.fixture
def ledger(substrate: InMemoryProcess) -> PropertyLedger:
    substrate.create_service("pubunistr0")
    return PropertyLedger(substrate)


class TestPropertyLedgerSet:
    def test_initial_properties_visible_in_listing(
        self, substrate: InMemoryProcess, ledger: PropertyLedger
    ) -> None:
        for key, value in INITIAL_PROPERTIES:
            ledger.set("pubunistr0", key, value)

        listing = ServiceListing.capture(substrate)
        entry = listing.plain("pubunistr0")[0]

        assert get_property(entry, "norwegian") == "Blåbærsyltetøy"
        assert get_property(entry, "attr1") == "value1"
        assert get_property(entry, "attr_unistr") == "value_unistr"
        ledger.verify(listing)

    def test_overwrite_keeps_latest_value(
        self, substrate: InMemoryProcess, ledger: PropertyLedger
    ) -> None:
        ledger.set("pubunistr0", "attr1", "value1")
        ledger.set("pubunistr0", "attr1", "value2")

        assert ledger.expected("pubunistr0") == {"attr1": "value2"}
        ledger.verify(ServiceListing.capture(substrate))

    def test_set_on_foreign_service_fails(
        self, network: InMemoryNetwork, ledger: PropertyLedger
    ) -> None:
        other = network.attach("other")
        other.create_service("theirs")

        with pytest.raises(SubstrateOperationError) as exc_info:
            ledger.set("theirs", "k", "v")

        assert exc_info.value.result == "no_service"
        assert "theirs" not in ledger.services


class TestPropertyLedgerRemove:
    def test_remove_missing_key_is_tolerated(self, ledger: PropertyLedger) -> None:
        ledger.remove("pubunistr0", "never_set")

        assert ledger.expected("pubunistr0") == {}

    def test_clear_all_leaves_no_properties(
        self, substrate: InMemoryProcess, ledger: PropertyLedger
    ) -> None:
        for key, value in INITIAL_PROPERTIES:
            ledger.set("pubunistr0", key, value)

        ledger.clear_all()
        listing = ServiceListing.capture(substrate)

        assert listing.plain("pubunistr0")[0].properties is None
        assert ledger.expected("pubunistr0") == {}
        ledger.verify(listing)

    def test_remove_twice(self, ledger: PropertyLedger) -> None:
        ledger.set("pubunistr0", "attr1", "value1")
        ledger.remove("pubunistr0", "attr1")
        ledger.remove("pubunistr0", "attr1")

        assert ledger.expected("pubunistr0") == {}


class TestPropertyLedgerVerify:
    def test_out_of_band_change_is_stale(
        self, substrate: InMemoryProcess, ledger: PropertyLedger
    ) -> None:
        ledger.set("pubunistr0", "norwegian", "Blåbærsyltetøy")
        substrate.set_property("pubunistr0", "norwegian", "Blabarsyltetoy")

        with pytest.raises(StalePropertyError) as exc_info:
            ledger.verify(ServiceListing.capture(substrate))

        assert exc_info.value.expected == {"norwegian": "Blåbærsyltetøy"}
        assert exc_info.value.actual == {"norwegian": "Blabarsyltetoy"}

    def test_leftover_after_remove_is_stale(
        self, substrate: InMemoryProcess, ledger: PropertyLedger
    ) -> None:
        ledger.set("pubunistr0", "attr1", "value1")
        ledger.remove("pubunistr0", "attr1")
        substrate.set_property("pubunistr0", "attr1", "value1")

        with pytest.raises(StalePropertyError):
            ledger.verify(ServiceListing.capture(substrate))

    def test_observer_sees_same_bytes(
        self, substrate: InMemoryProcess, observer: InMemoryProcess, ledger: PropertyLedger
    ) -> None:
        ledger.set("pubunistr0", "norwegian", "Blåbærsyltetøy")

        entry = ServiceListing.capture(observer).plain("pubunistr0")[0]

        assert get_property(entry, "norwegian").encode("utf-8") == "Blåbærsyltetøy".encode("utf-8")
        assert entry.process == "pub"
