"""Tests for AddressSpace."""

import pytest

from tapconf.errors import ConfigurationError, SubstrateOperationError
from tapconf.harness.address_space import AddressSpace
from tapconf.harness.dispatcher import PrimaryHandler
from tapconf.harness.listing import ServiceListing
from tapconf.substrate.memory import InMemoryNetwork, InMemoryProcess


class TestAddressSpaceNames:
    def test_service_names_and_paths(self) -> None:
        space = AddressSpace("pubunistr", 3)

        assert list(space) == ["pubunistr0", "pubunistr1", "pubunistr2"]
        assert space.method_path(2) == "/pubunistr2/äta"
        assert len(space) == 3

    def test_suffix_is_shared_by_every_index(self) -> None:
        space = AddressSpace("pubunistr", 4)

        suffixes = {space.method_path(i).rsplit("/", 1)[1] for i in range(4)}
        assert suffixes == {"äta"}

    def test_round_robin(self) -> None:
        space = AddressSpace("pubunistr", 2)

        assert [space.index_for(p) for p in range(5)] == [0, 1, 0, 1, 0]
        assert space.address_for(201) == "/pubunistr1/äta"

    def test_negative_position_rejected(self) -> None:
        with pytest.raises(ValueError):
            AddressSpace("p", 2).address_for(-1)

    def test_index_out_of_range(self) -> None:
        with pytest.raises(IndexError):
            AddressSpace("p", 2).service_name(2)

    def test_membership(self) -> None:
        space = AddressSpace("pubunistr", 2)

        assert "pubunistr1" in space
        assert "pubunistr2" not in space


class TestAddressSpaceValidation:
    @pytest.mark.parametrize("n_addrs", [0, -1])
    def test_non_positive_fan_out_rejected(self, n_addrs: int) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            AddressSpace("pubunistr", n_addrs)

        assert exc_info.value.field == "n_addrs"

    @pytest.mark.parametrize("prefix", ["", "a/b"])
    def test_bad_prefix_rejected(self, prefix: str) -> None:
        with pytest.raises(ConfigurationError):
            AddressSpace(prefix, 2)

    def test_rejected_before_any_service_exists(self, network: InMemoryNetwork) -> None:
        process = network.attach("pub")
        with pytest.raises(ConfigurationError):
            AddressSpace("pubunistr", 0).bootstrap(process, PrimaryHandler())

        assert len(ServiceListing.capture(process)) == 0


class TestAddressSpaceBootstrap:
    def test_creates_services_with_methods(
        self, substrate: InMemoryProcess, publishers: AddressSpace
    ) -> None:
        publishers.bootstrap(substrate, PrimaryHandler())
        listing = ServiceListing.capture(substrate)

        assert [e.name for e in listing] == ["pubunistr0", "pubunistr1"]

    def test_duplicate_service_is_fatal(
        self, substrate: InMemoryProcess, publishers: AddressSpace
    ) -> None:
        substrate.create_service("pubunistr1")

        with pytest.raises(SubstrateOperationError) as exc_info:
            publishers.bootstrap(substrate, PrimaryHandler())

        assert exc_info.value.operation == "create_service"
        assert exc_info.value.result == "service_exists"

    def test_release_destroys_services(
        self, substrate: InMemoryProcess, publishers: AddressSpace
    ) -> None:
        publishers.bootstrap(substrate, PrimaryHandler())
        publishers.release(substrate)

        assert len(ServiceListing.capture(substrate)) == 0
