"""Property ledger: key/value attributes attached to services.

The ledger forwards every set/remove to the substrate and remembers what
each service is expected to carry, so a later listing can be checked for
exact, byte-identical property text.
"""

from __future__ import annotations

from tapconf.errors import StalePropertyError
from tapconf.harness.listing import ServiceListing
from tapconf.models.entities import ServiceEntry
from tapconf.models.enums import OpResult
from tapconf.models.properties import decode_properties, encode_properties
from tapconf.observability import get_logger
from tapconf.substrate.base import MessagingSubstrate, ensure_success

__all__ = [
    "PropertyLedger",
    "decode_properties",
    "encode_properties",
    "get_property",
]

logger = get_logger(__name__)


def get_property(entry: ServiceEntry, key: str) -> str | None:
    """Value of ``key`` on a listing entry, or None when absent."""
    return decode_properties(entry.properties).get(key)


class PropertyLedger:
    """Tracks and applies property changes for services of one process."""

    def __init__(self, substrate: MessagingSubstrate) -> None:
        self.substrate = substrate
        self._expected: dict[str, dict[str, str]] = {}

    def set(self, service: str, key: str, value: str) -> None:
        """Set ``key`` on ``service``, overwriting any previous value.

        Raises:
            SubstrateOperationError: If the substrate rejects the property.
        """
        ensure_success(
            "set_property",
            self.substrate.set_property(service, key, value),
            service=service,
            key=key,
        )
        self._expected.setdefault(service, {})[key] = value
        logger.debug("tapconf.property.set", service=service, key=key)

    def remove(self, service: str, key: str) -> None:
        """Remove ``key`` from ``service``. Removing a missing key is a no-op."""
        result = self.substrate.remove_property(service, key)
        if result is not OpResult.NOT_FOUND:
            ensure_success("remove_property", result, service=service, key=key)
        self._expected.setdefault(service, {}).pop(key, None)
        logger.debug("tapconf.property.removed", service=service, key=key, result=result.value)

    def clear(self, service: str) -> None:
        """Remove every property the ledger set on ``service``."""
        for key in list(self._expected.get(service, {})):
            self.remove(service, key)

    def clear_all(self) -> None:
        for service in list(self._expected):
            self.clear(service)

    def expected(self, service: str) -> dict[str, str]:
        """Properties ``service`` should carry, in insertion order."""
        return dict(self._expected.get(service, {}))

    @property
    def services(self) -> list[str]:
        return list(self._expected)

    def verify(self, listing: ServiceListing) -> None:
        """Check every tracked service's listing entry against the ledger.

        Each PLAIN entry of a tracked service must decode to exactly the
        expected mapping; services that had all properties removed must
        carry none.

        Raises:
            StalePropertyError: On any missing, extra or altered property.
        """
        for service, expected in self._expected.items():
            for entry in listing.plain(service):
                try:
                    actual = decode_properties(entry.properties)
                except ValueError as exc:
                    raise StalePropertyError(
                        service,
                        expected,
                        {},
                        details={"raw": entry.properties, "error": str(exc)},
                    ) from exc
                if actual != expected:
                    raise StalePropertyError(
                        service, expected, actual, details={"listing": listing.source}
                    )
