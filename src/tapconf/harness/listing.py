"""Frozen snapshots of the substrate's service listing.

The substrate exposes its listing as a cursor: ``list_services()`` followed
by ``service_entry(i)`` until it returns None. ServiceListing drains that
cursor once and keeps the entries, so a listing can be scanned any number
of times by different checks without touching the live cursor again.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from tapconf.models.entities import ServiceEntry
from tapconf.models.enums import ServiceKind
from tapconf.substrate.base import MessagingSubstrate, ensure_success


class ServiceListing:
    """Finite, re-iterable sequence of listing entries.

    Several entries may share a name: a tapped service shows its own PLAIN
    entry plus one TAP entry per relation. Lookups therefore always return
    every match rather than the first.
    """

    def __init__(self, entries: Iterable[ServiceEntry], source: str = "") -> None:
        self._entries = tuple(entries)
        self.source = source

    @classmethod
    def capture(cls, substrate: MessagingSubstrate) -> "ServiceListing":
        """Snapshot the substrate's current listing.

        Raises:
            SubstrateOperationError: If ``list_services()`` fails.
        """
        ensure_success("list_services", substrate.list_services(), process=substrate.name)
        entries: list[ServiceEntry] = []
        index = 0
        while True:
            entry = substrate.service_entry(index)
            if entry is None:
                break
            entries.append(entry)
            index += 1
        return cls(entries, source=substrate.name)

    def __iter__(self) -> Iterator[ServiceEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, index: int) -> ServiceEntry | None:
        """Entry at ``index``, or None past the end (the cursor's sentinel)."""
        if 0 <= index < len(self._entries):
            return self._entries[index]
        return None

    def named(self, name: str) -> list[ServiceEntry]:
        """Every entry whose name equals ``name`` exactly."""
        return [e for e in self._entries if e.name == name]

    def plain(self, name: str) -> list[ServiceEntry]:
        return [e for e in self.named(name) if e.kind is ServiceKind.PLAIN]

    def taps_on(self, name: str) -> list[ServiceEntry]:
        return [e for e in self.named(name) if e.kind is ServiceKind.TAP]

    def tap_entries(self) -> list[ServiceEntry]:
        return [e for e in self._entries if e.kind is ServiceKind.TAP]

    def __repr__(self) -> str:
        return f"ServiceListing(source={self.source!r}, entries={len(self._entries)})"
