"""Tap registry and the listing checks for tap visibility.

A tap copies every message sent to the tappee to the tapper. In a listing,
the tappee keeps its own PLAIN entry and every tap adds a separate TAP
entry under the tappee's name. Removal is asynchronous: the substrate may
report success while the TAP entry is still visible elsewhere, so the
harness only checks removal after a settle wait.
"""

from __future__ import annotations

from tapconf.errors import TapVisibilityError
from tapconf.harness.listing import ServiceListing
from tapconf.models.entities import TapRelation
from tapconf.models.enums import ServiceKind, TapMode
from tapconf.observability import get_logger
from tapconf.substrate.base import MessagingSubstrate, ensure_success

logger = get_logger(__name__)


def assert_not_a_tap(listing: ServiceListing, name: str, must_exist: bool) -> None:
    """Check that ``name`` never shows up as a tap.

    Visits the whole listing: a tapped service has several entries with the
    same name, so stopping at the first match would miss TAP entries.

    Args:
        listing: Listing snapshot to scan.
        name: Service name to look for.
        must_exist: Whether at least one entry named ``name`` must exist.

    Raises:
        TapVisibilityError: If any entry named ``name`` is a tap or has a
            tapper, or if existence does not match ``must_exist``.
    """
    found = False
    for entry in listing:
        if entry.name != name:
            continue
        if entry.kind is ServiceKind.TAP or entry.tapper:
            raise TapVisibilityError(
                name,
                f"listed as a tap of {entry.tapper!r}",
                details={"listing": listing.source, "tapper": entry.tapper},
            )
        found = True
    if found != must_exist:
        raise TapVisibilityError(
            name,
            "missing from listing" if must_exist else "unexpectedly present in listing",
            details={"listing": listing.source, "must_exist": must_exist},
        )


def assert_tap_visible(listing: ServiceListing, tappee: str, tapper: str) -> None:
    """Check that an existing tap is listed beside, not instead of, the tappee.

    The tappee must keep a PLAIN entry with no tapper, and exactly one
    separate TAP entry named ``tappee`` must point at ``tapper``.

    Raises:
        TapVisibilityError: If the PLAIN entry is missing or fused with the
            tap, or the TAP entry is missing or duplicated.
    """
    own = [e for e in listing.plain(tappee) if e.tapper is None]
    if not own:
        raise TapVisibilityError(
            tappee, "no plain entry of its own while tapped", details={"listing": listing.source}
        )
    matches = [e for e in listing.taps_on(tappee) if e.tapper == tapper]
    if len(matches) != 1:
        raise TapVisibilityError(
            tappee,
            f"expected one tap entry for tapper {tapper!r}, found {len(matches)}",
            details={"listing": listing.source, "tapper": tapper},
        )


class TapRegistry:
    """Creates and removes taps, remembering which ones this process owns."""

    def __init__(self, substrate: MessagingSubstrate) -> None:
        self.substrate = substrate
        self._relations: dict[tuple[str, str], TapRelation] = {}

    def create_tap(self, tappee: str, tapper: str, mode: TapMode = TapMode.RELIABLE) -> TapRelation:
        """Start copying ``tappee``'s messages to ``tapper``.

        Raises:
            SubstrateOperationError: If the substrate refuses the tap.
        """
        ensure_success(
            "create_tap",
            self.substrate.create_tap(tappee, tapper, mode),
            tappee=tappee,
            tapper=tapper,
            mode=mode.value,
        )
        relation = TapRelation(tappee=tappee, tapper=tapper, mode=mode)
        self._relations[(tappee, tapper)] = relation
        logger.info("tapconf.tap.created", tappee=tappee, tapper=tapper, mode=mode.value)
        return relation

    def remove_tap(self, tappee: str, tapper: str) -> None:
        """Ask the substrate to remove a tap. Propagation may lag behind.

        Raises:
            SubstrateOperationError: If the substrate reports failure.
        """
        ensure_success(
            "remove_tap",
            self.substrate.remove_tap(tappee, tapper),
            tappee=tappee,
            tapper=tapper,
        )
        self._relations.pop((tappee, tapper), None)
        logger.info("tapconf.tap.removed", tappee=tappee, tapper=tapper)

    def remove_all(self) -> None:
        for tappee, tapper in list(self._relations):
            self.remove_tap(tappee, tapper)

    @property
    def relations(self) -> list[TapRelation]:
        return list(self._relations.values())

    def verify(self, listing: ServiceListing) -> None:
        """Check every tracked tap is listed next to its tappee's own entry."""
        for relation in self._relations.values():
            assert_tap_visible(listing, relation.tappee, relation.tapper)
