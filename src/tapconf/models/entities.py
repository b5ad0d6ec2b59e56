"""Core entities observed and exchanged by the harness.

ServiceEntry is one row of a service listing, Message is one delivered
message, and TapRelation is one tappee/tapper pair. Names are plain ``str``
and compared exactly; no Unicode normalization is ever applied.
"""

from __future__ import annotations

from pydantic import Field, model_validator

from tapconf.models.base import TapconfBaseModel
from tapconf.models.constants import SENTINEL, TYPE_SIGNATURE
from tapconf.models.enums import ServiceKind, TapMode


class ServiceEntry(TapconfBaseModel):
    """One entry of a service listing.

    Attributes:
        name: Service name. For TAP entries this is the tappee's name.
        kind: PLAIN for the service itself, TAP for a tap relation on it.
        tapper: Name of the tapper service (TAP entries only).
        process: Name of the process that owns the service, if known.
        properties: Encoded property suffix (PLAIN entries only), e.g.
            ``";attr1:value1;norwegian:Blåbærsyltetøy;"``.
    """

    name: str = Field(..., min_length=1)
    kind: ServiceKind = ServiceKind.PLAIN
    tapper: str | None = None
    process: str | None = None
    properties: str | None = None

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "ServiceEntry":
        if self.kind is ServiceKind.TAP:
            if not self.tapper:
                raise ValueError("tap entries must name their tapper")
            if self.properties is not None:
                raise ValueError("tap entries cannot carry properties")
        elif self.tapper is not None:
            raise ValueError("plain entries cannot name a tapper")
        return self

    @property
    def is_tap(self) -> bool:
        return self.kind is ServiceKind.TAP


class Message(TapconfBaseModel):
    """A delivered message: ``(address, "sSi", text, symbol, seq)``.

    Attributes:
        address: Full destination path, e.g. ``/pubunistr0/äta``.
        types: Type signature of the arguments.
        text: String argument.
        symbol: Symbol argument.
        seq: Sequence number, or SENTINEL (-1) for end of stream.
    """

    address: str
    types: str = TYPE_SIGNATURE
    text: str
    symbol: str
    seq: int

    @property
    def is_sentinel(self) -> bool:
        return self.seq == SENTINEL

    @property
    def service(self) -> str:
        """Service name part of the address (first path segment)."""
        return self.address.lstrip("/").split("/", 1)[0]

    @property
    def suffix(self) -> str:
        """Method path below the service, without the leading slash."""
        parts = self.address.lstrip("/").split("/", 1)
        return parts[1] if len(parts) > 1 else ""

    def retarget(self, service: str) -> "Message":
        """Return a copy addressed to the same method on another service."""
        address = f"/{service}/{self.suffix}" if self.suffix else f"/{service}"
        return self.model_copy(update={"address": address})


class TapRelation(TapconfBaseModel):
    """Tap relation: every message sent to ``tappee`` is copied to ``tapper``."""

    tappee: str = Field(..., min_length=1)
    tapper: str = Field(..., min_length=1)
    mode: TapMode = TapMode.RELIABLE
