"""Data model for tapconf: listing entries, messages, tap relations and enums."""

from tapconf.models.base import TapconfBaseModel
from tapconf.models.constants import (
    DEFAULT_PUBLISHER_PREFIX,
    DEFAULT_SUBSCRIBER_PREFIX,
    INITIAL_PROPERTIES,
    METHOD_SUFFIX,
    SENTINEL,
    TYPE_SIGNATURE,
    UNICODE_LITERAL,
)
from tapconf.models.entities import Message, ServiceEntry, TapRelation
from tapconf.models.ids import generate_id, generate_run_id
from tapconf.models.enums import HandlerOutcome, OpResult, RunPhase, ServiceKind, TapMode

__all__ = [
    "DEFAULT_PUBLISHER_PREFIX",
    "DEFAULT_SUBSCRIBER_PREFIX",
    "HandlerOutcome",
    "INITIAL_PROPERTIES",
    "METHOD_SUFFIX",
    "Message",
    "OpResult",
    "RunPhase",
    "SENTINEL",
    "ServiceEntry",
    "ServiceKind",
    "TYPE_SIGNATURE",
    "TapMode",
    "TapRelation",
    "TapconfBaseModel",
    "UNICODE_LITERAL",
    "generate_id",
    "generate_run_id",
]
