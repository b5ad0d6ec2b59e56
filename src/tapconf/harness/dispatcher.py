"""Numbered message stream and the handlers that validate it.

The dispatcher sends stream positions ``0 .. M`` round-robin over the N
addresses of an address space. Positions ``0 .. M-1`` carry their own
number; position ``M`` carries the sentinel (-1), so ``M + 1`` messages go
out in total and the sentinel lands on address ``M mod N``.

Two handler variants validate what arrives:

- PrimaryHandler is bound to every publisher address. Delivery within one
  process keeps send order, so it sees ``0, 1, 2, ...`` and checks each
  number against its own counter.
- CopyHandler is bound to the tapper. It only sees messages sent to the
  tapped address, i.e. every Nth number, so it advances its counter by N
  per message (the sentinel included).
"""

from __future__ import annotations

from tapconf.errors import (
    CounterMismatchError,
    ProtocolViolationError,
    SequenceMismatchError,
)
from tapconf.harness.address_space import AddressSpace
from tapconf.models.constants import SENTINEL, TYPE_SIGNATURE, UNICODE_LITERAL
from tapconf.models.entities import Message
from tapconf.models.enums import HandlerOutcome
from tapconf.observability import get_logger
from tapconf.substrate.base import MessagingSubstrate, ensure_success

logger = get_logger(__name__)

# Handlers log their first few messages and then every Nth one.
LOG_FIRST_MESSAGES = 10
LOG_EVERY = 100


def expected_primary_count(max_msg_count: int) -> int:
    """Final PrimaryHandler count: every numbered message plus the sentinel."""
    if max_msg_count < 0:
        raise ValueError("max_msg_count must be >= 0")
    return max_msg_count + 1


def expected_copy_count(max_msg_count: int, n_addrs: int) -> int:
    """Final CopyHandler count for a tap on address index 0.

    Index 0 receives positions ``0, N, 2N, ...`` up to ``M`` inclusive,
    which is ``M // N + 1`` messages (the sentinel at position M counts when
    it falls on index 0, and replaces a numbered message otherwise). Each
    advances the counter by N.

    Example:
        >>> expected_copy_count(200, 2)
        202
    """
    if max_msg_count < 0:
        raise ValueError("max_msg_count must be >= 0")
    if n_addrs <= 0:
        raise ValueError("n_addrs must be >= 1")
    return n_addrs * (max_msg_count // n_addrs + 1)


class _CountingHandler:
    """Shared argument checks and diagnostics for the handler variants."""

    role = "handler"

    def __init__(self) -> None:
        self.count = 0
        self.received = 0
        self.sentinels = 0

    def _check_arguments(self, message: Message) -> None:
        if message.types != TYPE_SIGNATURE:
            raise ProtocolViolationError(
                f"{self.role} got type signature {message.types!r} on {message.address}",
                code="tapconf:protocol/bad_arguments",
                details={"address": message.address, "types": message.types},
            )
        if message.text != UNICODE_LITERAL or message.symbol != UNICODE_LITERAL:
            raise ProtocolViolationError(
                f"{self.role} got unexpected arguments on {message.address}",
                code="tapconf:protocol/bad_arguments",
                details={
                    "address": message.address,
                    "text": message.text,
                    "symbol": message.symbol,
                },
            )

    def _trace(self, message: Message) -> None:
        self.received += 1
        if self.received <= LOG_FIRST_MESSAGES or self.received % LOG_EVERY == 0:
            logger.debug(
                "tapconf.handler.received",
                role=self.role,
                address=message.address,
                seq=message.seq,
                count=self.count,
                received=self.received,
            )


class PrimaryHandler(_CountingHandler):
    """Validates the full stream on the publisher addresses.

    Attributes:
        count: Messages accepted so far, sentinel included.
        sentinels: Number of sentinels observed (must end at exactly 1).
        stream_ended: True once the sentinel arrived.
    """

    role = "primary"

    def __init__(self) -> None:
        super().__init__()
        self.stream_ended = False

    def on_receive(self, message: Message) -> HandlerOutcome:
        self._check_arguments(message)
        self._trace(message)
        if self.stream_ended:
            raise SequenceMismatchError(
                message.address, "nothing after the sentinel", message.seq
            )
        if message.is_sentinel:
            self.sentinels += 1
            self.stream_ended = True
            self.count += 1
            logger.info("tapconf.handler.stream_end", address=message.address, count=self.count)
            return HandlerOutcome.STREAM_END
        if message.seq != self.count:
            raise SequenceMismatchError(message.address, self.count, message.seq)
        self.count += 1
        return HandlerOutcome.ACCEPTED


class CopyHandler(_CountingHandler):
    """Validates the every-Nth copies delivered to a tapper.

    Attributes:
        stride: Fan-out count N; the counter advances by N per message.
    """

    role = "copy"

    def __init__(self, stride: int) -> None:
        if stride <= 0:
            raise ValueError("stride must be >= 1")
        super().__init__()
        self.stride = stride

    def on_receive(self, message: Message) -> HandlerOutcome:
        self._check_arguments(message)
        self._trace(message)
        if message.is_sentinel:
            self.sentinels += 1
        elif message.seq != self.count:
            raise SequenceMismatchError(
                message.address, self.count, message.seq, details={"stride": self.stride}
            )
        self.count += self.stride
        return HandlerOutcome.STREAM_END if message.is_sentinel else HandlerOutcome.ACCEPTED


class MessageDispatcher:
    """Sends the numbered stream followed by one sentinel.

    Example:
        >>> dispatcher = MessageDispatcher(substrate, AddressSpace("pubunistr", 2), 3)
        >>> while dispatcher.send_next():
        ...     pass
        >>> dispatcher.sent
        4
    """

    def __init__(
        self,
        substrate: MessagingSubstrate,
        address_space: AddressSpace,
        max_msg_count: int,
        text: str = UNICODE_LITERAL,
        symbol: str = UNICODE_LITERAL,
    ) -> None:
        if max_msg_count < 0:
            raise ValueError("max_msg_count must be >= 0")
        self.substrate = substrate
        self.address_space = address_space
        self.max_msg_count = max_msg_count
        self.text = text
        self.symbol = symbol
        self._position = 0

    @property
    def sent(self) -> int:
        """Messages sent so far, sentinel included."""
        return self._position

    @property
    def finished(self) -> bool:
        return self._position > self.max_msg_count

    def address_for(self, seq: int) -> str:
        """Destination of ``seq``; the sentinel goes to ``M mod N``."""
        position = self.max_msg_count if seq == SENTINEL else seq
        return self.address_space.address_for(position)

    def send(self, seq: int) -> None:
        """Send one message carrying ``seq`` to its round-robin address.

        Raises:
            SubstrateOperationError: If the substrate refuses the send.
        """
        address = self.address_for(seq)
        ensure_success(
            "send",
            self.substrate.send(address, TYPE_SIGNATURE, self.text, self.symbol, seq),
            address=address,
            seq=seq,
        )

    def send_next(self) -> bool:
        """Send the next stream position; return False once the sentinel is out.

        Raises:
            ProtocolViolationError: If called after the sentinel was sent.
        """
        if self.finished:
            raise ProtocolViolationError(
                "send after end of stream",
                details={"sent": self._position, "max_msg_count": self.max_msg_count},
            )
        seq = self._position if self._position < self.max_msg_count else SENTINEL
        self.send(seq)
        self._position += 1
        if self._position % LOG_EVERY == 0:
            logger.info("tapconf.dispatch.progress", sent=self._position)
        return not self.finished

    def send_batch(self, limit: int) -> int:
        """Send up to ``limit`` messages; return how many went out."""
        count = 0
        while count < limit and not self.finished:
            self.send_next()
            count += 1
        return count


def verify_final_counts(
    primary: PrimaryHandler, copy: CopyHandler, max_msg_count: int, n_addrs: int
) -> None:
    """Check both handlers against their closed-form final counts.

    Raises:
        CounterMismatchError: If a counter or the sentinel tally is off.
    """
    expected_msgs = expected_primary_count(max_msg_count)
    if primary.count != expected_msgs:
        raise CounterMismatchError("msg_count", expected_msgs, primary.count)
    if primary.sentinels != 1:
        raise CounterMismatchError("sentinels", 1, primary.sentinels)
    expected_copies = expected_copy_count(max_msg_count, n_addrs)
    if copy.count != expected_copies:
        raise CounterMismatchError(
            "copy_count", expected_copies, copy.count, details={"n_addrs": n_addrs}
        )
