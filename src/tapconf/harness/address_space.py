"""Address space of one harness role.

A role (publisher or subscriber) uses N services named ``<prefix><i>``,
each with a single method ``/<prefix><i>/äta``. The method suffix is the
same non-ASCII literal at every index, so every binding and every lookup
must round-trip the same multi-byte text.
"""

from __future__ import annotations

from collections.abc import Iterator

from tapconf.errors import ConfigurationError
from tapconf.models.constants import METHOD_SUFFIX, TYPE_SIGNATURE
from tapconf.observability import get_logger
from tapconf.substrate.base import MessageHandler, MessagingSubstrate, ensure_success

logger = get_logger(__name__)


class AddressSpace:
    """Service names and method paths for one role.

    Example:
        >>> space = AddressSpace("pubunistr", 2)
        >>> list(space)
        ['pubunistr0', 'pubunistr1']
        >>> space.method_path(1)
        '/pubunistr1/äta'
        >>> space.address_for(5)
        '/pubunistr1/äta'
    """

    def __init__(self, prefix: str, n_addrs: int, suffix: str = METHOD_SUFFIX) -> None:
        if n_addrs <= 0:
            raise ConfigurationError(
                f"fan-out count must be >= 1, got {n_addrs}", field="n_addrs"
            )
        if not prefix or "/" in prefix:
            raise ConfigurationError(f"bad service prefix {prefix!r}", field="prefix")
        if not suffix or "/" in suffix:
            raise ConfigurationError(f"bad method suffix {suffix!r}", field="suffix")
        self.prefix = prefix
        self.n_addrs = n_addrs
        self.suffix = suffix

    def __len__(self) -> int:
        return self.n_addrs

    def __iter__(self) -> Iterator[str]:
        return (self.service_name(i) for i in range(self.n_addrs))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in set(self)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.n_addrs:
            raise IndexError(f"address index {index} out of range [0, {self.n_addrs})")

    def service_name(self, index: int) -> str:
        self._check_index(index)
        return f"{self.prefix}{index}"

    def method_path(self, index: int) -> str:
        return f"/{self.service_name(index)}/{self.suffix}"

    def index_for(self, position: int) -> int:
        """Round-robin index for a stream position (``position mod N``)."""
        if position < 0:
            raise ValueError("stream position must be >= 0")
        return position % self.n_addrs

    def address_for(self, position: int) -> str:
        """Destination method path for a stream position."""
        return self.method_path(self.index_for(position))

    def bootstrap(self, substrate: MessagingSubstrate, handler: MessageHandler) -> None:
        """Create every service and bind ``handler`` on each method.

        Raises:
            SubstrateOperationError: If any creation or binding fails.
        """
        for name in self:
            ensure_success("create_service", substrate.create_service(name), service=name)
            ensure_success(
                "bind_method",
                substrate.bind_method(name, self.suffix, TYPE_SIGNATURE, handler),
                service=name,
                suffix=self.suffix,
            )
        logger.info(
            "tapconf.address_space.created",
            prefix=self.prefix,
            n_addrs=self.n_addrs,
            process=substrate.name,
        )

    def release(self, substrate: MessagingSubstrate) -> None:
        """Destroy every service of this address space."""
        for name in self:
            ensure_success("destroy_service", substrate.destroy_service(name), service=name)
