"""Observability for tapconf: structured logging via structlog.

Example:
    >>> from tapconf.observability import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("tapconf.run.started", n_addrs=2)
"""

from tapconf.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
]
