"""Configuration for the tap conformance harness."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from tapconf.errors import ConfigurationError
from tapconf.models.constants import (
    DEFAULT_COPY_PREFIX,
    DEFAULT_PUBLISHER_PREFIX,
    DEFAULT_SUBSCRIBER_PREFIX,
)

ENV_PREFIX = "TAPCONF_"

# Settings readable from the environment: TAPCONF_N_ADDRS, TAPCONF_MAX_MSG_COUNT, ...
_ENV_FIELDS = (
    "n_addrs",
    "max_msg_count",
    "listing_check_at",
    "settle_seconds",
    "poll_quantum_ms",
    "send_batch",
    "stream_timeout",
    "publisher_prefix",
    "subscriber_prefix",
    "copy_prefix",
    "propagation_delay",
)


class HarnessConfig(BaseModel):
    n_addrs: int = Field(default=2, ge=1, description="Fan-out count N of each address space")
    max_msg_count: int = Field(
        default=200,
        ge=0,
        description="Number M of numbered messages; the sentinel follows as message M+1",
    )
    listing_check_at: int | None = Field(
        default=None,
        ge=0,
        description="Sent count that triggers the in-traffic listing check (default: M // 2)",
    )
    settle_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Settle wait before each post-teardown listing check",
    )
    poll_quantum_ms: float = Field(
        default=2.0,
        gt=0,
        description="Sleep between two substrate polls, in milliseconds",
    )
    send_batch: int = Field(default=1, ge=1, description="Messages sent per scheduler tick")
    stream_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Longest wait for the sentinel to arrive after it was sent",
    )
    publisher_prefix: str = Field(default=DEFAULT_PUBLISHER_PREFIX, min_length=1)
    subscriber_prefix: str = Field(default=DEFAULT_SUBSCRIBER_PREFIX, min_length=1)
    copy_prefix: str = Field(
        default=DEFAULT_COPY_PREFIX,
        min_length=1,
        description="Prefix of the copy service each observer process taps into",
    )
    propagation_delay: float = Field(
        default=0.1,
        ge=0,
        description="In-memory substrate only: delay before a removed tap disappears",
    )

    @model_validator(mode="after")
    def _check_consistency(self) -> "HarnessConfig":
        prefixes = ("publisher_prefix", "subscriber_prefix", "copy_prefix")
        for name in prefixes:
            if "/" in getattr(self, name):
                raise ValueError(f"{name} must not contain '/'")
        if len({getattr(self, name) for name in prefixes}) != len(prefixes):
            raise ValueError("publisher, subscriber and copy prefixes must all differ")
        if self.listing_check_at is not None and self.listing_check_at > self.max_msg_count:
            raise ValueError("listing_check_at must not exceed max_msg_count")
        return self

    @property
    def listing_threshold(self) -> int:
        """Sent count at which the in-traffic listing check runs."""
        if self.listing_check_at is not None:
            return self.listing_check_at
        return self.max_msg_count // 2

    @property
    def poll_quantum(self) -> float:
        """Poll quantum in seconds."""
        return self.poll_quantum_ms / 1000.0

    @classmethod
    def create(cls, **values: Any) -> "HarnessConfig":
        """Build a config, reporting invalid values as ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            reason = first.get("msg", str(exc))
            raise ConfigurationError(
                f"{field}: {reason}" if field else reason,
                field=field,
                details={"errors": exc.error_count()},
            ) from exc

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> "HarnessConfig":
        """Build a config from TAPCONF_* environment variables.

        Explicit keyword overrides win over the environment. Unset
        variables fall back to the field defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in _ENV_FIELDS:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw.strip() != "":
                values[name] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**values)
