"""ULID-based identifiers for conformance runs.

ULIDs sort by creation time, so log lines from consecutive runs against the
same substrate group naturally.
"""

from ulid import ULID


def generate_id() -> str:
    """Generate a new 26-character ULID string.

    Example:
        >>> len(generate_id())
        26
    """
    return str(ULID())


def generate_run_id() -> str:
    """Identifier for one conformance run, e.g. ``run_01HX5K4N...``."""
    return f"run_{generate_id()}"
