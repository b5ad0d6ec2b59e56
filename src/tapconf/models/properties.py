"""Property suffix codec.

A service's properties travel on its listing entry as one string:
``";key:value;key2:value2;"``. Backslash, colon and semicolon inside keys
or values are escaped with a backslash. Text is otherwise passed through
byte for byte: no transcoding, case folding or trimming.

Example:
    >>> encode_properties({"attr1": "value1", "norwegian": "Blåbærsyltetøy"})
    ';attr1:value1;norwegian:Blåbærsyltetøy;'
    >>> decode_properties(";attr1:value1;")
    {'attr1': 'value1'}
"""

from __future__ import annotations

from collections.abc import Mapping

from tapconf.models.constants import PROPERTY_ESCAPED_CHARS


def _escape(text: str) -> str:
    return "".join(f"\\{ch}" if ch in PROPERTY_ESCAPED_CHARS else ch for ch in text)


def encode_properties(properties: Mapping[str, str]) -> str | None:
    """Encode a mapping as a listing suffix, or None when it is empty."""
    if not properties:
        return None
    body = ";".join(f"{_escape(k)}:{_escape(v)}" for k, v in properties.items())
    return f";{body};"


def decode_properties(encoded: str | None) -> dict[str, str]:
    """Decode a listing suffix back into a key/value mapping.

    Raises:
        ValueError: If the suffix is malformed (missing delimiters, a
            dangling escape, or a pair without a colon).
    """
    if encoded is None or encoded == "":
        return {}
    if not encoded.startswith(";") or not encoded.endswith(";"):
        raise ValueError(f"property suffix must start and end with ';': {encoded!r}")

    result: dict[str, str] = {}
    key: str | None = None
    current: list[str] = []
    escaped = False
    for ch in encoded[1:]:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == ":" and key is None:
            key = "".join(current)
            current = []
        elif ch == ";":
            if key is None:
                raise ValueError(f"property without ':' in {encoded!r}")
            result[key] = "".join(current)
            key = None
            current = []
        else:
            current.append(ch)
    if escaped or key is not None or current:
        raise ValueError(f"truncated property suffix: {encoded!r}")
    return result
