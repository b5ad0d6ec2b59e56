"""Constants shared by the harness and the in-memory substrate."""

# Reserved sequence number marking the end of a message stream.
SENTINEL = -1

# Type signature of every bound method: string, symbol, int32.
TYPE_SIGNATURE = "sSi"

# Method suffix shared by every address. Non-ASCII on purpose so that every
# binding and lookup round-trips multi-byte text.
METHOD_SUFFIX = "äta"

# Literal carried in both the string and the symbol argument of each message.
UNICODE_LITERAL = "unistr"

DEFAULT_PUBLISHER_PREFIX = "pubunistr"
DEFAULT_SUBSCRIBER_PREFIX = "subunistr"
# Observer processes tap the tappee into services named <copy prefix><i>.
DEFAULT_COPY_PREFIX = "copyunistr"

# Properties attached to publisher service 0 at bootstrap.
INITIAL_PROPERTIES: tuple[tuple[str, str], ...] = (
    ("attr_unistr", "value_unistr"),
    ("attr1", "value1"),
    ("norwegian", "Blåbærsyltetøy"),
)

# Characters escaped with a backslash inside an encoded property suffix.
PROPERTY_ESCAPED_CHARS = frozenset({"\\", ":", ";"})
