"""
Deterministic normalization rules.

This file exists to make the engine's fixed limits explicit and enforceable.
"""

MAX_ENTITY_PASSES = 5

TARGET_CODEPAGE = "iso-8859-1"  # single-byte Latin codepage of the legacy channel

CHANNEL_PLAIN = "plain"
CHANNEL_MARKUP = "markup"
CHANNEL_FLAT = "flat"  # pipe-delimited flat file
CHANNELS = (CHANNEL_PLAIN, CHANNEL_MARKUP, CHANNEL_FLAT)
DEFAULT_CHANNEL = CHANNEL_PLAIN

# "&" is deliberately absent: no literal ampersand survives the pipeline
MARKUP_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}

FLAT_FIELD_DELIMITER = "|"
FLAT_FIELD_BREAKERS = (FLAT_FIELD_DELIMITER, "\r", "\n", "\t")

KEPT_CONTROL_CHARS = frozenset("\t\n\r")

IDENTIFIER_DISALLOWED = r"[^A-Za-z0-9_.\-]"
