"""
Core normalization logic lives here.

Responsibilities:
- character reference removal (delegated to entities.py)
- transliteration through the substitution table
- control character filtering
- diacritic stripping for anything the table missed
- output sanitizing per channel (markup escaping, flat-file scrubbing)
- truncation + whitespace policy per mode
- degraded ASCII fallback so a single bad field never aborts a batch
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Optional, Union

from charset_normalizer import from_bytes

from .entities import resolve_entities, sweep_residual_entities
from .models import ProcessingMode, ProcessingRequest, ProcessingResult, ProcessingStats
from .rules import (
    CHANNEL_FLAT,
    CHANNEL_MARKUP,
    CHANNELS,
    DEFAULT_CHANNEL,
    FLAT_FIELD_BREAKERS,
    IDENTIFIER_DISALLOWED,
    KEPT_CONTROL_CHARS,
    MARKUP_ESCAPES,
    MAX_ENTITY_PASSES,
    TARGET_CODEPAGE,
)
from .table import SubstitutionTable, build_substitution_table

logger = logging.getLogger(__name__)

RawText = Union[str, bytes, None]

DEFAULT_TABLE = build_substitution_table()

_WHITESPACE_RUN = re.compile(r"\s+")
_IDENTIFIER_DISALLOWED = re.compile(IDENTIFIER_DISALLOWED)
_MARKUP_TRANSLATION = str.maketrans(MARKUP_ESCAPES)


def decode_raw(raw: bytes) -> str:
    """
    Decode raw bytes to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is dropped rather than kept as a character.
    - If decode fails, fall back to UTF-8, then to UTF-8 with replacement characters.
    """
    if not raw:
        return ""

    match = from_bytes(raw).best()
    decode_used = match.encoding if match is not None else "utf-8"
    if raw.startswith(b"\xef\xbb\xbf") and decode_used.lower().replace("-", "_") in ("utf_8", "utf8"):
        decode_used = "utf-8-sig"

    try:
        return raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        logger.debug("Decode with %s failed, retrying as utf-8", decode_used)

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("utf-8", errors="replace")


# --- Stages -----------------------------------------------------------------

def transliterate(text: str, table: SubstitutionTable = DEFAULT_TABLE) -> str:
    return table.apply(text)


def remove_control_characters(text: str) -> str:
    """Drop Unicode control characters (Cc), keeping tab, LF and CR."""
    return "".join(
        c for c in text
        if c in KEPT_CONTROL_CHARS or unicodedata.category(c) != "Cc"
    )


def strip_diacritics(text: str) -> str:
    """
    Remove combining marks left after canonical decomposition.

    Characters without a decomposition (CJK, Cyrillic base letters...) are
    returned unchanged.
    """
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def escape_markup(text: str) -> str:
    return text.translate(_MARKUP_TRANSLATION)


def scrub_flat_field(text: str) -> str:
    """Replace the field delimiter and line/tab breaks so a value stays on one record."""
    for breaker in FLAT_FIELD_BREAKERS:
        text = text.replace(breaker, " ")
    return text


def truncate(text: str, max_length: Optional[int]) -> str:
    if max_length is None or len(text) <= max_length:
        return text
    truncated = text[: max(max_length, 0)]
    logger.debug("Text truncated to %d characters: %r -> %r", max_length, text, truncated)
    return truncated


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RUN.sub(" ", text).strip()


def find_invalid_xml_chars(text: str) -> list[str]:
    """Characters that are not allowed in XML 1.0 character data."""
    return [
        c for c in text
        if not (
            c in "\t\n\r"
            or "\x20" <= c <= "\ud7ff"
            or "\ue000" <= c <= "\ufffd"
            or "\U00010000" <= c <= "\U0010ffff"
        )
    ]


def ascii_fallback(raw: RawText, max_length: Optional[int] = None) -> str:
    """
    Degraded cleanup used when the pipeline faults.

    Keeps printable ASCII (0x20-0x7E), turns tabs into spaces, trims, truncates.
    """
    if not raw:
        return ""
    if isinstance(raw, bytes):
        raw = raw.decode("ascii", errors="ignore")
    elif not isinstance(raw, str):
        raw = str(raw)

    kept = "".join(" " if c == "\t" else c for c in raw if c == "\t" or " " <= c <= "~")
    return truncate(kept.strip(), max_length)


def finish_identifier(text: str) -> str:
    text = collapse_whitespace(text).replace(" ", "_")
    return _IDENTIFIER_DISALLOWED.sub("", text).upper()


# --- Codepage ---------------------------------------------------------------

def is_codepage_safe(text: Optional[str], codepage: str = TARGET_CODEPAGE) -> bool:
    try:
        (text or "").encode(codepage)
    except UnicodeEncodeError:
        return False
    return True


def encode_for_codepage(text: Optional[str], codepage: str = TARGET_CODEPAGE) -> bytes:
    """
    Encode a processed value for the legacy channel.

    Characters the codepage cannot represent become "?".
    """
    text = text or ""
    if not is_codepage_safe(text, codepage):
        logger.warning("Value not representable in %s, substituting: %r", codepage, text)
    return text.encode(codepage, errors="replace")


def compare(original: RawText, processed: Optional[str]) -> ProcessingStats:
    """Diagnostic comparison of an input and its processed value. Never alters either."""
    if isinstance(original, bytes):
        original = original.decode("utf-8", errors="replace")
    original = original or ""
    processed = processed or ""
    return ProcessingStats(
        original_length=len(original),
        processed_length=len(processed),
        had_non_ascii_input=any(ord(c) > 0x7F for c in original),
        transformation_applied=original != processed,
        codepage_safe=is_codepage_safe(processed),
    )


# --- Orchestrator -----------------------------------------------------------

class TextNormalizer:
    """
    Composes the stages in a fixed order per mode.

    Holds no mutable state: one instance can serve any number of threads.
    """

    def __init__(
        self,
        table: Optional[SubstitutionTable] = None,
        channel: str = DEFAULT_CHANNEL,
        truncate_before_escape: bool = False,
        max_entity_passes: int = MAX_ENTITY_PASSES,
    ):
        if channel not in CHANNELS:
            raise ValueError(f"Unknown channel: {channel}. Must be one of {', '.join(CHANNELS)}")
        if max_entity_passes < 1:
            raise ValueError("max_entity_passes must be at least 1")
        self.table = table if table is not None else DEFAULT_TABLE
        self.channel = channel
        self.truncate_before_escape = truncate_before_escape
        self.max_entity_passes = max_entity_passes

    def normalize_text(self, raw: RawText, max_length: Optional[int] = None) -> str:
        return self._run(raw, max_length, ProcessingMode.TEXT)

    def normalize_identifier(self, raw: RawText) -> str:
        return self._run(raw, None, ProcessingMode.IDENTIFIER)

    def normalize_display_name(self, raw: RawText, max_length: Optional[int] = None) -> str:
        return self._run(raw, max_length, ProcessingMode.DISPLAY_NAME)

    def process(self, request: ProcessingRequest) -> ProcessingResult:
        return ProcessingResult(
            processed_text=self._run(request.raw_text, request.max_length, request.mode)
        )

    def compare(self, original: RawText, processed: Optional[str]) -> ProcessingStats:
        return compare(original, processed)

    def _run(self, raw: RawText, max_length: Optional[int], mode: ProcessingMode) -> str:
        if not raw:
            return ""
        if mode is ProcessingMode.IDENTIFIER:
            max_length = None

        try:
            text = decode_raw(raw) if isinstance(raw, bytes) else str(raw)
            processed = self._fold(text)

            if mode is ProcessingMode.IDENTIFIER:
                processed = finish_identifier(processed)
            else:
                processed = self._sanitize(processed, max_length)
                if mode is ProcessingMode.DISPLAY_NAME:
                    processed = collapse_whitespace(processed)
                else:
                    # ends only: interior runs are kept ("Beaute  Sante")
                    processed = processed.strip()

            if processed != text:
                logger.debug("Text transformed (%s): %r -> %r", mode.value, text, processed)
            return processed

        except Exception:
            logger.exception("Normalization failed (%s), using ASCII fallback: %r", mode.value, raw)
            fallback = ascii_fallback(raw, max_length)
            if mode is ProcessingMode.IDENTIFIER:
                fallback = finish_identifier(fallback)
            return fallback

    def _fold(self, text: str) -> str:
        text = resolve_entities(text, self.max_entity_passes)
        text = transliterate(text, self.table)
        text = remove_control_characters(text)
        text = strip_diacritics(text)
        # stripping can expose a table key ("\u01ff" -> "\u00f8")
        text = transliterate(text, self.table)
        return sweep_residual_entities(text)

    def _sanitize(self, text: str, max_length: Optional[int]) -> str:
        if self.channel == CHANNEL_FLAT:
            text = scrub_flat_field(text)

        if self.channel != CHANNEL_MARKUP:
            return truncate(text, max_length)

        # by default max_length counts escaped text, so "&lt;" may be cut
        if self.truncate_before_escape:
            text = escape_markup(truncate(text, max_length))
        else:
            text = truncate(escape_markup(text), max_length)

        invalid = find_invalid_xml_chars(text)
        if invalid:
            logger.warning(
                "Invalid XML character(s) %s in %r",
                ", ".join(f"U+{ord(c):04X}" for c in invalid), text,
            )
        return text


_default_normalizer = TextNormalizer()


def normalize_text(raw: RawText, max_length: Optional[int] = None) -> str:
    """Generic cleanup for free text fields."""
    return _default_normalizer.normalize_text(raw, max_length)


def normalize_identifier(raw: RawText) -> str:
    """Machine key cleanup: upper case, [A-Z0-9_.-] only."""
    return _default_normalizer.normalize_identifier(raw)


def normalize_display_name(raw: RawText, max_length: Optional[int] = None) -> str:
    """Human readable cleanup: case preserved, whitespace collapsed."""
    return _default_normalizer.normalize_display_name(raw, max_length)
