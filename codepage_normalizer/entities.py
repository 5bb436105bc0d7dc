"""
HTML/XML character reference removal.

Responsibilities:
- drop punctuation entities (&apos; &quot; &lt; &gt;) and their numeric forms
- turn space entities (&nbsp; &#160; ...) into a single space
- resolve entities hidden behind an escaped ampersand (&amp;apos; -> "")
- guarantee the result holds nothing matching ENTITY_PATTERN

Ampersands in the input that are not part of an entity are left alone; the
transliteration stage owns them.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .rules import MAX_ENTITY_PASSES

logger = logging.getLogger(__name__)


ENTITY_PATTERN = re.compile(r"&[#A-Za-z0-9]+;")

# A decoded ampersand is held as this noncharacter while the loop runs, so it
# can open a nested entity on the next pass without being confused with an
# ampersand the caller actually wrote.
_DECODED_AMP = "\ufdd0"

_OPEN = "[&" + _DECODED_AMP + "]"
_AMP_BODY = r"(?:(?i:amp)|#0*38|#[xX]0*26);"

_DROPPED = re.compile(
    _OPEN + r"(?:apos|quot|lt|gt|#0*(?:39|34|60|62)|#[xX]0*(?:27|22|3[cC]|3[eE]));"
)
_SPACES = re.compile(
    _OPEN + r"(?:nbsp|ensp|emsp|thinsp|#0*(?:32|160)|#[xX]0*(?:20|[aA]0));"
)
_AMPERSAND = re.compile(_OPEN + _AMP_BODY)
_GENERIC = re.compile(
    _OPEN + r"(?!" + _AMP_BODY + r")(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);"
)


def _resolve_once(text: str) -> str:
    # decode first so "&amp;nbsp;" still becomes a space in the same pass
    text = _AMPERSAND.sub(_DECODED_AMP, text)
    text = _DROPPED.sub("", text)
    text = _SPACES.sub(" ", text)
    return _GENERIC.sub("", text)


def sweep_residual_entities(text: str) -> str:
    """
    Remove anything still matching ENTITY_PATTERN.

    A removal can splice two fragments into a new match ("&a&b;;"), so this
    repeats until nothing matches. Every round shortens the text.
    """
    while True:
        swept = ENTITY_PATTERN.sub("", text)
        if swept == text:
            return swept
        text = swept


def resolve_entities(text: Optional[str], max_passes: int = MAX_ENTITY_PASSES) -> str:
    """
    Strip character references, including ones nested behind "&amp;".

    Each pass peels one level of escaping. The loop stops at the first pass
    that changes nothing, or after max_passes.
    """
    if not text:
        return ""

    text = text.replace(_DECODED_AMP, "")
    if "&" not in text:
        return text

    passes = 0
    for passes in range(1, max_passes + 1):
        resolved = _resolve_once(text)
        if resolved == text:
            break
        text = resolved
    else:
        logger.debug("Entity resolution stopped after %d passes: %r", passes, text)

    # decoded ampersands that never opened a further entity
    text = text.replace(_DECODED_AMP, "")
    return sweep_residual_entities(text)
