"""
Substitution table used by the transliteration stage.

The table is built once from an ordered list of (pattern, replacement) pairs
and never mutated afterwards. Patterns are matched longest first so that a
specific pattern such as " & " is not shadowed by the general "&" rule.
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

logger = logging.getLogger(__name__)


# "&" reads as "et" in the business's working language
AMPERSAND_RULES = [
    (" & ", " et "),
    ("&", " et "),
]

LOWER_VOWELS = [
    ("à", "a"), ("á", "a"), ("â", "a"), ("ã", "a"), ("ä", "a"), ("å", "a"),
    ("è", "e"), ("é", "e"), ("ê", "e"), ("ë", "e"),
    ("ì", "i"), ("í", "i"), ("î", "i"), ("ï", "i"),
    ("ò", "o"), ("ó", "o"), ("ô", "o"), ("õ", "o"), ("ö", "o"), ("ø", "o"),
    ("ù", "u"), ("ú", "u"), ("û", "u"), ("ü", "u"),
]

LOWER_CONSONANTS = [
    ("ç", "c"), ("ñ", "n"), ("ÿ", "y"), ("ý", "y"),
    ("ð", "d"), ("þ", "th"), ("ł", "l"), ("đ", "d"),
]

UPPER_VOWELS = [
    ("À", "A"), ("Á", "A"), ("Â", "A"), ("Ã", "A"), ("Ä", "A"), ("Å", "A"),
    ("È", "E"), ("É", "E"), ("Ê", "E"), ("Ë", "E"),
    ("Ì", "I"), ("Í", "I"), ("Î", "I"), ("Ï", "I"),
    ("Ò", "O"), ("Ó", "O"), ("Ô", "O"), ("Õ", "O"), ("Ö", "O"), ("Ø", "O"),
    ("Ù", "U"), ("Ú", "U"), ("Û", "U"), ("Ü", "U"),
]

UPPER_CONSONANTS = [
    ("Ç", "C"), ("Ñ", "N"), ("Ÿ", "Y"), ("Ý", "Y"),
    ("Ð", "D"), ("Þ", "TH"), ("Ł", "L"), ("Đ", "D"),
]

LIGATURES = [
    ("œ", "oe"), ("Œ", "OE"), ("æ", "ae"), ("Æ", "AE"), ("ß", "ss"),
    ("ﬁ", "fi"), ("ﬂ", "fl"),
]

CURRENCIES = [
    ("€", "EUR"), ("$", "USD"), ("£", "GBP"), ("¥", "JPY"), ("¢", "c"),
]

SYMBOLS = [
    ("°", "deg"), ("©", "(C)"), ("®", "(R)"), ("™", "(TM)"),
    ("§", "S"), ("µ", "u"), ("•", "-"),
]

QUOTES = [
    ("\u201C", '"'), ("\u201D", '"'), ("\u201E", '"'),
    ("\u2018", "'"), ("\u2019", "'"), ("\u201A", ","),
    ("\u00AB", '"'), ("\u00BB", '"'),
    ("\u2039", "'"), ("\u203A", "'"),
    ("\u2032", "'"), ("\u2033", '"'),
]

DASHES = [
    ("\u2010", "-"), ("\u2011", "-"), ("\u2012", "-"),
    ("\u2013", "-"), ("\u2014", "-"), ("\u2015", "-"), ("\u2212", "-"),
]

SPACES = [
    ("\u00A0", " "),  # no-break space
    ("\u2002", " "), ("\u2003", " "), ("\u2006", " "),
    ("\u2007", " "), ("\u2008", " "), ("\u2009", " "), ("\u200A", " "),
    ("\u202F", " "), ("\u205F", " "), ("\u3000", " "),
    ("\u200B", ""),  # zero width space
    ("\uFEFF", ""),  # BOM
]

MATH = [
    ("×", "x"), ("÷", "/"), ("±", "+/-"),
    ("¼", "1/4"), ("½", "1/2"), ("¾", "3/4"),
    ("²", "2"), ("³", "3"),
]

PUNCTUATION = [
    ("…", "..."), ("¡", "!"), ("¿", "?"), ("·", "."),
]

DEFAULT_SUBSTITUTIONS = (
    AMPERSAND_RULES
    + LOWER_VOWELS
    + LOWER_CONSONANTS
    + UPPER_VOWELS
    + UPPER_CONSONANTS
    + LIGATURES
    + CURRENCIES
    + SYMBOLS
    + QUOTES
    + DASHES
    + SPACES
    + MATH
    + PUNCTUATION
)


def _accept(entries: Iterable[Tuple[str, str]]) -> Tuple[Tuple[str, str], ...]:
    """
    Registration rules shared by every way of building a table.

    Rules:
    - The first registration of a pattern wins; later ones are logged and skipped.
    - Empty patterns are skipped.
    """
    seen: dict[str, str] = {}
    accepted: list[tuple[str, str]] = []

    for key, value in entries:
        if not key:
            logger.warning("Empty substitution pattern ignored (replacement=%r)", value)
            continue
        if key in seen:
            logger.warning(
                "Duplicate substitution pattern ignored: %r -> %r (kept %r)",
                key, value, seen[key],
            )
            continue
        seen[key] = value
        accepted.append((key, value))

    return tuple(accepted)


class SubstitutionTable:
    """
    Immutable mapping from source patterns to ASCII replacements.

    Safe to share between threads: nothing is written after __init__.
    """

    __slots__ = ("_entries", "_mapping", "_pattern")

    def __init__(self, entries: Iterable[Tuple[str, str]]):
        # longest first, ties keep registration order (sorted() is stable)
        ordered = tuple(sorted(_accept(entries), key=lambda kv: -len(kv[0])))
        self._entries = ordered
        self._mapping = MappingProxyType(dict(ordered))
        if ordered:
            self._pattern = re.compile("|".join(re.escape(k) for k, _ in ordered))
        else:
            self._pattern = None

    @property
    def entries(self) -> Tuple[Tuple[str, str], ...]:
        return self._entries

    @property
    def mapping(self) -> Mapping[str, str]:
        return self._mapping

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._mapping

    def get(self, key: str, default=None):
        return self._mapping.get(key, default)

    def apply(self, text: str) -> str:
        """Replace every pattern occurrence in a single left-to-right pass."""
        if self._pattern is None or not text:
            return text
        return self._pattern.sub(lambda m: self._mapping[m.group(0)], text)


def build_substitution_table(
    entries: Iterable[Tuple[str, str]] = DEFAULT_SUBSTITUTIONS,
) -> SubstitutionTable:
    """Build a SubstitutionTable from (pattern, replacement) pairs, first registration wins."""
    table = SubstitutionTable(entries)
    logger.info("Substitution table built with %d entries", len(table))
    return table
