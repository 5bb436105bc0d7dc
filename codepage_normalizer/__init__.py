from .normalize import (
    TextNormalizer,
    compare,
    encode_for_codepage,
    normalize_display_name,
    normalize_identifier,
    normalize_text,
)
from .table import SubstitutionTable, build_substitution_table

__all__ = [
    "TextNormalizer",
    "SubstitutionTable",
    "build_substitution_table",
    "compare",
    "encode_for_codepage",
    "normalize_display_name",
    "normalize_identifier",
    "normalize_text",
]
