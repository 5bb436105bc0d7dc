import logging

import pytest

from codepage_normalizer.table import (
    DEFAULT_SUBSTITUTIONS,
    SubstitutionTable,
    build_substitution_table,
)


def test_duplicate_pattern_keeps_first_registration(caplog):
    with caplog.at_level(logging.WARNING, logger="codepage_normalizer.table"):
        table = build_substitution_table([("é", "e"), ("é", "E")])

    assert len(table) == 1
    assert table.get("é") == "e"
    assert "Duplicate substitution pattern" in caplog.text


def test_empty_pattern_is_skipped():
    table = build_substitution_table([("", "x"), ("ç", "c")])
    assert len(table) == 1
    assert "" not in table


def test_default_table_has_no_duplicates():
    keys = [key for key, _ in DEFAULT_SUBSTITUTIONS]
    assert len(keys) == len(set(keys))


def test_longer_patterns_come_first():
    table = build_substitution_table()
    lengths = [len(key) for key, _ in table.entries]
    assert lengths == sorted(lengths, reverse=True)
    assert table.entries[0] == (" & ", " et ")


def test_ampersand_rules():
    table = build_substitution_table()
    assert table.apply("A & B") == "A et B"
    assert table.apply("A&B") == "A et B"
    assert table.apply("A &B") == "A  et B"


def test_apply_is_single_pass():
    # replacement text is never fed back into the table
    table = build_substitution_table([("a", "b"), ("b", "c")])
    assert table.apply("ab") == "bc"


def test_table_is_read_only():
    table = build_substitution_table()
    with pytest.raises(TypeError):
        table.mapping["é"] = "X"
    assert table.get("é") == "e"


def test_empty_table_passes_text_through():
    table = SubstitutionTable(())
    assert table.apply("Crème") == "Crème"


def test_unmapped_characters_pass_through():
    table = build_substitution_table()
    assert table.apply("東京 Crème") == "東京 Creme"


def test_constructor_applies_registration_rules(caplog):
    with caplog.at_level(logging.WARNING, logger="codepage_normalizer.table"):
        table = SubstitutionTable((("é", "e"), ("é", "E"), ("", "x")))

    assert len(table) == 1
    assert table.get("é") == "e"
    assert table.apply("é") == "e"
    assert "Duplicate substitution pattern" in caplog.text
