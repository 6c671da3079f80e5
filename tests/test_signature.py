"""Tests for format signatures."""

from spendmap.domain.entities import FieldTag
from spendmap.domain.signature import (
    EMPTY_SIGNATURE,
    generate_signature,
    same_structure,
    structure_of,
)

TABLE = [
    ["Date", "Description", "Amount"],
    ["2024-01-01", "Coffee", "-3.00"],
    ["2024-01-02", "Salary", "1000.00"],
]
MAPPING = (FieldTag.DATE, FieldTag.DESCRIPTION, FieldTag.EXPENSES)


def test_signature_is_deterministic():
    """Test that equal inputs give equal signatures."""
    first = generate_signature("bank.csv", TABLE, MAPPING, "USD")
    second = generate_signature("bank.csv", [list(row) for row in TABLE], MAPPING, "USD")

    assert first == second
    assert first.startswith("sig_")


def test_structure_only_signature_has_no_mapping_part():
    """Test the pre-mapping signature form."""
    signature = generate_signature("bank.csv", TABLE)

    assert "." not in signature
    assert structure_of(signature) == signature


def test_full_signature_shares_structure_with_structure_only():
    """Test that a mapped signature can be matched before mapping."""
    structure = generate_signature("bank.csv", TABLE)
    full = generate_signature("bank.csv", TABLE, MAPPING, "USD")

    assert full != structure
    assert structure_of(full) == structure
    assert same_structure(full, structure)


def test_different_mappings_give_different_signatures():
    """Test that the mapping choice is part of the signature."""
    other = (FieldTag.DATE, FieldTag.DESCRIPTION, FieldTag.INCOME)

    first = generate_signature("bank.csv", TABLE, MAPPING, "USD")
    second = generate_signature("bank.csv", TABLE, other, "USD")

    assert first != second
    assert same_structure(first, second)


def test_currency_is_part_of_full_signature():
    """Test that currency changes the mapping part, case-insensitively."""
    usd = generate_signature("bank.csv", TABLE, MAPPING, "USD")

    assert generate_signature("bank.csv", TABLE, MAPPING, "usd") == usd
    assert generate_signature("bank.csv", TABLE, MAPPING, "EUR") != usd


def test_file_stem_is_not_part_of_signature():
    """Test that monthly exports of the same bank share a signature."""
    january = generate_signature("january.csv", TABLE, MAPPING, "USD")
    february = generate_signature("february.csv", TABLE, MAPPING, "USD")

    assert january == february


def test_extension_is_part_of_signature():
    """Test that different file types don't share a signature."""
    assert not same_structure(
        generate_signature("bank.csv", TABLE), generate_signature("bank.txt", TABLE)
    )


def test_header_normalization():
    """Test that header case and punctuation don't change the structure."""
    table = [["DATE", "description:", "Amount "]] + TABLE[1:]

    assert generate_signature("bank.csv", table) == generate_signature("bank.csv", TABLE)


def test_different_headers_give_different_structures():
    """Test that the header row is part of the signature."""
    table = [["Datum", "Text", "Betrag"]] + TABLE[1:]

    assert not same_structure(
        generate_signature("bank.csv", table), generate_signature("bank.csv", TABLE)
    )


def test_data_rows_do_not_change_signature():
    """Test that only the header row is hashed."""
    more_rows = TABLE + [["2024-01-03", "Rent", "-800.00"]]

    assert generate_signature("bank.csv", more_rows) == generate_signature("bank.csv", TABLE)


def test_ragged_data_row_does_not_change_signature():
    """Test that a data row with a trailing empty cell keeps the signature."""
    ragged = TABLE + [["2024-01-03", "Rent", "-800.00", ""]]

    assert generate_signature("bank.csv", ragged, MAPPING, "USD") == generate_signature(
        "bank.csv", TABLE, MAPPING, "USD"
    )


def test_header_row_index_selects_header():
    """Test signatures of files with preamble rows."""
    with_preamble = [["Account statement"]] + TABLE

    assert generate_signature("bank.csv", with_preamble, header_row_index=1) != generate_signature(
        "bank.csv", with_preamble, header_row_index=0
    )


def test_empty_table():
    """Test the signature of an empty table."""
    assert generate_signature("bank.csv", []) == EMPTY_SIGNATURE
