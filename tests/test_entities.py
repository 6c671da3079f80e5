"""Tests for domain entities."""

from datetime import date
from decimal import Decimal

from spendmap.domain.entities import CategoryRef, FieldTag, Transaction


def test_category_ref_parse():
    """Test parsing 'Category:Subcategory' strings."""
    assert CategoryRef.parse("Food & Dining:Groceries") == CategoryRef("Food & Dining", "Groceries")
    assert CategoryRef.parse(" Shopping ") == CategoryRef("Shopping", "")
    assert CategoryRef.parse("Bills : Water") == CategoryRef("Bills", "Water")


def test_category_ref_parse_keeps_later_colons():
    """Test that only the first ':' separates the subcategory."""
    assert CategoryRef.parse("A:B:C") == CategoryRef("A", "B:C")


def test_category_ref_str():
    """Test the string form of a reference."""
    assert str(CategoryRef("Food & Dining", "Groceries")) == "Food & Dining:Groceries"
    assert str(CategoryRef("Shopping")) == "Shopping"


def test_field_tag_values():
    """Test that tags compare equal to their stored names."""
    assert FieldTag("Date") is FieldTag.DATE
    assert FieldTag.EXPENSES == "Expenses"


def test_transaction_amount_and_ref():
    """Test derived transaction properties."""
    transaction = Transaction(
        id="tx_1",
        date=date(2024, 1, 15),
        description="Refund",
        income=Decimal("10.00"),
        expenses=Decimal("2.50"),
        currency="USD",
        file_name="bank.csv",
    )

    assert transaction.amount == Decimal("7.50")
    assert transaction.category_ref is None

    transaction.category = "Shopping"
    assert transaction.category_ref == CategoryRef("Shopping")


def test_transaction_snapshot():
    """Test capturing the data fields."""
    transaction = Transaction(
        id="tx_1",
        date=None,
        description="Coffee",
        income=Decimal("0"),
        expenses=Decimal("4.50"),
        currency="USD",
        file_name="bank.csv",
    )

    snapshot = transaction.snapshot()
    transaction.description = "Tea"

    assert snapshot.description == "Coffee"
    assert snapshot.date is None
