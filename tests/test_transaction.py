"""Tests for transaction commands."""

from decimal import Decimal

import pytest

from spendmap.cli.main import cli
from spendmap.domain.app_state import AppState


@pytest.fixture
def ids(state, merged_sample):
    """IDs of the sample transactions in ledger order."""
    return [t.id for t in state.transactions]


def run(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "transaction", *args], **kwargs)


def test_list_transactions(cli_runner, temp_db, ids):
    """Test listing all transactions."""
    result = run(cli_runner, temp_db, "list")

    assert result.exit_code == 0
    assert "Found 3 transaction(s):" in result.output
    assert "Grocery Store" in result.output
    assert "-50.00 USD" in result.output
    assert "2,500.00 USD" in result.output
    for transaction_id in ids:
        assert transaction_id in result.output


def test_list_empty(cli_runner, temp_db):
    """Test listing with an empty ledger."""
    result = run(cli_runner, temp_db, "list")

    assert result.exit_code == 0
    assert "No transactions found." in result.output


def test_list_with_date_range(cli_runner, temp_db, ids):
    """Test filtering by date range."""
    result = run(cli_runner, temp_db, "list", "--start-date", "2024-01-16", "--end-date", "2024-01-16")

    assert result.exit_code == 0
    assert "Found 1 transaction(s):" in result.output
    assert "Salary" in result.output


def test_list_invalid_date(cli_runner, temp_db, ids):
    """Test that an invalid start date is reported."""
    result = run(cli_runner, temp_db, "list", "--start-date", "not-a-date")

    assert result.exit_code == 1
    assert "Invalid start date" in result.output


def test_list_category_and_uncategorized(cli_runner, temp_db, ids, edit_service, sample_categories):
    """Test category filters."""
    edit_service.set_category(ids[0], "Shopping")

    result = run(cli_runner, temp_db, "list", "--category", "Shopping")
    assert "Found 1 transaction(s):" in result.output

    result = run(cli_runner, temp_db, "list", "--uncategorized")
    assert "Found 2 transaction(s):" in result.output

    result = run(cli_runner, temp_db, "list", "--category", "Shopping", "--uncategorized")
    assert result.exit_code == 1


def test_list_hides_deselected_files(cli_runner, temp_db, ids, merge_service):
    """Test that deselected files are hidden unless --all is given."""
    merge_service.set_selected("bank.csv", False)

    assert "No transactions found." in run(cli_runner, temp_db, "list").output
    assert "Found 3 transaction(s):" in run(cli_runner, temp_db, "list", "--all").output


def test_list_verbose_shows_originals(cli_runner, temp_db, ids, edit_service):
    """Test that verbose output shows the original values of edited rows."""
    edit_service.edit_field(ids[0], "description", "Supermarket")

    result = run(cli_runner, temp_db, "list", "--verbose", "--edited")

    assert result.exit_code == 0
    assert "Found 1 transaction(s):" in result.output
    assert "Description: Supermarket" in result.output
    assert "Original: 2024-01-15 | Grocery Store" in result.output
    assert "Edited fields: description" in result.output


def test_edit_transaction(cli_runner, temp_db, ids):
    """Test editing several fields at once."""
    result = run(cli_runner, temp_db, "edit", ids[0], "--description", "Supermarket", "--expenses", "60")

    assert result.exit_code == 0
    assert f"Updated transaction {ids[0]}" in result.output

    stored = AppState.load(temp_db).find_transaction(ids[0])
    assert stored.description == "Supermarket"
    assert stored.expenses == Decimal("60")
    assert stored.original_data.description == "Grocery Store"


def test_edit_nothing(cli_runner, temp_db, ids):
    """Test editing without any field."""
    result = run(cli_runner, temp_db, "edit", ids[0])

    assert result.exit_code == 1
    assert "Nothing to update" in result.output


def test_edit_invalid_amount(cli_runner, temp_db, ids):
    """Test that invalid values leave the transaction untouched."""
    result = run(cli_runner, temp_db, "edit", ids[0], "--description", "X", "--income", "-3")

    assert result.exit_code == 1
    assert "Error: Income cannot be negative" in result.output
    assert AppState.load(temp_db).find_transaction(ids[0]).description == "Grocery Store"


def test_edit_unknown_transaction(cli_runner, temp_db, ids):
    """Test editing a transaction that doesn't exist."""
    result = run(cli_runner, temp_db, "edit", "tx_nope", "--description", "X")

    assert result.exit_code == 1
    assert "Error: Transaction tx_nope not found" in result.output


def test_categorize_transaction(cli_runner, temp_db, ids, sample_categories):
    """Test setting a category with --remember."""
    result = run(cli_runner, temp_db, "category", ids[2], "Food & Dining:Restaurants", "--remember")

    assert result.exit_code == 0
    assert f"Categorized transaction {ids[2]} as Food & Dining:Restaurants" in result.output
    assert "Remembered 'Coffee Shop'" in result.output

    stored = AppState.load(temp_db)
    assert stored.find_transaction(ids[2]).subcategory == "Restaurants"
    assert stored.category_mappings == {"coffee shop": "Food & Dining:Restaurants"}


def test_categorize_unknown_category(cli_runner, temp_db, ids, sample_categories):
    """Test that unknown categories are rejected."""
    result = run(cli_runner, temp_db, "category", ids[0], "Nope")

    assert result.exit_code == 1
    assert "Error: Category 'Nope' not found" in result.output


def test_revert_transaction(cli_runner, temp_db, ids, edit_service, sample_categories):
    """Test reverting both axes from the CLI."""
    edit_service.edit_field(ids[0], "description", "Supermarket")
    edit_service.set_category(ids[0], "Shopping")

    result = run(cli_runner, temp_db, "revert", ids[0])

    assert result.exit_code == 0
    assert f"Reverted data and category of transaction {ids[0]}" in result.output
    stored = AppState.load(temp_db).find_transaction(ids[0])
    assert stored.description == "Grocery Store"
    assert stored.category == ""


def test_revert_only_category(cli_runner, temp_db, ids, edit_service, sample_categories):
    """Test reverting only the category."""
    edit_service.edit_field(ids[0], "description", "Supermarket")
    edit_service.set_category(ids[0], "Shopping")

    result = run(cli_runner, temp_db, "revert", ids[0], "--category")

    assert result.exit_code == 0
    assert f"Reverted category of transaction {ids[0]}" in result.output
    stored = AppState.load(temp_db).find_transaction(ids[0])
    assert stored.description == "Supermarket"
    assert stored.category == ""


def test_revert_unedited(cli_runner, temp_db, ids):
    """Test that reverting an unedited transaction is not an error."""
    result = run(cli_runner, temp_db, "revert", ids[1], "--data")

    assert result.exit_code == 0
    assert f"No data changes to revert for transaction {ids[1]}" in result.output
