"""Shared pytest fixtures for spendmap tests."""

import tempfile
import os
from pathlib import Path
import pytest

from spendmap.database.factories import create_sqlite_database
from spendmap.domain.app_state import AppState
from spendmap.domain.category import CategoryService
from spendmap.domain.entities import FieldTag
from spendmap.domain.mapping_store import MappingStoreService
from spendmap.domain.merge import MergeService
from spendmap.domain.transaction_editor import TransactionEditService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def state(temp_db):
    """Create an empty AppState backed by the temporary database."""
    return AppState.load(temp_db)


@pytest.fixture
def category_service(state):
    """Create a CategoryService for the test state."""
    return CategoryService(state)


@pytest.fixture
def mapping_store(temp_db):
    """Create a MappingStoreService with a temporary database."""
    return MappingStoreService(temp_db)


@pytest.fixture
def merge_service(state, mapping_store, category_service):
    """Create a MergeService wired to the mapping store and categories."""
    return MergeService(state, mapping_store=mapping_store, category_service=category_service)


@pytest.fixture
def edit_service(state):
    """Create a TransactionEditService for the test state."""
    return TransactionEditService(state)


@pytest.fixture
def sample_categories(category_service):
    """Install the default categories."""
    category_service.ensure_defaults()
    return category_service.list_categories()


@pytest.fixture
def sample_table():
    """A bank export with separate expenses and income columns."""
    return [
        ["Date", "Description", "Expenses", "Income"],
        ["2024-01-15", "Grocery Store", "50.00", ""],
        ["2024-01-16", "Salary", "", "2500.00"],
        ["2024-01-17", "Coffee Shop", "4.50", ""],
    ]


@pytest.fixture
def sample_mapping():
    """Mapping matching ``sample_table``."""
    return (FieldTag.DATE, FieldTag.DESCRIPTION, FieldTag.EXPENSES, FieldTag.INCOME)


@pytest.fixture
def merged_sample(merge_service, sample_table, sample_mapping):
    """Merge ``sample_table`` as 'bank.csv' and return the merge result."""
    return merge_service.add_merged_file(
        raw_table=sample_table,
        mapping=sample_mapping,
        file_name="bank.csv",
        signature="sig_bank.map",
        header_row_index=0,
        data_row_index=1,
        currency="USD",
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def write_csv(tmp_path):
    """Return a helper that writes CSV text to a file and returns its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
