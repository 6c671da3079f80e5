"""Tests for categories and the description map."""

import pytest

from spendmap.cli.main import cli
from spendmap.domain.app_state import AppState
from spendmap.domain.entities import CategoryRef, CategoryWithSubcategories, SimpleCategory
from spendmap.domain.errors import ConflictError, NotFoundError, ValidationError


class TestCategoryService:
    """Tests for CategoryService category management."""

    def test_ensure_defaults(self, category_service, temp_db):
        """Test installing the default categories."""
        assert category_service.ensure_defaults() == 6
        assert category_service.ensure_defaults() == 0

        names = [name for name, _ in category_service.list_categories()]
        assert names[0] == "Food & Dining"
        assert "Income" in AppState.load(temp_db).categories

    def test_ensure_defaults_merge_keeps_existing(self, category_service):
        """Test that merging defaults never overwrites a category."""
        category_service.create_category("Shopping", color="#000000")

        assert category_service.ensure_defaults() == 0
        assert category_service.ensure_defaults(merge=True) == 5
        assert category_service.get_category("Shopping") == SimpleCategory(color="#000000")

    def test_create_category(self, category_service):
        """Test creating a category."""
        category = category_service.create_category("  Pets ")

        assert isinstance(category, SimpleCategory)
        assert category_service.get_category("Pets") == category

    def test_create_category_invalid_names(self, category_service):
        """Test that empty names and names with ':' are rejected."""
        with pytest.raises(ValidationError):
            category_service.create_category("   ")
        with pytest.raises(ValidationError):
            category_service.create_category("A:B")

    def test_create_duplicate(self, category_service):
        """Test that category names are unique."""
        category_service.create_category("Pets")
        with pytest.raises(ConflictError):
            category_service.create_category("Pets")

    def test_custom_categories_listed_after_ordered(self, category_service, sample_categories):
        """Test that categories without an order follow the defaults."""
        category_service.create_category("Pets")

        names = [name for name, _ in category_service.list_categories()]
        assert names[-1] == "Pets"

    def test_simple_category_created_first_listed_last(self, category_service):
        """Test that a category without subcategories sorts after ordered ones."""
        category_service.create_category("Pets")
        category_service.ensure_defaults(merge=True)

        listed = category_service.list_categories()
        assert listed[-1][0] == "Pets"
        assert isinstance(listed[0][1], CategoryWithSubcategories)

    def test_add_subcategory_converts_simple(self, category_service):
        """Test that a simple category gains subcategories."""
        category_service.create_category("Pets", color="#123456")
        updated = category_service.add_subcategory("Pets", "Vet")

        assert isinstance(updated, CategoryWithSubcategories)
        assert updated.subcategories == {"Vet": "#123456"}

    def test_add_subcategory_conflict(self, category_service, sample_categories):
        """Test adding a subcategory that already exists."""
        with pytest.raises(ConflictError):
            category_service.add_subcategory("Shopping", "Home")
        with pytest.raises(NotFoundError):
            category_service.add_subcategory("Nope", "Home")

    def test_delete_last_subcategory_collapses(self, category_service):
        """Test that removing the last subcategory leaves a simple category."""
        category_service.create_category("Pets", color="#123456")
        category_service.add_subcategory("Pets", "Vet")
        category_service.delete_subcategory("Pets", "Vet")

        assert category_service.get_category("Pets") == SimpleCategory(color="#123456")


class TestCategoryPropagation:
    """Tests for renames and deletes reaching transactions and the map."""

    @pytest.fixture
    def categorized(self, state, merged_sample, edit_service, category_service, sample_categories):
        """Categorize the sample ledger and teach a few descriptions."""
        grocery, salary, coffee = state.transactions
        edit_service.set_category(grocery.id, "Food & Dining:Groceries")
        edit_service.set_category(coffee.id, "Food & Dining:Restaurants")
        edit_service.set_category(salary.id, "Income:Salary")
        category_service.learn_mapping("Grocery Store", "Food & Dining:Groceries")
        category_service.learn_mapping("^coffee", "Food & Dining", is_regex=True)
        return grocery, salary, coffee

    def test_rename_category(self, category_service, state, temp_db, categorized):
        """Test that renaming moves transactions and mappings."""
        grocery, salary, coffee = categorized

        assert category_service.rename_category("Food & Dining", "Food") == 2

        assert "Food & Dining" not in state.categories
        assert state.find_transaction(grocery.id).category_ref == CategoryRef("Food", "Groceries")
        assert state.find_transaction(salary.id).category == "Income"
        assert state.category_mappings == {"grocery store": "Food:Groceries", "^coffee": "Food"}

        stored = AppState.load(temp_db)
        assert stored.find_transaction(coffee.id).category == "Food"

    def test_rename_keeps_snapshots(self, category_service, state, categorized):
        """Test that category snapshots are left as they were."""
        grocery, _, _ = categorized
        category_service.rename_category("Food & Dining", "Food")

        assert state.find_transaction(grocery.id).original_category == ""

    def test_rename_to_existing(self, category_service, categorized):
        """Test renaming onto an existing category."""
        with pytest.raises(ConflictError):
            category_service.rename_category("Food & Dining", "Shopping")

    def test_rename_subcategory(self, category_service, state, categorized):
        """Test renaming a subcategory."""
        grocery, _, coffee = categorized

        assert category_service.rename_subcategory("Food & Dining", "Groceries", "Supermarket") == 1

        assert state.find_transaction(grocery.id).subcategory == "Supermarket"
        assert state.find_transaction(coffee.id).subcategory == "Restaurants"
        assert state.category_mappings["grocery store"] == "Food & Dining:Supermarket"
        assert "Supermarket" in state.categories["Food & Dining"].subcategories

    def test_delete_category(self, category_service, state, categorized):
        """Test that deleting a category uncategorizes its transactions."""
        grocery, salary, _ = categorized

        assert category_service.delete_category("Food & Dining") == 2

        assert state.find_transaction(grocery.id).category_ref is None
        assert state.find_transaction(salary.id).category == "Income"
        assert state.category_mappings == {}

    def test_delete_subcategory_falls_back_to_parent(self, category_service, state, categorized):
        """Test that deleting a subcategory keeps the parent category."""
        grocery, _, _ = categorized

        assert category_service.delete_subcategory("Food & Dining", "Groceries") == 1

        assert state.find_transaction(grocery.id).category_ref == CategoryRef("Food & Dining")
        assert state.category_mappings["grocery store"] == "Food & Dining"


class TestDescriptionMap:
    """Tests for learning and looking up description categories."""

    def test_learn_and_lookup(self, category_service, sample_categories):
        """Test exact lookup is case and whitespace insensitive."""
        key = category_service.learn_mapping("  NETFLIX ", "Entertainment:Movies")

        assert key == "netflix"
        assert category_service.get_category_for_description("Netflix") == CategoryRef(
            "Entertainment", "Movies"
        )
        assert category_service.get_category_for_description("Netflix.com") is None

    def test_pattern_lookup(self, category_service, sample_categories):
        """Test pattern keys match case-insensitively."""
        category_service.learn_mapping("^shell.*", "Transportation:Gas", is_regex=True)

        assert category_service.get_category_for_description("SHELL 1234") == CategoryRef(
            "Transportation", "Gas"
        )

    def test_exact_match_wins_over_pattern(self, category_service, sample_categories):
        """Test that an exact key beats an earlier pattern."""
        category_service.learn_mapping("^shell.*", "Transportation:Gas", is_regex=True)
        category_service.learn_mapping("Shell Shop", "Shopping")

        assert category_service.get_category_for_description("shell shop") == CategoryRef("Shopping")

    def test_learn_validates(self, category_service, sample_categories):
        """Test learning rejects unknown categories and bad patterns."""
        with pytest.raises(NotFoundError):
            category_service.learn_mapping("x", "Nope")
        with pytest.raises(NotFoundError):
            category_service.learn_mapping("x", "Shopping:Nope")
        with pytest.raises(ValidationError):
            category_service.learn_mapping("([", "Shopping", is_regex=True)
        with pytest.raises(ValidationError):
            category_service.learn_mapping("   ", "Shopping")

    def test_apply_to_ledger(self, category_service, state, temp_db, merged_sample, sample_categories):
        """Test applying the map to uncategorized ledger transactions."""
        category_service.learn_mapping("salary", "Income:Salary")

        assert category_service.apply_category_mappings() == 1
        assert category_service.apply_category_mappings() == 0
        assert AppState.load(temp_db).transactions[1].category_ref == CategoryRef("Income", "Salary")

    def test_forget_and_clear(self, category_service, sample_categories):
        """Test removing map entries."""
        category_service.learn_mapping("Netflix", "Entertainment")
        category_service.learn_mapping("Spotify", "Entertainment")

        category_service.forget_mapping("NETFLIX")
        assert [key for key, _ in category_service.list_mappings()] == ["spotify"]
        with pytest.raises(NotFoundError):
            category_service.forget_mapping("netflix")

        assert category_service.clear_mappings() == 1
        assert category_service.list_mappings() == []


def test_init_categories(cli_runner, temp_db):
    """Test initializing categories."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-categories"])

    assert result.exit_code == 0
    assert "Successfully created 6 categories." in result.output


def test_init_categories_duplicate(cli_runner, temp_db):
    """Test initializing categories twice."""
    cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-categories"])
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init-categories"])

    assert result.exit_code == 0
    assert "already exist" in result.output.lower()


def test_category_list(cli_runner, temp_db, sample_categories):
    """Test listing categories."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "list"])

    assert result.exit_code == 0
    assert "Income" in result.output
    assert "  Groceries" in result.output


def test_category_list_empty(cli_runner, temp_db):
    """Test listing with no categories."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "list"])

    assert result.exit_code == 0
    assert "No categories found" in result.output


def test_category_create_and_add_sub(cli_runner, temp_db):
    """Test creating a category and a subcategory from the CLI."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "category", "create", "Pets", "--color", "#111111"]
    )
    assert result.exit_code == 0
    assert "Created category 'Pets'" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "category", "add-sub", "Pets", "Vet"]
    )
    assert result.exit_code == 0

    category = AppState.load(temp_db).categories["Pets"]
    assert category.subcategories == {"Vet": "#111111"}


def test_category_create_duplicate(cli_runner, temp_db, sample_categories):
    """Test that the CLI reports conflicts."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "category", "create", "Shopping"]
    )

    assert result.exit_code == 1
    assert "Error: Category 'Shopping' already exists" in result.output


def test_category_rename(cli_runner, temp_db, sample_categories):
    """Test renaming from the CLI."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "category", "rename", "Shopping", "Stuff"]
    )

    assert result.exit_code == 0
    assert "Renamed 'Shopping' to 'Stuff' (0 transactions updated)" in result.output
    assert "Stuff" in AppState.load(temp_db).categories


def test_category_delete_cancelled(cli_runner, temp_db, sample_categories):
    """Test that delete asks for confirmation."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "category", "delete", "Shopping"], input="n\n"
    )

    assert "Cancelled." in result.output
    assert "Shopping" in AppState.load(temp_db).categories


def test_category_learn_and_mappings(cli_runner, temp_db, merged_sample, sample_categories):
    """Test learning a description and applying it."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path",
            temp_db.database_path,
            "category",
            "learn",
            "Coffee Shop",
            "Food & Dining:Restaurants",
            "--apply",
        ],
    )

    assert result.exit_code == 0
    assert "Remembered 'coffee shop' -> Food & Dining:Restaurants" in result.output
    assert "Categorized 1 transactions" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "mappings"])
    assert "coffee shop -> Food & Dining:Restaurants" in result.output
