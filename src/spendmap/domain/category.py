"""Category domain service."""

import re
from dataclasses import replace
from typing import Iterable, Optional, Union

from spendmap.domain.app_state import AppState
from spendmap.domain.constants import CATEGORY_PALETTE, DEFAULT_CATEGORIES
from spendmap.domain.entities import (
    Category,
    CategoryRef,
    CategoryWithSubcategories,
    SimpleCategory,
    Transaction,
)
from spendmap.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    subcategory_not_found,
)
from spendmap.logging_setup import get_logger

logger = get_logger("spendmap.domain.category")


def normalize_description(description: str) -> str:
    """Normalize a description for exact lookup in the description map."""
    return description.strip().lower()


def looks_like_pattern(key: str) -> bool:
    """Check whether a description map key is meant as a regular expression."""
    return (
        key.startswith("^")
        or key.endswith("$")
        or any(marker in key for marker in ("*", "(", "["))
    )


def subcategory_names(category: Category) -> list[str]:
    """Names of a category's subcategories (none for a simple category)."""
    if isinstance(category, CategoryWithSubcategories):
        return list(category.subcategories)
    return []


class CategoryService:
    """Service for managing categories and the description map.

    Categories are either simple (a color) or carry subcategories. Adding a
    subcategory to a simple category turns it into the richer form and
    removing the last subcategory turns it back.
    """

    def __init__(self, state: AppState):
        """Initialize category service.

        Args:
            state: Application state
        """
        self.state = state

    @staticmethod
    def _validate_name(name: str, what: str = "Category") -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError(f"{what} name cannot be empty")
        if ":" in name:
            raise ValidationError(f"{what} name cannot contain ':'")
        return name

    def _require(self, name: str) -> Category:
        category = self.state.categories.get(name)
        if category is None:
            raise NotFoundError(category_not_found(name))
        return category

    def list_categories(self) -> list[tuple[str, Category]]:
        """List categories in display order.

        Categories with an explicit order come first, the rest follow in the
        order they were created.

        Returns:
            List of (name, category) pairs
        """
        items = list(self.state.categories.items())
        positions = {name: i for i, (name, _) in enumerate(items)}

        def sort_key(item: tuple[str, Category]):
            name, category = item
            order = category.order if isinstance(category, CategoryWithSubcategories) else None
            return (order is None, order or 0, positions[name])

        return sorted(items, key=sort_key)

    def get_category(self, name: str) -> Optional[Category]:
        """Get category by name.

        Returns:
            Category or None if not found
        """
        return self.state.categories.get(name)

    def create_category(self, name: str, color: Optional[str] = None) -> Category:
        """Create a category without subcategories.

        Args:
            name: Category name
            color: Display color, picked from the palette when omitted

        Returns:
            The new category

        Raises:
            ValidationError: If the name is empty or contains ':'
            ConflictError: If the category already exists
        """
        name = self._validate_name(name)
        if name in self.state.categories:
            raise ConflictError(f"Category '{name}' already exists")
        if color is None:
            color = CATEGORY_PALETTE[len(self.state.categories) % len(CATEGORY_PALETTE)]

        category = SimpleCategory(color=color)
        categories = dict(self.state.categories)
        categories[name] = category
        self.state.commit(categories=categories)
        logger.info("Created category '%s'", name)
        return category

    def add_subcategory(
        self, category_name: str, name: str, color: Optional[str] = None
    ) -> CategoryWithSubcategories:
        """Add a subcategory, converting a simple category when needed.

        Args:
            category_name: Parent category name
            name: Subcategory name
            color: Display color, defaults to the parent's color

        Returns:
            The updated parent category

        Raises:
            NotFoundError: If the parent doesn't exist
            ConflictError: If the subcategory already exists
        """
        parent = self._require(category_name)
        name = self._validate_name(name, "Subcategory")
        if name in subcategory_names(parent):
            raise ConflictError(
                f"Subcategory '{name}' already exists in category '{category_name}'"
            )

        if isinstance(parent, SimpleCategory):
            subcategories = {}
            order = None
        else:
            subcategories = dict(parent.subcategories)
            order = parent.order
        subcategories[name] = color or parent.color
        updated = CategoryWithSubcategories(color=parent.color, order=order, subcategories=subcategories)

        categories = dict(self.state.categories)
        categories[category_name] = updated
        self.state.commit(categories=categories)
        logger.info("Added subcategory '%s' to '%s'", name, category_name)
        return updated

    def rename_category(self, old_name: str, new_name: str) -> int:
        """Rename a category everywhere it is used.

        Transactions and description map entries (including
        ``"Old:Sub"`` entries) move to the new name. Snapshots taken by the
        edit tracker keep the name that was current when they were taken.

        Returns:
            Number of transactions moved

        Raises:
            NotFoundError: If the category doesn't exist
            ConflictError: If the new name is taken
        """
        self._require(old_name)
        new_name = self._validate_name(new_name)
        if new_name == old_name:
            return 0
        if new_name in self.state.categories:
            raise ConflictError(f"Category '{new_name}' already exists")

        categories = {
            (new_name if name == old_name else name): value
            for name, value in self.state.categories.items()
        }

        moved = 0
        transactions = []
        for transaction in self.state.transactions:
            if transaction.category == old_name:
                transaction = replace(transaction, category=new_name)
                moved += 1
            transactions.append(transaction)

        mappings = {}
        for key, value in self.state.category_mappings.items():
            ref = CategoryRef.parse(value)
            if ref.category == old_name:
                value = str(CategoryRef(new_name, ref.subcategory))
            mappings[key] = value

        self.state.commit(categories=categories, transactions=transactions, category_mappings=mappings)
        logger.info("Renamed category '%s' to '%s' (%d transactions)", old_name, new_name, moved)
        return moved

    def rename_subcategory(self, category_name: str, old_name: str, new_name: str) -> int:
        """Rename a subcategory everywhere it is used.

        Returns:
            Number of transactions moved

        Raises:
            NotFoundError: If the category or subcategory doesn't exist
            ConflictError: If the new name is taken
        """
        parent = self._require(category_name)
        if old_name not in subcategory_names(parent):
            raise NotFoundError(subcategory_not_found(category_name, old_name))
        new_name = self._validate_name(new_name, "Subcategory")
        if new_name == old_name:
            return 0
        if new_name in subcategory_names(parent):
            raise ConflictError(
                f"Subcategory '{new_name}' already exists in category '{category_name}'"
            )

        subcategories = {
            (new_name if name == old_name else name): color
            for name, color in parent.subcategories.items()
        }
        categories = dict(self.state.categories)
        categories[category_name] = replace(parent, subcategories=subcategories)

        moved = 0
        transactions = []
        for transaction in self.state.transactions:
            if transaction.category == category_name and transaction.subcategory == old_name:
                transaction = replace(transaction, subcategory=new_name)
                moved += 1
            transactions.append(transaction)

        old_value = str(CategoryRef(category_name, old_name))
        new_value = str(CategoryRef(category_name, new_name))
        mappings = {
            key: (new_value if value == old_value else value)
            for key, value in self.state.category_mappings.items()
        }

        self.state.commit(categories=categories, transactions=transactions, category_mappings=mappings)
        logger.info(
            "Renamed subcategory '%s' to '%s' in '%s'", old_name, new_name, category_name
        )
        return moved

    def delete_category(self, name: str) -> int:
        """Delete a category.

        Transactions in the category become uncategorized and description map
        entries pointing at it are removed.

        Returns:
            Number of transactions uncategorized

        Raises:
            NotFoundError: If the category doesn't exist
        """
        self._require(name)
        categories = {k: v for k, v in self.state.categories.items() if k != name}

        cleared = 0
        transactions = []
        for transaction in self.state.transactions:
            if transaction.category == name:
                transaction = replace(transaction, category="", subcategory="")
                cleared += 1
            transactions.append(transaction)

        mappings = {
            key: value
            for key, value in self.state.category_mappings.items()
            if CategoryRef.parse(value).category != name
        }

        self.state.commit(categories=categories, transactions=transactions, category_mappings=mappings)
        logger.info("Deleted category '%s' (%d transactions uncategorized)", name, cleared)
        return cleared

    def delete_subcategory(self, category_name: str, name: str) -> int:
        """Delete a subcategory.

        Transactions and description map entries fall back to the parent
        category. A category left without subcategories becomes simple.

        Returns:
            Number of transactions moved to the parent

        Raises:
            NotFoundError: If the category or subcategory doesn't exist
        """
        parent = self._require(category_name)
        if name not in subcategory_names(parent):
            raise NotFoundError(subcategory_not_found(category_name, name))

        subcategories = {k: v for k, v in parent.subcategories.items() if k != name}
        categories = dict(self.state.categories)
        if subcategories:
            categories[category_name] = replace(parent, subcategories=subcategories)
        else:
            categories[category_name] = SimpleCategory(color=parent.color)

        moved = 0
        transactions = []
        for transaction in self.state.transactions:
            if transaction.category == category_name and transaction.subcategory == name:
                transaction = replace(transaction, subcategory="")
                moved += 1
            transactions.append(transaction)

        removed_value = str(CategoryRef(category_name, name))
        mappings = {
            key: (category_name if value == removed_value else value)
            for key, value in self.state.category_mappings.items()
        }

        self.state.commit(categories=categories, transactions=transactions, category_mappings=mappings)
        logger.info("Deleted subcategory '%s' from '%s'", name, category_name)
        return moved

    def ensure_defaults(self, merge: bool = False) -> int:
        """Install the default categories.

        Args:
            merge: Also add missing defaults when categories already exist.
                Existing categories are never overwritten.

        Returns:
            Number of categories installed
        """
        if self.state.categories and not merge:
            return 0
        missing = {
            name: category
            for name, category in DEFAULT_CATEGORIES.items()
            if name not in self.state.categories
        }
        if not missing:
            return 0
        categories = dict(self.state.categories)
        categories.update(missing)
        self.state.commit(categories=categories)
        logger.info("Installed %d default categories", len(missing))
        return len(missing)

    def validate_ref(self, ref: CategoryRef) -> None:
        """Check that a category reference names existing categories.

        Raises:
            NotFoundError: If the category or subcategory doesn't exist
        """
        category = self._require(ref.category)
        if ref.subcategory and ref.subcategory not in subcategory_names(category):
            raise NotFoundError(subcategory_not_found(ref.category, ref.subcategory))

    # Description map

    def learn_mapping(
        self,
        description: str,
        ref: Union[CategoryRef, str],
        is_regex: bool = False,
    ) -> str:
        """Remember the category for a description.

        Args:
            description: Transaction description, or a pattern when ``is_regex``
            ref: Category reference or ``"Category:Subcategory"`` string
            is_regex: Store the description verbatim as a pattern

        Returns:
            The key stored in the map

        Raises:
            ValidationError: If the description is empty or the pattern invalid
            NotFoundError: If the category doesn't exist
        """
        if isinstance(ref, str):
            ref = CategoryRef.parse(ref)
        self.validate_ref(ref)

        if is_regex:
            key = description.strip()
            try:
                re.compile(key)
            except re.error as e:
                raise ValidationError(f"Invalid pattern '{key}': {e}")
        else:
            key = normalize_description(description)
        if not key:
            raise ValidationError("Description cannot be empty")

        mappings = dict(self.state.category_mappings)
        mappings[key] = str(ref)
        self.state.commit(category_mappings=mappings)
        logger.info("Learned '%s' -> %s", key, ref)
        return key

    def get_category_for_description(self, description: str) -> Optional[CategoryRef]:
        """Look up the remembered category for a description.

        Exact matches of the normalized description win; otherwise keys that
        look like patterns are tried case-insensitively in insertion order.

        Returns:
            Category reference or None if nothing matches
        """
        if not description:
            return None
        mappings = self.state.category_mappings
        normalized = normalize_description(description)
        if normalized in mappings:
            return CategoryRef.parse(mappings[normalized])

        for key, value in mappings.items():
            if not looks_like_pattern(key):
                continue
            try:
                pattern = re.compile(key, re.IGNORECASE)
            except re.error as e:
                logger.warning("Skipping invalid pattern '%s': %s", key, e)
                continue
            if pattern.search(normalized) or pattern.search(description):
                return CategoryRef.parse(value)
        return None

    def categorize(self, transactions: Iterable[Transaction]) -> int:
        """Apply the description map to uncategorized transactions in place.

        Used on transactions not yet committed to the ledger.

        Returns:
            Number of transactions categorized
        """
        count = 0
        for transaction in transactions:
            if transaction.category:
                continue
            ref = self.get_category_for_description(transaction.description)
            if ref is not None:
                transaction.category = ref.category
                transaction.subcategory = ref.subcategory
                count += 1
        return count

    def apply_category_mappings(self, transactions: Optional[list[Transaction]] = None) -> int:
        """Categorize uncategorized transactions from the description map.

        Args:
            transactions: Transactions to update in place without saving.
                Defaults to the ledger, which is then saved.

        Returns:
            Number of transactions categorized
        """
        if transactions is not None:
            return self.categorize(transactions)
        transactions = [replace(t) for t in self.state.transactions]
        count = self.categorize(transactions)
        if count:
            self.state.commit(transactions=transactions)
            logger.info("Auto-categorized %d transactions", count)
        return count

    def list_mappings(self) -> list[tuple[str, CategoryRef]]:
        """List description map entries in insertion order."""
        return [(key, CategoryRef.parse(value)) for key, value in self.state.category_mappings.items()]

    def forget_mapping(self, key: str) -> None:
        """Remove a description map entry.

        Raises:
            NotFoundError: If there is no such entry
        """
        mappings = dict(self.state.category_mappings)
        if key not in mappings:
            normalized = normalize_description(key)
            if normalized not in mappings:
                raise NotFoundError(f"No category mapping for '{key}'")
            key = normalized
        del mappings[key]
        self.state.commit(category_mappings=mappings)

    def clear_mappings(self) -> int:
        """Remove all description map entries.

        Returns:
            Number of entries removed
        """
        count = len(self.state.category_mappings)
        self.state.commit(category_mappings={})
        return count
