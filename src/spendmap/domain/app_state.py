"""Application state shared by the domain services."""

import uuid
from typing import Any, Callable, Iterable, Optional, TypeVar

from spendmap.database.base import Database
from spendmap.database.mappers import (
    category_to_json,
    dict_to_merged_file,
    dict_to_transaction,
    json_to_category,
    merged_file_to_dict,
    transaction_to_dict,
)
from spendmap.domain.constants import (
    CATEGORIES_KEY,
    CATEGORY_MAPPINGS_KEY,
    MERGED_FILES_KEY,
    TRANSACTIONS_KEY,
)
from spendmap.domain.entities import Category, MergedFileEntry, Transaction
from spendmap.logging_setup import get_logger

logger = get_logger("spendmap.domain.app_state")

T = TypeVar("T")


def new_transaction_id(used_ids: set[str]) -> str:
    """Generate a transaction ID that is not in ``used_ids``.

    The new ID is added to ``used_ids``.
    """
    while True:
        candidate = f"tx_{uuid.uuid4().hex[:12]}"
        if candidate not in used_ids:
            used_ids.add(candidate)
            return candidate


def ensure_transaction_ids(transactions: Iterable[Transaction]) -> int:
    """Give every transaction without a unique ID a fresh one.

    Returns:
        Number of transactions that received a new ID
    """
    used: set[str] = set()
    fixed = 0
    for transaction in transactions:
        if not transaction.id or transaction.id in used:
            transaction.id = new_transaction_id(used)
            fixed += 1
        else:
            used.add(transaction.id)
    return fixed


class AppState:
    """The single in-memory ledger, file list and category data.

    Services receive the state explicitly and mutate it only through
    ``commit``, which writes the new values to the store first and swaps
    them into memory afterwards. The store is a mirror of this object, never
    a second source of truth.
    """

    def __init__(self, db: Database):
        """Initialize empty state.

        Args:
            db: Database instance used as the backing store
        """
        self.db = db
        self.merged_files: list[MergedFileEntry] = []
        self.transactions: list[Transaction] = []
        self.categories: dict[str, Category] = {}
        self.category_mappings: dict[str, str] = {}

    @classmethod
    def load(cls, db: Database) -> "AppState":
        """Create state populated from the store."""
        state = cls(db)
        state.reload()
        return state

    def reload(self) -> None:
        """Replace in-memory state with what is in the store.

        Corrupt documents degrade to empty values; invalid entries inside a
        document are dropped with a warning.
        """
        self.merged_files = self._load_list(MERGED_FILES_KEY, dict_to_merged_file)
        self.transactions = self._load_list(TRANSACTIONS_KEY, dict_to_transaction)
        if ensure_transaction_ids(self.transactions):
            logger.info("Assigned IDs to stored transactions that had none")
        self.categories = self._load_categories()
        self.category_mappings = self._load_category_mappings()

    def _load_list(self, key: str, converter: Callable[[dict[str, Any]], T]) -> list[T]:
        raw = self.db.read_json(key, [])
        if not isinstance(raw, list):
            logger.warning("Stored '%s' is not a list, treating as empty", key)
            return []
        items = []
        for index, item in enumerate(raw):
            try:
                items.append(converter(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Dropping invalid entry %d of '%s': %s", index, key, e)
        return items

    def _load_categories(self) -> dict[str, Category]:
        raw = self.db.read_json(CATEGORIES_KEY, {})
        if not isinstance(raw, dict):
            logger.warning("Stored categories are not a mapping, treating as empty")
            return {}
        categories = {}
        for name, value in raw.items():
            try:
                categories[name] = json_to_category(value)
            except (TypeError, ValueError) as e:
                logger.warning("Dropping invalid category '%s': %s", name, e)
        return categories

    def _load_category_mappings(self) -> dict[str, str]:
        raw = self.db.read_json(CATEGORY_MAPPINGS_KEY, {})
        if not isinstance(raw, dict):
            logger.warning("Stored category mappings are not a mapping, treating as empty")
            return {}
        return {str(k): str(v) for k, v in raw.items() if isinstance(v, str)}

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Find a ledger transaction by ID."""
        for transaction in self.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def find_merged_file(self, file_name: str) -> Optional[MergedFileEntry]:
        """Find a merged file by name."""
        for entry in self.merged_files:
            if entry.file_name == file_name:
                return entry
        return None

    def commit(
        self,
        merged_files: Optional[list[MergedFileEntry]] = None,
        transactions: Optional[list[Transaction]] = None,
        categories: Optional[dict[str, Category]] = None,
        category_mappings: Optional[dict[str, str]] = None,
    ) -> None:
        """Persist new values and then make them current.

        Only the arguments that are given are written. All of them go to the
        store in a single write; if it fails, in-memory state is unchanged.

        Raises:
            PersistenceError: If the store write fails
        """
        documents: dict[str, Any] = {}
        if merged_files is not None:
            documents[MERGED_FILES_KEY] = [merged_file_to_dict(e) for e in merged_files]
        if transactions is not None:
            documents[TRANSACTIONS_KEY] = [transaction_to_dict(t) for t in transactions]
        if categories is not None:
            documents[CATEGORIES_KEY] = {
                name: category_to_json(category) for name, category in categories.items()
            }
        if category_mappings is not None:
            documents[CATEGORY_MAPPINGS_KEY] = dict(category_mappings)
        if not documents:
            return

        self.db.write_json_many(documents)

        if merged_files is not None:
            self.merged_files = list(merged_files)
        if transactions is not None:
            self.transactions = list(transactions)
        if categories is not None:
            self.categories = dict(categories)
        if category_mappings is not None:
            self.category_mappings = dict(category_mappings)
