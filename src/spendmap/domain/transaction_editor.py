"""Transaction editing with revert to original values."""

import copy
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from spendmap.domain.app_state import AppState
from spendmap.domain.category import normalize_description, subcategory_names
from spendmap.domain.entities import (
    DATA_FIELDS,
    EDITABLE_FIELDS,
    CategoryRef,
    Transaction,
)
from spendmap.domain.errors import (
    NotFoundError,
    RevertPreconditionError,
    ValidationError,
    category_not_found,
    nothing_to_revert,
    subcategory_not_found,
    transaction_not_found,
)
from spendmap.logging_setup import get_logger
from spendmap.utils.amount_parser import parse_amount
from spendmap.utils.date_parser import parse_date

logger = get_logger("spendmap.domain.transaction_editor")


class TransactionEditService:
    """Service for editing ledger transactions.

    The first edit of a data field (date, description, income, expenses)
    saves all four of them in ``original_data``; the first category change
    saves category and subcategory in ``original_category`` and
    ``original_subcategory``. The two snapshots are independent and each can
    be reverted on its own. Edits are made on a copy of the transaction and
    only replace the ledger entry once saved.
    """

    def __init__(self, state: AppState):
        """Initialize transaction edit service.

        Args:
            state: Application state
        """
        self.state = state

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID.

        Returns:
            Transaction or None if not found
        """
        return self.state.find_transaction(transaction_id)

    def get_transaction_by_index(self, index: int) -> Transaction:
        """Get the transaction at a ledger position.

        Positions change whenever files are merged or removed; prefer IDs.

        Raises:
            NotFoundError: If the index is out of range
        """
        if index < 0 or index >= len(self.state.transactions):
            raise NotFoundError(f"No transaction at index {index}")
        return self.state.transactions[index]

    def list_transactions(
        self,
        file_name: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        edited_only: bool = False,
        include_unselected: bool = False,
    ) -> list[Transaction]:
        """List transactions with filters.

        Args:
            file_name: Optional merged file filter
            category: Optional category filter (empty string for uncategorized)
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            edited_only: Only transactions with a data or category snapshot
            include_unselected: Include transactions of deselected files

        Returns:
            List of transactions in ledger order
        """
        hidden = set()
        if not include_unselected:
            hidden = {e.file_name for e in self.state.merged_files if not e.selected}

        result = []
        for transaction in self.state.transactions:
            if transaction.file_name in hidden:
                continue
            if file_name is not None and transaction.file_name != file_name:
                continue
            if category is not None and transaction.category != category:
                continue
            if start_date is not None and (transaction.date is None or transaction.date < start_date):
                continue
            if end_date is not None and (transaction.date is None or transaction.date > end_date):
                continue
            if edited_only and not (
                transaction.original_data is not None or transaction.original_category is not None
            ):
                continue
            result.append(transaction)
        return result

    def _working_copy(self, transaction_id: str) -> Transaction:
        transaction = self.state.find_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return copy.deepcopy(transaction)

    def _save(self, updated: Transaction, category_mappings: Optional[dict[str, str]] = None) -> None:
        transactions = [updated if t.id == updated.id else t for t in self.state.transactions]
        self.state.commit(transactions=transactions, category_mappings=category_mappings)

    @staticmethod
    def _parse_value(field: str, value: Any) -> Any:
        if field == "date":
            if value is None or (isinstance(value, str) and not value.strip()):
                return None
            return parse_date(value)
        if field == "description":
            return "" if value is None else str(value).strip()
        if field in ("income", "expenses"):
            if value is None or (isinstance(value, str) and not value.strip()):
                return Decimal("0")
            amount = parse_amount(value)
            if amount < 0:
                raise ValidationError(f"{field.capitalize()} cannot be negative")
            return amount
        if field == "currency":
            code = "" if value is None else str(value).strip().upper()
            if not code:
                raise ValidationError("Currency cannot be empty")
            return code
        raise ValidationError(f"Unknown field '{field}'")

    def edit_field(self, transaction_id: str, field: str, value: Any) -> Transaction:
        """Change one field of a transaction.

        Args:
            transaction_id: Transaction ID
            field: One of date, description, income, expenses, currency,
                category
            value: New value; strings are parsed for dates and amounts

        Returns:
            The updated transaction

        Raises:
            ValidationError: If the field is unknown or the value invalid
            NotFoundError: If the transaction doesn't exist
        """
        if field == "category":
            return self.set_category(transaction_id, value)
        return self.edit_fields(transaction_id, {field: value})

    def edit_fields(self, transaction_id: str, changes: dict[str, Any]) -> Transaction:
        """Change several data fields of a transaction in one save.

        Either every change is applied or none is.

        Raises:
            ValidationError: If a field is unknown or a value invalid
            NotFoundError: If the transaction doesn't exist
        """
        if not changes:
            raise ValidationError("Nothing to update")
        for field in changes:
            if field not in EDITABLE_FIELDS or field == "category":
                raise ValidationError(
                    f"Unknown field '{field}'. Editable fields: {', '.join(EDITABLE_FIELDS)}"
                )

        transaction = self._working_copy(transaction_id)
        for field, value in changes.items():
            try:
                parsed = self._parse_value(field, value)
            except ValidationError:
                raise
            except ValueError as e:
                raise ValidationError(f"Invalid {field}: {e}")

            if field in DATA_FIELDS:
                if transaction.original_data is None:
                    transaction.original_data = transaction.snapshot()
                transaction.edited = True
            setattr(transaction, field, parsed)
            transaction.edited_fields.add(field)

        self._save(transaction)
        logger.info("Edited %s of transaction %s", ", ".join(changes), transaction_id)
        return transaction

    def _resolve_category(self, value: Union[CategoryRef, str, None]) -> CategoryRef:
        if value is None:
            return CategoryRef("")
        ref = value if isinstance(value, CategoryRef) else CategoryRef.parse(str(value))
        if not ref.category:
            return CategoryRef("")
        category = self.state.categories.get(ref.category)
        if category is None:
            raise NotFoundError(category_not_found(ref.category))
        if ref.subcategory and ref.subcategory not in subcategory_names(category):
            raise NotFoundError(subcategory_not_found(ref.category, ref.subcategory))
        return ref

    def set_category(
        self,
        transaction_id: str,
        value: Union[CategoryRef, str, None],
        remember: bool = False,
    ) -> Transaction:
        """Categorize a transaction.

        Args:
            transaction_id: Transaction ID
            value: ``"Category"``, ``"Category:Subcategory"``, a reference,
                or empty to uncategorize
            remember: Also map the transaction's description to the category

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction or category doesn't exist
        """
        transaction = self._working_copy(transaction_id)
        ref = self._resolve_category(value)

        if transaction.original_category is None:
            transaction.original_category = transaction.category
            transaction.original_subcategory = transaction.subcategory
        transaction.category = ref.category
        transaction.subcategory = ref.subcategory
        transaction.edited_fields.add("category")

        mappings = None
        if remember and ref.category and transaction.description.strip():
            mappings = dict(self.state.category_mappings)
            mappings[normalize_description(transaction.description)] = str(ref)

        self._save(transaction, category_mappings=mappings)
        logger.info("Set category of transaction %s to '%s'", transaction_id, ref)
        return transaction

    @staticmethod
    def _restore_data(transaction: Transaction) -> None:
        original = transaction.original_data
        transaction.date = original.date
        transaction.description = original.description
        transaction.income = original.income
        transaction.expenses = original.expenses
        transaction.original_data = None
        transaction.edited = False
        transaction.edited_fields.difference_update(DATA_FIELDS)

    @staticmethod
    def _restore_category(transaction: Transaction) -> None:
        transaction.category = transaction.original_category or ""
        transaction.subcategory = transaction.original_subcategory or ""
        transaction.original_category = None
        transaction.original_subcategory = None
        transaction.edited_fields.discard("category")

    def revert_data(self, transaction_id: str) -> Transaction:
        """Restore date, description, income and expenses to their original values.

        Raises:
            NotFoundError: If the transaction doesn't exist
            RevertPreconditionError: If the data fields were never edited
        """
        transaction = self._working_copy(transaction_id)
        if transaction.original_data is None:
            raise RevertPreconditionError(nothing_to_revert(transaction_id, "data changes"))
        self._restore_data(transaction)
        self._save(transaction)
        logger.info("Reverted data of transaction %s", transaction_id)
        return transaction

    def revert_category(self, transaction_id: str) -> Transaction:
        """Restore the category and subcategory to their original values.

        Raises:
            NotFoundError: If the transaction doesn't exist
            RevertPreconditionError: If the category was never changed
        """
        transaction = self._working_copy(transaction_id)
        if transaction.original_category is None:
            raise RevertPreconditionError(nothing_to_revert(transaction_id, "category change"))
        self._restore_category(transaction)
        self._save(transaction)
        logger.info("Reverted category of transaction %s", transaction_id)
        return transaction

    def revert(self, transaction_id: str) -> list[str]:
        """Revert every edited part of a transaction.

        Returns:
            The parts reverted ("data", "category")

        Raises:
            NotFoundError: If the transaction doesn't exist
            RevertPreconditionError: If nothing was edited
        """
        transaction = self._working_copy(transaction_id)
        reverted = []
        if transaction.original_data is not None:
            self._restore_data(transaction)
            reverted.append("data")
        if transaction.original_category is not None:
            self._restore_category(transaction)
            reverted.append("category")
        if not reverted:
            raise RevertPreconditionError(nothing_to_revert(transaction_id))
        self._save(transaction)
        return reverted
