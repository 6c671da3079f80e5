"""Merging of mapped statement files into the ledger."""

from dataclasses import dataclass, replace
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional, Sequence

from spendmap.domain.app_state import AppState, new_transaction_id
from spendmap.domain.category import CategoryService
from spendmap.domain.entities import (
    FieldTag,
    MergedFileEntry,
    RawTable,
    Transaction,
)
from spendmap.domain.errors import (
    DuplicateDetectedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    duplicate_file,
    incomplete_mapping,
    merged_file_not_found,
)
from spendmap.domain.header_mapping import validate_mapping
from spendmap.domain.mapping_store import MappingStoreService
from spendmap.logging_setup import get_logger
from spendmap.utils.amount_parser import parse_amount
from spendmap.utils.date_parser import parse_date

logger = get_logger("spendmap.domain.merge")


@dataclass(frozen=True)
class DuplicateFindings:
    """Merged files that an import may duplicate."""

    by_name: Optional[MergedFileEntry] = None
    by_signature: Optional[MergedFileEntry] = None

    @property
    def found(self) -> bool:
        return self.by_name is not None or self.by_signature is not None


@dataclass
class _Expansion:
    transactions: list[Transaction]
    skipped: int
    errors: list[str]


def _cell(row: Sequence[Any], column: int) -> Any:
    if column >= len(row):
        return None
    value = row[column]
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class MergeService:
    """Service for merging statement files into the ledger.

    Each merged file keeps its raw rows and mapping so that its transactions
    can be rebuilt when it is imported again under the same name.
    """

    def __init__(
        self,
        state: AppState,
        mapping_store: Optional[MappingStoreService] = None,
        category_service: Optional[CategoryService] = None,
    ):
        """Initialize merge service.

        Args:
            state: Application state
            mapping_store: Used to record which files used a format
            category_service: Used to auto-categorize new transactions
        """
        self.state = state
        self.mapping_store = mapping_store
        self.category_service = category_service

    def find_duplicates(self, file_name: str, signature: str) -> DuplicateFindings:
        """Find merged files that an import of ``file_name`` may duplicate.

        Args:
            file_name: Name of the file being imported
            signature: Full signature of the file being imported

        Returns:
            The entry with the same name and the first other entry with the
            same signature, either of which may be None
        """
        by_name = self.state.find_merged_file(file_name)
        by_signature = None
        if signature:
            for entry in self.state.merged_files:
                if entry.file_name != file_name and entry.signature == signature:
                    by_signature = entry
                    break
        return DuplicateFindings(by_name=by_name, by_signature=by_signature)

    def expand_rows(
        self,
        raw_table: RawTable,
        mapping: Sequence[FieldTag],
        file_name: str,
        data_row_index: int,
        currency: str,
        used_ids: set[str],
    ) -> _Expansion:
        """Build transactions from the data rows of a table.

        Rows with no date, description or amount are skipped. Rows whose
        date or amount cannot be parsed are reported in ``errors``.
        """
        columns: dict[FieldTag, list[int]] = {tag: [] for tag in FieldTag}
        for column, tag in enumerate(mapping):
            columns[tag].append(column)

        transactions = []
        skipped = 0
        errors = []

        for row_index in range(max(data_row_index, 0), len(raw_table)):
            row = raw_table[row_index] or ()
            row_num = row_index + 1

            date_value = next(
                (v for v in (_cell(row, c) for c in columns[FieldTag.DATE]) if v is not None), None
            )
            descriptions = [
                str(v) for v in (_cell(row, c) for c in columns[FieldTag.DESCRIPTION]) if v is not None
            ]
            income_value = next(
                (v for v in (_cell(row, c) for c in columns[FieldTag.INCOME]) if v is not None), None
            )
            expenses_value = next(
                (v for v in (_cell(row, c) for c in columns[FieldTag.EXPENSES]) if v is not None), None
            )

            if date_value is None and not descriptions and income_value is None and expenses_value is None:
                skipped += 1
                continue

            txn_date = None
            if date_value is not None:
                try:
                    txn_date = parse_date(date_value)
                except ValueError as e:
                    errors.append(f"Row {row_num}: {e}")
                    continue

            income = Decimal("0")
            expenses = Decimal("0")
            try:
                if income_value is not None:
                    amount = parse_amount(income_value)
                    if amount < 0:
                        expenses += -amount
                    else:
                        income += amount
                if expenses_value is not None:
                    expenses += abs(parse_amount(expenses_value))
            except ValueError as e:
                errors.append(f"Row {row_num}: {e}")
                continue

            transactions.append(
                Transaction(
                    id=new_transaction_id(used_ids),
                    date=txn_date,
                    description=" ".join(descriptions),
                    income=income,
                    expenses=expenses,
                    currency=currency,
                    file_name=file_name,
                )
            )

        return _Expansion(transactions=transactions, skipped=skipped, errors=errors)

    def add_merged_file(
        self,
        raw_table: RawTable,
        mapping: Sequence[FieldTag],
        file_name: str,
        signature: str,
        header_row_index: int,
        data_row_index: int,
        currency: str,
        confirmed: bool = False,
    ) -> dict[str, Any]:
        """Merge a mapped file into the ledger.

        A file with the same name replaces the earlier entry and its
        transactions. Nothing is changed unless the whole file could be
        expanded and saved.

        Args:
            raw_table: Decoded rows of the file
            mapping: Column mapping
            file_name: Name of the file
            signature: Full signature of the file
            header_row_index: Row holding the column headers
            data_row_index: First data row
            currency: Currency of the file's amounts
            confirmed: The user accepted the duplicates reported earlier

        Returns:
            Dict with merge statistics:
            - imported: number of transactions added
            - skipped: number of empty rows skipped
            - errors: list of error messages
            - replaced: whether an earlier file with the same name was replaced

        Raises:
            ValidationError: If the mapping has no Date or no money column
            DuplicateDetectedError: If a duplicate exists and ``confirmed`` is False
            PersistenceError: If the store write fails
        """
        mapping = tuple(FieldTag(tag) for tag in mapping)
        is_valid, problems = validate_mapping(mapping)
        if not is_valid:
            raise ValidationError(incomplete_mapping(problems))
        if not file_name:
            raise ValidationError("File name cannot be empty")

        findings = self.find_duplicates(file_name, signature)
        if findings.found and not confirmed:
            raise DuplicateDetectedError(
                duplicate_file(file_name, findings.by_name, findings.by_signature),
                by_name=findings.by_name,
                by_signature=findings.by_signature,
            )

        replaced = findings.by_name is not None
        kept = [t for t in self.state.transactions if t.file_name != file_name]
        used_ids = {t.id for t in kept}
        expansion = self.expand_rows(
            raw_table, mapping, file_name, data_row_index, currency, used_ids
        )
        if self.category_service is not None:
            self.category_service.apply_category_mappings(expansion.transactions)

        entry = MergedFileEntry(
            file_name=file_name,
            raw_table=tuple(tuple(row) for row in raw_table),
            mapping=mapping,
            signature=signature,
            header_row_index=header_row_index,
            data_row_index=data_row_index,
            currency=currency,
            selected=True,
            date_added=datetime.now(UTC),
        )
        if replaced:
            merged_files = [
                entry if e.file_name == file_name else e for e in self.state.merged_files
            ]
        else:
            merged_files = list(self.state.merged_files) + [entry]

        self.state.commit(merged_files=merged_files, transactions=kept + expansion.transactions)

        # The ledger is saved; a failed association only loses the file list entry
        if self.mapping_store is not None and signature:
            try:
                self.mapping_store.associate_file(signature, file_name)
            except PersistenceError as e:
                logger.warning("Could not record '%s' against format %s: %s", file_name, signature, e)

        logger.info(
            "%s '%s': %d transactions, %d rows skipped, %d errors",
            "Replaced" if replaced else "Merged",
            file_name,
            len(expansion.transactions),
            expansion.skipped,
            len(expansion.errors),
        )
        return {
            "imported": len(expansion.transactions),
            "skipped": expansion.skipped,
            "errors": expansion.errors,
            "replaced": replaced,
        }

    def list_merged_files(self) -> list[MergedFileEntry]:
        """List merged files in the order they were added."""
        return list(self.state.merged_files)

    def transaction_count(self, file_name: str) -> int:
        """Count ledger transactions that came from a file."""
        return sum(1 for t in self.state.transactions if t.file_name == file_name)

    def remove_merged_file(self, file_name: str) -> int:
        """Remove a merged file and its transactions.

        Returns:
            Number of transactions removed

        Raises:
            NotFoundError: If the file isn't merged
        """
        return self.remove_merged_files([file_name])

    def remove_merged_files(self, file_names: Sequence[str]) -> int:
        """Remove several merged files and their transactions in one write.

        Returns:
            Number of transactions removed

        Raises:
            NotFoundError: If any of the files isn't merged; nothing is removed
        """
        names = set(file_names)
        for name in file_names:
            if self.state.find_merged_file(name) is None:
                raise NotFoundError(merged_file_not_found(name))

        merged_files = [e for e in self.state.merged_files if e.file_name not in names]
        transactions = [t for t in self.state.transactions if t.file_name not in names]
        removed = len(self.state.transactions) - len(transactions)
        self.state.commit(merged_files=merged_files, transactions=transactions)
        logger.info("Removed %d files and %d transactions", len(names), removed)
        return removed

    def set_selected(self, file_name: str, selected: bool) -> MergedFileEntry:
        """Include or exclude a merged file from views of the ledger.

        Raises:
            NotFoundError: If the file isn't merged
        """
        entry = self.state.find_merged_file(file_name)
        if entry is None:
            raise NotFoundError(merged_file_not_found(file_name))
        updated = replace(entry, selected=selected)
        merged_files = [updated if e.file_name == file_name else e for e in self.state.merged_files]
        self.state.commit(merged_files=merged_files)
        return updated

    def clear_all(self) -> tuple[int, int]:
        """Remove every merged file and the whole ledger.

        Returns:
            Tuple of (files removed, transactions removed)
        """
        counts = (len(self.state.merged_files), len(self.state.transactions))
        self.state.commit(merged_files=[], transactions=[])
        logger.info("Cleared %d files and %d transactions", *counts)
        return counts
