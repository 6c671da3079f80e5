"""File format mapping domain service."""

from dataclasses import replace
from datetime import datetime, UTC
from typing import Optional

from spendmap.database.base import Database
from spendmap.database.mappers import dict_to_mapping_record, mapping_record_to_dict
from spendmap.domain.constants import FORMAT_MAPPINGS_KEY
from spendmap.domain.entities import MappingRecord, RawTable
from spendmap.domain.errors import NotFoundError
from spendmap.domain.signature import generate_signature, same_structure
from spendmap.logging_setup import get_logger

logger = get_logger("spendmap.domain.mapping_store")


class MappingStoreService:
    """Service for saving and recognizing file format mappings.

    Records live in the store under ``fileFormatMappings`` and every change
    is written back immediately. Stored data that cannot be decoded is
    treated as an empty list.
    """

    def __init__(self, db: Database):
        """Initialize mapping store service.

        Args:
            db: Database instance
        """
        self.db = db

    def _load(self) -> list[MappingRecord]:
        raw = self.db.read_json(FORMAT_MAPPINGS_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Stored format mappings are not a list, treating as empty")
            return []
        records = []
        for index, item in enumerate(raw):
            try:
                records.append(dict_to_mapping_record(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Dropping invalid format mapping %d: %s", index, e)
        return records

    def _store(self, records: list[MappingRecord]) -> None:
        self.db.write_json(FORMAT_MAPPINGS_KEY, [mapping_record_to_dict(r) for r in records])

    def save(self, record: MappingRecord) -> MappingRecord:
        """Save a mapping record.

        If a record with the same signature exists, its mapping, row indices,
        currency and last-used time are updated and its file list is merged;
        its creation time and file name are kept. Otherwise the record is
        appended.

        Args:
            record: Record to save

        Returns:
            The record as stored

        Raises:
            PersistenceError: If the store write fails
        """
        records = self._load()
        for index, existing in enumerate(records):
            if existing.signature == record.signature:
                files = existing.files + tuple(f for f in record.files if f not in existing.files)
                stored = replace(
                    existing,
                    mapping=tuple(record.mapping),
                    header_row_index=record.header_row_index,
                    data_row_index=record.data_row_index,
                    currency=record.currency,
                    last_used_at=record.last_used_at,
                    files=files,
                )
                records[index] = stored
                self._store(records)
                logger.info("Updated format mapping %s", record.signature)
                return stored

        records.append(record)
        self._store(records)
        logger.info("Saved new format mapping %s from '%s'", record.signature, record.file_name)
        return record

    def new_record(
        self,
        signature: str,
        mapping,
        file_name: str,
        header_row_index: int,
        data_row_index: int,
        currency: str,
    ) -> MappingRecord:
        """Build a record stamped with the current time, without saving it."""
        now = datetime.now(UTC)
        return MappingRecord(
            signature=signature,
            mapping=tuple(mapping),
            file_name=file_name,
            header_row_index=header_row_index,
            data_row_index=data_row_index,
            currency=currency,
            created_at=now,
            last_used_at=now,
            files=(file_name,) if file_name else (),
        )

    def _touch(self, records: list[MappingRecord], index: int) -> MappingRecord:
        touched = replace(records[index], last_used_at=datetime.now(UTC))
        records[index] = touched
        self._store(records)
        return touched

    def find_by_signature(self, signature: str) -> Optional[MappingRecord]:
        """Find a record by its exact signature.

        A hit refreshes the record's last-used time.

        Args:
            signature: Full signature

        Returns:
            Record or None if not found
        """
        records = self._load()
        for index, record in enumerate(records):
            if record.signature == signature:
                return self._touch(records, index)
        return None

    def find_by_structure(self, signature: str) -> Optional[MappingRecord]:
        """Find the most recently used record for the same file layout.

        Used before a mapping has been chosen, with a structure-only
        signature. A hit refreshes the record's last-used time.

        Args:
            signature: Signature with or without a mapping part

        Returns:
            Record or None if no saved format has this layout
        """
        records = self._load()
        best: Optional[int] = None
        for index, record in enumerate(records):
            if not same_structure(record.signature, signature):
                continue
            if best is None or record.last_used_at >= records[best].last_used_at:
                best = index
        if best is None:
            return None
        return self._touch(records, best)

    def find_by_table(self, file_name: str, raw_table: RawTable) -> Optional[MappingRecord]:
        """Find the most recently used record whose layout matches a table.

        Each record is compared at its own header row, so formats saved with
        a preamble above the header are recognized without being told where
        the header is. A hit refreshes the record's last-used time.
        """
        records = self._load()
        best: Optional[int] = None
        for index, record in enumerate(records):
            if not 0 <= record.header_row_index < len(raw_table):
                continue
            structure = generate_signature(
                file_name, raw_table, header_row_index=record.header_row_index
            )
            if not same_structure(record.signature, structure):
                continue
            if best is None or record.last_used_at >= records[best].last_used_at:
                best = index
        if best is None:
            return None
        return self._touch(records, best)

    def associate_file(self, signature: str, file_name: str) -> Optional[MappingRecord]:
        """Record that a merged file used a format.

        Returns:
            Updated record, or None if no record has this signature
        """
        records = self._load()
        for index, record in enumerate(records):
            if record.signature == signature:
                if file_name in record.files:
                    return record
                updated = replace(record, files=record.files + (file_name,))
                records[index] = updated
                self._store(records)
                return updated
        return None

    def list_all(self) -> list[MappingRecord]:
        """List all saved records in insertion order."""
        return self._load()

    def delete_at(self, index: int) -> MappingRecord:
        """Delete the record at a position of ``list_all``.

        Returns:
            The removed record, so callers can act on its files

        Raises:
            NotFoundError: If the index is out of range
        """
        records = self._load()
        if index < 0 or index >= len(records):
            raise NotFoundError(f"No format mapping at index {index}")
        removed = records.pop(index)
        self._store(records)
        logger.info("Deleted format mapping %s", removed.signature)
        return removed

    def delete_by_signature(self, signature: str) -> bool:
        """Delete the record with a signature.

        Returns:
            True if a record was deleted
        """
        records = self._load()
        remaining = [r for r in records if r.signature != signature]
        if len(remaining) == len(records):
            return False
        self._store(remaining)
        logger.info("Deleted format mapping %s", signature)
        return True

    def clear(self) -> int:
        """Delete all records.

        Returns:
            Number of records deleted
        """
        count = len(self._load())
        self._store([])
        logger.info("Cleared %d format mappings", count)
        return count
