"""Mapper functions to convert between domain entities and stored JSON shapes.

The stored shapes are a stable contract with other consumers of the store
(export, older versions), so keys stay camelCase and values stay plain
JSON: ISO strings for dates and timestamps, decimal strings for amounts.
"""

from datetime import datetime, date, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from spendmap.domain.entities import (
    Category,
    CategoryWithSubcategories,
    DataSnapshot,
    FieldTag,
    FormatMapping,
    MappingRecord,
    MergedFileEntry,
    SimpleCategory,
    Transaction,
)


def _datetime_to_str(value: datetime) -> str:
    return value.isoformat()


def _str_to_datetime(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(UTC)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _date_to_str(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _str_to_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _str_to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid stored amount '{value}'") from e


def mapping_to_list(mapping: FormatMapping) -> list[str]:
    """Convert a FormatMapping to its stored list of tag names."""
    return [tag.value for tag in mapping]


def list_to_mapping(values: list[str]) -> FormatMapping:
    """Convert a stored list of tag names to a FormatMapping.

    Unknown tags (including the legacy placeholder) become Unmapped.
    """
    known = {tag.value: tag for tag in FieldTag}
    return tuple(known.get(value, FieldTag.UNMAPPED) for value in values)


def _cell_to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def mapping_record_to_dict(record: MappingRecord) -> dict[str, Any]:
    """Convert a MappingRecord to its stored shape."""
    return {
        "signature": record.signature,
        "mapping": mapping_to_list(record.mapping),
        "fileName": record.file_name,
        "headerRowIndex": record.header_row_index,
        "dataRowIndex": record.data_row_index,
        "currency": record.currency,
        "createdAt": _datetime_to_str(record.created_at),
        "lastUsedAt": _datetime_to_str(record.last_used_at),
        "files": list(record.files),
    }


def dict_to_mapping_record(data: dict[str, Any]) -> MappingRecord:
    """Convert a stored mapping record to a MappingRecord.

    Raises:
        KeyError, TypeError, ValueError: If the stored shape is invalid
    """
    created_at = _str_to_datetime(data.get("createdAt") or data.get("created"))
    return MappingRecord(
        signature=str(data["signature"]),
        mapping=list_to_mapping(list(data["mapping"])),
        file_name=data.get("fileName") or "",
        header_row_index=int(data.get("headerRowIndex", 0)),
        data_row_index=int(data.get("dataRowIndex", 1)),
        currency=data.get("currency") or "",
        created_at=created_at,
        last_used_at=_str_to_datetime(data.get("lastUsedAt")) if data.get("lastUsedAt") else created_at,
        files=tuple(data.get("files") or ()),
    )


def merged_file_to_dict(entry: MergedFileEntry) -> dict[str, Any]:
    """Convert a MergedFileEntry to its stored shape."""
    return {
        "fileName": entry.file_name,
        "rawTable": [[_cell_to_json(cell) for cell in row] for row in entry.raw_table],
        "mapping": mapping_to_list(entry.mapping),
        "signature": entry.signature,
        "headerRowIndex": entry.header_row_index,
        "dataRowIndex": entry.data_row_index,
        "currency": entry.currency,
        "selected": entry.selected,
        "dateAdded": _datetime_to_str(entry.date_added),
    }


def dict_to_merged_file(data: dict[str, Any]) -> MergedFileEntry:
    """Convert a stored merged file to a MergedFileEntry."""
    return MergedFileEntry(
        file_name=str(data["fileName"]),
        raw_table=tuple(tuple(row) for row in data["rawTable"]),
        mapping=list_to_mapping(list(data["mapping"])),
        signature=str(data.get("signature") or ""),
        header_row_index=int(data.get("headerRowIndex", 0)),
        data_row_index=int(data.get("dataRowIndex", 1)),
        currency=data.get("currency") or "",
        selected=bool(data.get("selected", True)),
        date_added=_str_to_datetime(data.get("dateAdded")),
    )


def _snapshot_to_dict(snapshot: DataSnapshot) -> dict[str, Any]:
    return {
        "date": _date_to_str(snapshot.date),
        "description": snapshot.description,
        "income": str(snapshot.income),
        "expenses": str(snapshot.expenses),
    }


def _dict_to_snapshot(data: dict[str, Any]) -> DataSnapshot:
    return DataSnapshot(
        date=_str_to_date(data.get("date")),
        description=data.get("description") or "",
        income=_str_to_decimal(data.get("income")),
        expenses=_str_to_decimal(data.get("expenses")),
    )


def transaction_to_dict(transaction: Transaction) -> dict[str, Any]:
    """Convert a Transaction to its stored shape.

    Snapshot keys are only present while a snapshot exists.
    """
    data: dict[str, Any] = {
        "id": transaction.id,
        "date": _date_to_str(transaction.date),
        "description": transaction.description,
        "income": str(transaction.income),
        "expenses": str(transaction.expenses),
        "currency": transaction.currency,
        "category": transaction.category,
        "subcategory": transaction.subcategory,
        "fileName": transaction.file_name,
        "edited": transaction.edited,
        "editedFields": sorted(transaction.edited_fields),
    }
    if transaction.original_data is not None:
        data["originalData"] = _snapshot_to_dict(transaction.original_data)
    if transaction.original_category is not None:
        data["originalCategory"] = transaction.original_category
        data["originalSubcategory"] = transaction.original_subcategory or ""
    return data


def dict_to_transaction(data: dict[str, Any]) -> Transaction:
    """Convert a stored transaction to a Transaction."""
    original_data = data.get("originalData")
    original_category = data.get("originalCategory")
    return Transaction(
        id=str(data.get("id") or ""),
        date=_str_to_date(data.get("date")),
        description=data.get("description") or "",
        income=_str_to_decimal(data.get("income")),
        expenses=_str_to_decimal(data.get("expenses")),
        currency=data.get("currency") or "",
        file_name=data.get("fileName") or "",
        category=data.get("category") or "",
        subcategory=data.get("subcategory") or "",
        edited=bool(data.get("edited", False)),
        edited_fields=set(data.get("editedFields") or ()),
        original_data=_dict_to_snapshot(original_data) if original_data else None,
        original_category=original_category,
        original_subcategory=(
            data.get("originalSubcategory") or "" if original_category is not None else None
        ),
    )


def category_to_json(category: Category) -> Any:
    """Convert a Category to its stored shape (color string or object)."""
    if isinstance(category, SimpleCategory):
        return category.color
    data: dict[str, Any] = {
        "color": category.color,
        "subcategories": dict(category.subcategories),
    }
    if category.order is not None:
        data["order"] = category.order
    return data


def json_to_category(value: Any) -> Category:
    """Convert a stored category value to a Category variant.

    Raises:
        TypeError: If the stored value is neither a string nor an object
    """
    if isinstance(value, str):
        return SimpleCategory(color=value)
    if isinstance(value, dict):
        order = value.get("order")
        return CategoryWithSubcategories(
            color=str(value.get("color") or ""),
            order=int(order) if order is not None else None,
            subcategories={str(k): str(v) for k, v in (value.get("subcategories") or {}).items()},
        )
    raise TypeError(f"Unsupported stored category value: {value!r}")
