"""Domain model entities for spendmap.

These are plain data classes representing business concepts, independent of
how they are persisted. The key-value store only ever sees the dictionaries
produced by ``spendmap.database.mappers``.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Sequence, Union


class FieldTag(str, Enum):
    """Semantic meaning assigned to one column of a statement file."""

    DATE = "Date"
    DESCRIPTION = "Description"
    INCOME = "Income"
    EXPENSES = "Expenses"
    UNMAPPED = "Unmapped"


# One tag per column, in column order.
FormatMapping = tuple[FieldTag, ...]

# Rows of decoded cell values (str, int, float, Decimal or None).
RawTable = Sequence[Sequence[Any]]

DATA_FIELDS = ("date", "description", "income", "expenses")
CATEGORY_FIELDS = ("category", "subcategory")
EDITABLE_FIELDS = DATA_FIELDS + ("category", "currency")


@dataclass(frozen=True)
class CategoryRef:
    """A category with an optional subcategory.

    The ``"Category:Subcategory"`` string form only exists at the edges
    (persisted description map, user input); use ``parse`` and ``__str__``
    to cross them.
    """

    category: str
    subcategory: str = ""

    @classmethod
    def parse(cls, value: str) -> "CategoryRef":
        """Split ``"Category:Subcategory"`` into a reference.

        A value without ``:`` has no subcategory.
        """
        if ":" in value:
            category, subcategory = value.split(":", 1)
            return cls(category.strip(), subcategory.strip())
        return cls(value.strip(), "")

    def __str__(self) -> str:
        if self.subcategory:
            return f"{self.category}:{self.subcategory}"
        return self.category


@dataclass(frozen=True)
class SimpleCategory:
    """Category with a color and no subcategories."""

    color: str


@dataclass(frozen=True)
class CategoryWithSubcategories:
    """Category carrying display order and named subcategory colors."""

    color: str
    order: Optional[int] = None
    subcategories: dict[str, str] = field(default_factory=dict)


Category = Union[SimpleCategory, CategoryWithSubcategories]


@dataclass(frozen=True)
class MappingRecord:
    """Saved column mapping for a recognized file format."""

    signature: str
    mapping: FormatMapping
    file_name: str
    header_row_index: int
    data_row_index: int
    currency: str
    created_at: datetime
    last_used_at: datetime
    files: tuple[str, ...] = ()


@dataclass(frozen=True)
class MergedFileEntry:
    """A statement file that has been merged into the ledger."""

    file_name: str
    raw_table: tuple[tuple[Any, ...], ...]
    mapping: FormatMapping
    signature: str
    header_row_index: int
    data_row_index: int
    currency: str
    selected: bool
    date_added: datetime


@dataclass(frozen=True)
class DataSnapshot:
    """The four data fields of a transaction as they were before editing."""

    date: Optional[date]
    description: str
    income: Decimal
    expenses: Decimal


@dataclass
class Transaction:
    """Ledger transaction.

    Mutable: the edit tracker changes fields in place and records snapshots
    in ``original_data`` / ``original_category`` / ``original_subcategory``.
    A ``None`` snapshot means that axis has not been edited.
    """

    id: str
    date: Optional[date]
    description: str
    income: Decimal
    expenses: Decimal
    currency: str
    file_name: str
    category: str = ""
    subcategory: str = ""
    edited: bool = False
    edited_fields: set[str] = field(default_factory=set)
    original_data: Optional[DataSnapshot] = None
    original_category: Optional[str] = None
    original_subcategory: Optional[str] = None

    @property
    def category_ref(self) -> Optional[CategoryRef]:
        """Current category as a reference, or None when uncategorized."""
        if not self.category:
            return None
        return CategoryRef(self.category, self.subcategory)

    @property
    def amount(self) -> Decimal:
        """Signed amount: income positive, expenses negative."""
        return self.income - self.expenses

    def snapshot(self) -> DataSnapshot:
        """Capture the current data fields."""
        return DataSnapshot(
            date=self.date,
            description=self.description,
            income=self.income,
            expenses=self.expenses,
        )
