"""Column mapping suggestion for statement files.

The suggester works in two passes. The header pass matches header text
against keyword lists in several languages. The content pass looks at a few
data rows for the columns the header pass left unmapped and recognizes date,
description and money columns by their values.
"""

import re
from typing import Any, Iterable, Optional, Sequence

from spendmap.domain.entities import FieldTag, FormatMapping, RawTable
from spendmap.domain.errors import ValidationError
from spendmap.logging_setup import get_logger
from spendmap.utils.amount_parser import parse_amount
from spendmap.utils.date_parser import looks_like_date

logger = get_logger("spendmap.domain.header_mapping")

MAX_SAMPLE_ROWS = 5

# Serial numbers of dates from 1995 to 2036
EXCEL_DATE_MIN = 35000
EXCEL_DATE_MAX = 50000

DATE_KEYWORDS = ("date", "day", "time", "datum", "fecha", "תאריך", "день", "дата")
DESCRIPTION_KEYWORDS = (
    "desc",
    "note",
    "memo",
    "text",
    "detail",
    "narrative",
    "payee",
    "beschreibung",
    "verwendungszweck",
    "concepto",
    "תאור",
    "תיאור",
    "פרטים",
    "описание",
)
EXPENSES_KEYWORDS = (
    "expense",
    "debit",
    "cost",
    "payment",
    "withdrawal",
    "out",
    "ausgabe",
    "soll",
    "gasto",
    "cargo",
    "חובה",
    "расход",
)
INCOME_KEYWORDS = (
    "income",
    "credit",
    "deposit",
    "revenue",
    "in",
    "einkommen",
    "einnahme",
    "haben",
    "ingreso",
    "abono",
    "זכות",
    "доход",
    "приход",
)

# Shorter keywords only count as whole words ("in" must not match "ingreso")
SHORT_KEYWORD_LENGTH = 4

HEADER_RULES = (
    (FieldTag.DATE, DATE_KEYWORDS),
    (FieldTag.DESCRIPTION, DESCRIPTION_KEYWORDS),
    (FieldTag.EXPENSES, EXPENSES_KEYWORDS),
    (FieldTag.INCOME, INCOME_KEYWORDS),
)

# Tags a mapping may use at most once
SINGLE_USE_TAGS = (FieldTag.DATE, FieldTag.INCOME, FieldTag.EXPENSES)

_LETTERS = re.compile(r"[^\W\d_]", re.UNICODE)


def _matches_keyword(header_text: str, keyword: str) -> bool:
    if len(keyword) < SHORT_KEYWORD_LENGTH:
        return re.search(rf"(?<!\w){re.escape(keyword)}(?!\w)", header_text) is not None
    return keyword in header_text


def classify_header(header_text: Any) -> Optional[FieldTag]:
    """Return the first tag whose keywords appear in a header cell."""
    if header_text is None:
        return None
    text = str(header_text).strip().lower()
    if not text:
        return None
    for tag, keywords in HEADER_RULES:
        if any(_matches_keyword(text, keyword) for keyword in keywords):
            return tag
    return None


class _Claims:
    """Tags already assigned while building one mapping."""

    def __init__(self) -> None:
        self.tags: set[FieldTag] = set()
        self.description_by_content = False

    def available(self, tag: FieldTag) -> bool:
        return tag not in SINGLE_USE_TAGS or tag not in self.tags

    def claim(self, tag: FieldTag) -> None:
        self.tags.add(tag)


def _column_values(rows: Iterable[Sequence[Any]], column: int) -> list[Any]:
    values = []
    for row in rows:
        if column < len(row):
            value = row[column]
            if value is not None and str(value).strip():
                values.append(value)
    return values


def _to_number(value: Any) -> Optional[float]:
    try:
        return float(parse_amount(value))
    except ValueError:
        return None


def is_excel_date_column(values: Sequence[Any]) -> bool:
    """Most values are whole numbers in the spreadsheet date serial range."""
    count = 0
    for value in values:
        number = _to_number(value)
        if number is not None and number.is_integer() and EXCEL_DATE_MIN <= number <= EXCEL_DATE_MAX:
            count += 1
    return count > len(values) * 0.5


def is_date_column(values: Sequence[Any]) -> bool:
    """More than 40% of values are shaped like dates."""
    count = sum(1 for value in values if looks_like_date(value))
    return count > len(values) * 0.4


def is_description_column(values: Sequence[Any]) -> bool:
    """Most values are text longer than five characters."""
    count = 0
    for value in values:
        text = str(value).strip()
        if len(text) > 5 and _LETTERS.search(text):
            count += 1
    return count > len(values) * 0.5


def is_monetary_column(values: Sequence[Any]) -> bool:
    """Most values parse as amounts."""
    count = sum(1 for value in values if _to_number(value) is not None)
    return count > len(values) * 0.5


def classify_monetary_column(values: Sequence[Any], claims: _Claims) -> FieldTag:
    """Pick Income or Expenses for a money column.

    A column whose amounts are all negative prefers Expenses, anything else
    prefers Income. When the preferred tag is taken the other one is used;
    when both are taken the column stays unmapped.
    """
    numbers = [n for n in (_to_number(v) for v in values) if n is not None]
    all_negative = bool(numbers) and all(n < 0 for n in numbers)
    if all_negative:
        order = (FieldTag.EXPENSES, FieldTag.INCOME)
    else:
        order = (FieldTag.INCOME, FieldTag.EXPENSES)
    for tag in order:
        if claims.available(tag):
            return tag
    return FieldTag.UNMAPPED


def _sample_rows(raw_table: RawTable, header_row_index: int) -> list[Sequence[Any]]:
    rows = raw_table[header_row_index + 1 : header_row_index + 1 + MAX_SAMPLE_ROWS]
    return [row for row in rows if row]


def suggest_mapping(raw_table: RawTable, header_row_index: int = 0) -> FormatMapping:
    """Suggest a column mapping for a decoded table.

    Args:
        raw_table: Decoded rows of the file
        header_row_index: Row holding the column headers

    Returns:
        One tag per column. The length is the widest of the header row and
        the sampled data rows. Never contains more than one Date, Income or
        Expenses column. Tables with fewer than two rows from the header on
        get an all-Unmapped mapping.
    """
    if header_row_index < 0 or header_row_index >= len(raw_table):
        header: Sequence[Any] = []
        samples: list[Sequence[Any]] = []
    else:
        header = raw_table[header_row_index] or []
        samples = _sample_rows(raw_table, header_row_index)

    width = max([len(header)] + [len(row) for row in samples])
    if len(raw_table) - max(header_row_index, 0) < 2:
        logger.info("Not enough rows to suggest a mapping")
        return tuple(FieldTag.UNMAPPED for _ in range(width))

    mapping = [FieldTag.UNMAPPED] * width
    claims = _Claims()

    # Header pass
    for column, cell in enumerate(header):
        tag = classify_header(cell)
        if tag is not None and claims.available(tag):
            mapping[column] = tag
            claims.claim(tag)

    # Content pass, only for columns the headers did not explain
    for column in range(width):
        if mapping[column] != FieldTag.UNMAPPED:
            continue
        values = _column_values(samples, column)
        if not values:
            continue

        if claims.available(FieldTag.DATE) and (
            is_excel_date_column(values) or is_date_column(values)
        ):
            mapping[column] = FieldTag.DATE
            claims.claim(FieldTag.DATE)
        elif not claims.description_by_content and is_description_column(values):
            mapping[column] = FieldTag.DESCRIPTION
            claims.claim(FieldTag.DESCRIPTION)
            claims.description_by_content = True
        elif is_monetary_column(values):
            tag = classify_monetary_column(values, claims)
            if tag != FieldTag.UNMAPPED:
                mapping[column] = tag
                claims.claim(tag)

    logger.debug("Suggested mapping: %s", [tag.value for tag in mapping])
    return tuple(mapping)


def validate_mapping(mapping: Sequence[FieldTag]) -> tuple[bool, list[str]]:
    """Check that a mapping can be used to import transactions.

    A usable mapping has exactly one Date column and at least one Income or
    Expenses column, with neither of those claimed twice.

    Returns:
        Tuple of (is_valid, problems)
    """
    problems = []
    counts = {tag: sum(1 for t in mapping if t == tag) for tag in FieldTag}
    if counts[FieldTag.DATE] == 0:
        problems.append("no Date column")
    if counts[FieldTag.INCOME] == 0 and counts[FieldTag.EXPENSES] == 0:
        problems.append("no Income or Expenses column")
    for tag in SINGLE_USE_TAGS:
        if counts[tag] > 1:
            problems.append(f"{tag.value} is mapped to {counts[tag]} columns")
    return (not problems, problems)


def is_complete(mapping: Sequence[FieldTag]) -> bool:
    """Mapping has a Date and at least one money column."""
    return validate_mapping(mapping)[0]


_TAG_ALIASES = {
    "": FieldTag.UNMAPPED,
    "-": FieldTag.UNMAPPED,
    "–": FieldTag.UNMAPPED,
    "unmapped": FieldTag.UNMAPPED,
    "skip": FieldTag.UNMAPPED,
    "date": FieldTag.DATE,
    "description": FieldTag.DESCRIPTION,
    "desc": FieldTag.DESCRIPTION,
    "income": FieldTag.INCOME,
    "expenses": FieldTag.EXPENSES,
    "expense": FieldTag.EXPENSES,
}


def parse_mapping(text: str) -> FormatMapping:
    """Parse a comma separated mapping such as ``"date,description,-,expenses"``.

    Raises:
        ValidationError: If a tag is not recognized
    """
    tags = []
    for position, part in enumerate(text.split(","), start=1):
        key = part.strip().lower()
        if key not in _TAG_ALIASES:
            valid = ", ".join(tag.value for tag in FieldTag)
            raise ValidationError(
                f"Unknown field '{part.strip()}' in column {position}. Valid fields: {valid}"
            )
        tags.append(_TAG_ALIASES[key])
    return tuple(tags)


def format_mapping(mapping: Sequence[FieldTag]) -> str:
    """Render a mapping the way ``parse_mapping`` reads it."""
    return ",".join(tag.value for tag in mapping)
