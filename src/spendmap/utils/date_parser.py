"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from dateutil import parser as date_parser

# Serial numbers spreadsheet applications use for dates between 1968 and 2173
EXCEL_SERIAL_MIN = 25000
EXCEL_SERIAL_MAX = 100000
# Day zero of the spreadsheet 1900 date system (accounts for the 1900 leap year bug)
EXCEL_EPOCH = date(1899, 12, 30)

YEAR_FIRST_PATTERN = re.compile(r"^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})(?:$|[T\s])")
DATE_SHAPE_PATTERN = re.compile(r"^\d{1,4}[-/.]\d{1,2}[-/.]\d{1,4}$")
FOUR_DIGIT_YEAR_PATTERN = re.compile(r"\b\d{4}\b")
PLAIN_NUMBER_PATTERN = re.compile(r"^[-+(]?[\d,]*\.?\d+\)?-?$")


def looks_like_date(value: Any) -> bool:
    """Check whether a cell value has the shape of a date.

    Matches numeric dates with separators ("2024-01-15", "15/01/2024",
    "15.01.2024") and strings with a separator and a four digit year.
    Spreadsheet serial numbers are handled by ``is_excel_serial``.
    """
    if isinstance(value, (date, datetime)):
        return True
    if value is None or isinstance(value, (bool, int, float, Decimal)):
        return False
    text = str(value).strip()
    if DATE_SHAPE_PATTERN.match(text):
        return True
    if PLAIN_NUMBER_PATTERN.match(text):
        return False
    has_separator = any(sep in text for sep in "-/.")
    return has_separator and bool(FOUR_DIGIT_YEAR_PATTERN.search(text))


def is_excel_serial(value: Any) -> bool:
    """Check whether a value looks like a spreadsheet date serial number.

    Args:
        value: Cell value (number or numeric string)

    Returns:
        True for whole numbers in the plausible serial range
    """
    if isinstance(value, bool) or value is None:
        return False
    try:
        number = float(str(value).strip())
    except ValueError:
        return False
    return number.is_integer() and EXCEL_SERIAL_MIN <= number <= EXCEL_SERIAL_MAX


def excel_serial_to_date(serial: Any) -> date:
    """Convert a spreadsheet serial number to a date.

    Raises:
        ValueError: If the value is not a plausible serial number
    """
    if not is_excel_serial(serial):
        raise ValueError(f"Not a spreadsheet date serial: '{serial}'")
    return EXCEL_EPOCH + timedelta(days=int(float(str(serial).strip())))


def parse_date(value: Any, dayfirst: bool = True) -> date:
    """Parse a cell or user-supplied value into a date object.

    Supports:
    - date and datetime objects
    - Spreadsheet serial numbers: 45292, "45292"
    - ISO dates: "2024-01-15"
    - Other formats via dateutil: "15/01/2024", "Jan 15, 2024", ...

    Bank exports outside the US mostly put the day first, so ambiguous
    numeric dates default to day-first.

    Args:
        value: Date value in various formats
        dayfirst: Interpret "01/02/2024" as 1 February

    Returns:
        Date object

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        raise ValueError("Empty date value")
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return excel_serial_to_date(value)

    date_str = str(value).strip()
    if not date_str:
        raise ValueError("Empty date value")

    if is_excel_serial(date_str):
        return excel_serial_to_date(date_str)

    # Year-first dates are never ambiguous, dateutil would still honor dayfirst
    year_first = YEAR_FIRST_PATTERN.match(date_str)
    try:
        if year_first:
            year, month, day = (int(part) for part in year_first.groups())
            return date(year, month, day)
        return date_parser.parse(date_str, dayfirst=dayfirst).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
