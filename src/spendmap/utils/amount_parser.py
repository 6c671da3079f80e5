"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
from typing import Any
import re

CURRENCY_SYMBOLS = r"[$€£¥₪₽]"


def parse_amount(value: Any) -> Decimal:
    """Parse a cell or user-supplied amount into a Decimal.

    Handles various formats:
    - 123.45 (int, float or Decimal cells)
    - "123.45"
    - "$123.45", "-$123.45", "₪ 99"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "123.45-" (trailing minus, common in older bank exports)

    Args:
        value: Amount value

    Returns:
        Decimal amount

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Could not parse amount '{value}'")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # Go through str so 0.1 stays 0.1 instead of its binary expansion
        return Decimal(str(value))

    if value is None or not str(value).strip():
        raise ValueError("Empty amount string")

    amount_str = str(value).strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]
    elif amount_str.endswith("-"):
        is_negative = True
        amount_str = amount_str[:-1]

    amount_str = re.sub(CURRENCY_SYMBOLS, "", amount_str)
    amount_str = amount_str.replace(",", "")
    amount_str = amount_str.replace(" ", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{value}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{value}'")
    return -amount if is_negative else amount


def looks_numeric(value: Any) -> bool:
    """Check whether a cell value parses as an amount."""
    try:
        parse_amount(value)
    except ValueError:
        return False
    return True
