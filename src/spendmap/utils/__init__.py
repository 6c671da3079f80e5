"""Utility functions for spendmap."""

from spendmap.utils.date_parser import parse_date
from spendmap.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
