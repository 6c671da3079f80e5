"""Read delimited statement files into a raw table."""

import csv
from pathlib import Path

from spendmap.domain.entities import RawTable


def read_table(file_path: str) -> RawTable:
    """Read a CSV-like file into rows of string cells.

    The delimiter is sniffed from the first kilobyte, falling back to a
    comma. Fully blank rows are dropped; cells are stripped.

    Args:
        file_path: Path to the file

    Returns:
        List of rows

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        sample = f.read(1024)
        f.seek(0)
        try:
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            delimiter = ","

        rows = []
        for row in csv.reader(f, delimiter=delimiter):
            cells = [cell.strip() for cell in row]
            if any(cells):
                rows.append(cells)
    return rows
