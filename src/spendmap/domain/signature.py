"""Format signatures for statement files.

A signature identifies a file's column layout so that a saved mapping can be
reused the next time a file of the same shape is imported. It has two parts:

- the structure part, computed from the file extension and header row only
- the mapping part, computed from the chosen mapping and currency

``sig_<structure>`` is what an import can compute before a mapping exists;
``sig_<structure>.<mapping>`` is what gets stored once the user has chosen
one. Lookups before mapping compare structure parts with ``same_structure``.
"""

import hashlib
import re
from pathlib import PurePath
from typing import Any, Optional, Sequence

from spendmap.domain.entities import FieldTag, RawTable

SIGNATURE_PREFIX = "sig_"
EMPTY_SIGNATURE = "sig_empty"
HASH_LENGTH = 12

_NON_ALNUM = re.compile(r"[^\w]+", re.UNICODE)


def _digest(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def _normalize_cell(value: Any) -> str:
    if value is None:
        return ""
    return _NON_ALNUM.sub("", str(value).lower()).replace("_", "")


def _header_row(raw_table: RawTable, header_row_index: int) -> Optional[Sequence[Any]]:
    if not raw_table:
        return None
    if 0 <= header_row_index < len(raw_table):
        return raw_table[header_row_index]
    return raw_table[0]


def structure_part(file_name: str, raw_table: RawTable, header_row_index: int = 0) -> str:
    """Hash the layout of a table: extension, header width and header cells."""
    header = _header_row(raw_table, header_row_index)
    if header is None:
        return "empty"
    extension = PurePath(file_name or "").suffix.lower().lstrip(".")
    cells = [_normalize_cell(cell) for cell in header]
    return _digest("|".join([extension, str(len(header))] + cells))


def mapping_part(mapping: Sequence[FieldTag], currency: Optional[str] = None) -> str:
    """Hash a mapping choice together with its currency."""
    tags = [FieldTag(tag).value for tag in mapping]
    code = (currency or "").strip().upper()
    return _digest(",".join(tags) + "|" + code)


def generate_signature(
    file_name: str,
    raw_table: RawTable,
    mapping: Optional[Sequence[FieldTag]] = None,
    currency: Optional[str] = None,
    header_row_index: int = 0,
) -> str:
    """Generate the signature of a statement file.

    The file stem is not part of the signature, so ``jan.csv`` and
    ``feb.csv`` exported by the same bank share it. Equal inputs always give
    equal output, across processes.

    Args:
        file_name: Name of the uploaded file (only the extension is used)
        raw_table: Decoded rows of the file
        mapping: Chosen column mapping, or None for the structure-only form
        currency: Currency code of the file, only used with a mapping
        header_row_index: Row holding the column headers

    Returns:
        Signature string
    """
    structure = structure_part(file_name, raw_table, header_row_index)
    if structure == "empty":
        return EMPTY_SIGNATURE
    signature = f"{SIGNATURE_PREFIX}{structure}"
    if mapping is None:
        return signature
    return f"{signature}.{mapping_part(mapping, currency)}"


def structure_of(signature: str) -> str:
    """Return the structure-only form of a signature."""
    return signature.split(".", 1)[0]


def same_structure(first: str, second: str) -> bool:
    """Check whether two signatures describe the same file layout."""
    return structure_of(first) == structure_of(second)
