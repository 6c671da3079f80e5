"""Shared domain error messages and error types."""

from typing import Any, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DuplicateDetectedError(ConflictError):
    """A file with the same name or signature has already been merged.

    Callers are expected to ask the user and retry with confirmation rather
    than treat this as a failure.
    """

    def __init__(
        self,
        message: str,
        by_name: Optional[Any] = None,
        by_signature: Optional[Any] = None,
    ):
        super().__init__(message)
        self.by_name = by_name
        self.by_signature = by_signature


class PersistenceError(DomainError):
    """The backing store could not be read or written."""


class RevertPreconditionError(DomainError):
    """There is no snapshot to revert to."""


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def category_not_found(name: str) -> str:
    """Return message for missing category by name."""
    return f"Category '{name}' not found"


def subcategory_not_found(category: str, name: str) -> str:
    """Return message for missing subcategory."""
    return f"Subcategory '{name}' not found in category '{category}'"


def merged_file_not_found(file_name: str) -> str:
    """Return message for a file that is not in the merged list."""
    return f"Merged file '{file_name}' not found"


def incomplete_mapping(problems: list[str]) -> str:
    """Return message for a mapping that cannot be used for import."""
    return "Mapping is incomplete: " + "; ".join(problems)


def nothing_to_revert(transaction_id: str, what: str = "changes") -> str:
    """Return message when a revert has no snapshot to restore."""
    return f"No {what} to revert for transaction {transaction_id}"


def duplicate_file(
    file_name: str, by_name: Optional[Any], by_signature: Optional[Any]
) -> str:
    """Return message describing which duplicates were found for a file."""
    parts = []
    if by_name is not None:
        parts.append(f"a file named '{file_name}' is already merged")
    if by_signature is not None:
        parts.append(
            f"'{by_signature.file_name}' has the same format and may contain the same rows"
        )
    return f"Possible duplicate import of '{file_name}': " + "; ".join(parts)
