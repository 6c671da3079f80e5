"""Abstract database interface."""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

from spendmap.domain.errors import PersistenceError
from spendmap.logging_setup import get_logger

logger = get_logger("spendmap.database")


class Database(ABC):
    """Abstract key-value store for spendmap.

    Values are JSON documents stored under the well-known keys
    (``mergedFiles``, ``transactions``, ``categories``,
    ``fileFormatMappings``, ``categoryMappings``). Implementations raise
    ``PersistenceError`` when the underlying storage fails.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def get_raw(self, key: str) -> Optional[str]:
        """Get the raw serialized value for a key, or None if missing."""
        pass

    @abstractmethod
    def put_raw(self, key: str, value: str) -> None:
        """Store a raw serialized value under a key."""
        pass

    @abstractmethod
    def put_many_raw(self, values: dict[str, str]) -> None:
        """Store several raw values in a single write.

        Either every key is written or none is.
        """
        pass

    @abstractmethod
    def delete_raw(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        pass

    @abstractmethod
    def list_keys(self) -> list[str]:
        """List stored keys."""
        pass

    def read_json(self, key: str, default: Any = None) -> Any:
        """Read and decode a JSON value.

        Storage failures and corrupt documents are logged and degrade to
        ``default``; they are never raised to the caller.
        """
        try:
            raw = self.get_raw(key)
        except PersistenceError as e:
            logger.error("Could not read '%s' from store: %s", key, e)
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Stored value for '%s' is corrupt, treating as empty: %s", key, e)
            return default

    def write_json(self, key: str, value: Any) -> None:
        """Encode and store a JSON value.

        Raises:
            PersistenceError: If the value cannot be serialized or stored
        """
        self.write_json_many({key: value})

    def write_json_many(self, values: dict[str, Any]) -> None:
        """Encode and store several JSON values in one write.

        Raises:
            PersistenceError: If any value cannot be serialized or the write fails
        """
        try:
            encoded = {key: json.dumps(value) for key, value in values.items()}
        except (TypeError, ValueError) as e:
            logger.error("Could not serialize %s: %s", ", ".join(values), e)
            raise PersistenceError(f"Could not serialize {', '.join(values)}: {e}") from e
        try:
            self.put_many_raw(encoded)
        except PersistenceError as e:
            logger.error("Could not write %s to store: %s", ", ".join(values), e)
            raise
