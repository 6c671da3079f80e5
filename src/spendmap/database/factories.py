"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from spendmap.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "SPENDMAP_DB_PATH"
DEFAULT_DB_DIR = ".spendmap"
DEFAULT_DB_NAME = "spendmap.db"


def default_database_path() -> Path:
    """Return ``~/.spendmap/spendmap.db``."""
    return Path.home() / DEFAULT_DB_DIR / DEFAULT_DB_NAME


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks SPENDMAP_DB_PATH
            environment variable, then defaults to ~/.spendmap/spendmap.db.
            ``~`` is expanded and missing parent directories are created.

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)

    path = Path(database_path).expanduser() if database_path else default_database_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    return SQLAlchemyDatabase(f"sqlite:///{path}")
