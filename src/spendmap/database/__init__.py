"""Key-value store behind the spendmap domain services."""

from spendmap.database.base import Database
from spendmap.database.factories import create_sqlite_database, default_database_path
from spendmap.database.sqlalchemy_db import SQLAlchemyDatabase

__all__ = ["Database", "SQLAlchemyDatabase", "create_sqlite_database", "default_database_path"]
