"""Database layer for finstream application."""

from finstream.database.base import Database
from finstream.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
