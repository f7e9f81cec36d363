"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from finstream.database.sqlalchemy_db import SQLAlchemyDatabase
from finstream.logging_config import get_logger

logger = get_logger(__name__)


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks FINSTREAM_DB_PATH
            environment variable, then defaults to ~/.finstream/finstream.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("FINSTREAM_DB_PATH")

    if database_path is None:
        # Default to ~/.finstream/finstream.db
        home = Path.home()
        db_dir = home / ".finstream"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "finstream.db")

    logger.debug("Opening SQLite database at %s", database_path)
    return SQLAlchemyDatabase(f"sqlite:///{database_path}")


def create_database(
    database_url: Optional[str] = None, database_path: Optional[str] = None
) -> SQLAlchemyDatabase:
    """Create a database instance from a URL or a SQLite path.

    Args:
        database_url: Any SQLAlchemy URL. If None, checks FINSTREAM_DB_URL.
        database_path: SQLite file used when no URL is configured.

    Returns:
        SQLAlchemyDatabase instance
    """
    if database_url is None:
        database_url = os.environ.get("FINSTREAM_DB_URL")

    if database_url is None:
        return create_sqlite_database(database_path)

    logger.debug("Opening database at %s", database_url)
    return SQLAlchemyDatabase(database_url)
