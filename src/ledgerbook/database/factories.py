"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from ledgerbook.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks LEDGERBOOK_DB_PATH
            environment variable, then defaults to ~/.ledgerbook/ledgerbook.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("LEDGERBOOK_DB_PATH")

    if database_path is None:
        # Default to ~/.ledgerbook/ledgerbook.db
        home = Path.home()
        db_dir = home / ".ledgerbook"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "ledgerbook.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def create_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create the configured database.

    An explicit ``database_path`` wins; otherwise a full SQLAlchemy URL in
    LEDGERBOOK_DB_URL is used, falling back to the SQLite defaults of
    :func:`create_sqlite_database`.
    """
    if database_path is None:
        database_url = os.environ.get("LEDGERBOOK_DB_URL")
        if database_url:
            return SQLAlchemyDatabase(database_url)
    return create_sqlite_database(database_path)
