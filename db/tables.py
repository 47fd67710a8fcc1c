"""
SQLAlchemy table reflection for the marketplace schema.

This module does NOT create tables. It reflects the existing schema into
Table objects on first use.
"""

import os

from sqlalchemy import MetaData, Table

from db.engine import get_engine
from utils.logger import get_logger

logger = get_logger(__name__)

# Empty means the connection's default schema
DB_SCHEMA = os.getenv("DB_SCHEMA") or None

metadata = MetaData()

_tables_cache: dict[str, Table] = {}

TABLE_NAMES = [
    "vendors",
    "deals",
    "user_profiles",
    "api_keys",
]


def reflect_table(table_name: str) -> Table:
    """
    Reflect a single table from the database.

    Raises:
        sqlalchemy.exc.NoSuchTableError: If table doesn't exist in database
    """
    logger.debug(f"Reflecting table: {table_name} from schema: {DB_SCHEMA or 'default'}")
    return Table(
        table_name,
        metadata,
        autoload_with=get_engine(),
        schema=DB_SCHEMA,
    )


def get_table(name: str) -> Table:
    """
    Get a reflected table (lazy loading with caching).

    Raises:
        ValueError: If table name is not recognized
    """
    if name not in TABLE_NAMES:
        raise ValueError(f"Unknown table name: {name}. Available tables: {', '.join(TABLE_NAMES)}")

    if name not in _tables_cache:
        try:
            _tables_cache[name] = reflect_table(name)
        except Exception:
            logger.error(
                f"Failed to reflect table {name}. "
                f"Ensure DATABASE_URL is correct and the table exists."
            )
            raise

    return _tables_cache[name]


def clear_table_cache() -> None:
    _tables_cache.clear()
    metadata.clear()
