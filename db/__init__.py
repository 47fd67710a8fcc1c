"""
Database package for the website import service.
Provides SQLAlchemy engine, session management, table reflection, and read-only repository functions.
"""

from db.engine import get_engine
from db.repository import (
    get_similar_vendor_ids,
    get_top_active_deals,
    get_user_id_by_api_key,
    get_user_role,
    get_vendor_profile,
)
from db.session import SessionLocal
from db.tables import clear_table_cache, get_table, metadata

__all__ = [
    "SessionLocal",
    "clear_table_cache",
    "get_engine",
    "get_similar_vendor_ids",
    "get_table",
    "get_top_active_deals",
    "get_user_id_by_api_key",
    "get_user_role",
    "get_vendor_profile",
    "metadata",
]
