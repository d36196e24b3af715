"""
Database module for the glosa audit engine.

Exports database connection utilities and reference data seeding.
"""

from glosa_audit.db.connection import (
    check_db_connection,
    close_db_connection,
    create_all,
    create_session_maker,
    get_engine,
    get_session,
    get_session_maker,
)
from glosa_audit.db.seeds import seed_reference_data

__all__ = [
    # Connection
    "get_engine",
    "get_session_maker",
    "create_session_maker",
    "get_session",
    "create_all",
    "close_db_connection",
    "check_db_connection",
    # Reference data
    "seed_reference_data",
]
