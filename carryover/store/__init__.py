"""Database store layer - provides persistence for the application.

This module re-exports the public store API for easy importing.
"""

from carryover.store.repository import InMemoryLedgerRepository, LedgerRepository, SqliteLedgerRepository
from carryover.store.schema import database_exists, get_db_path, init_database

__all__ = [
    # Schema
    "database_exists",
    "get_db_path",
    "init_database",
    # Repositories
    "InMemoryLedgerRepository",
    "LedgerRepository",
    "SqliteLedgerRepository",
]
