"""Database schema initialization and migrations."""

import os
import sqlite3
from pathlib import Path


def get_xdg_data_home() -> Path:
    """Get XDG data directory, with fallback to ~/.local/share."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


def get_db_path() -> Path:
    """Get the default database path (XDG compliant)."""
    return get_xdg_data_home() / "carryover" / "carryover.db"


def database_exists(db_path: Path | None = None) -> bool:
    """Check if the database file exists.

    Args:
        db_path: Path to check. If None, uses default location.

    Returns:
        True if database exists, False otherwise.
    """
    if db_path is None:
        db_path = get_db_path()
    return db_path.exists()


def init_database(db_path: Path | None = None) -> None:
    """Initialize the database with the required schema.

    Safe to run on an existing database: tables and indexes are only created
    if missing.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Raises:
        sqlite3.Error: If database initialization fails.
    """
    if db_path is None:
        db_path = get_db_path()

    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    try:
        # One JSON document per budget month
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS months (
                budget_id TEXT NOT NULL,
                year INTEGER NOT NULL,
                month INTEGER NOT NULL,
                ordinal INTEGER NOT NULL,
                document TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 0,
                updated_at TEXT,
                PRIMARY KEY (budget_id, year, month)
            )
        """
        )

        # Which months exist, by ordinal, without loading documents
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS month_map (
                budget_id TEXT NOT NULL,
                ordinal INTEGER NOT NULL,
                PRIMARY KEY (budget_id, ordinal)
            )
        """
        )

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_months_budget_ordinal ON months(budget_id, ordinal)")

        conn.commit()

    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()
