"""Database query functions."""

import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import Any

from carryover.store.schema import get_db_path


def _connect(db_path: Path | None = None) -> sqlite3.Connection:
    """Create a database connection with row factory.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Database connection with row_factory configured.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def get_month_row(budget_id: str, year: int, month: int, db_path: Path | None = None) -> dict[str, Any] | None:
    """Get the stored document for one month.

    Args:
        budget_id: Budget id.
        year: Year.
        month: Month (1-12).
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Dictionary with document, version and updated_at, or None if the
        month has no document.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT document, version, updated_at FROM months WHERE budget_id = ? AND year = ? AND month = ?",
            (budget_id, year, month),
        )
        row = cursor.fetchone()
        return dict(row) if row else None


def upsert_month_row(
    budget_id: str,
    year: int,
    month: int,
    ordinal: int,
    render: Callable[[int | None], tuple[str, int, str]],
    update_sequence_map: bool,
    db_path: Path | None = None,
) -> None:
    """Insert or replace a month document.

    The version read, the document write and the month map update happen in
    one transaction, so no other writer can slip in between them.

    Args:
        budget_id: Budget id.
        year: Year.
        month: Month (1-12).
        ordinal: Month ordinal (year * 12 + month - 1).
        render: Called with the stored version (None if the month is new)
            and returns (document, version, updated_at) to store.
        update_sequence_map: Also record the month in month_map.
        db_path: Path to the database file. If None, uses default location.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute("BEGIN IMMEDIATE")
            cursor.execute(
                "SELECT version FROM months WHERE budget_id = ? AND year = ? AND month = ?",
                (budget_id, year, month),
            )
            existing = cursor.fetchone()
            document, version, updated_at = render(existing["version"] if existing else None)

            cursor.execute(
                """
                INSERT INTO months (budget_id, year, month, ordinal, document, version, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(budget_id, year, month) DO UPDATE SET
                    document = excluded.document,
                    version = excluded.version,
                    updated_at = excluded.updated_at
                """,
                (budget_id, year, month, ordinal, document, version, updated_at),
            )

            if update_sequence_map:
                cursor.execute(
                    "INSERT OR IGNORE INTO month_map (budget_id, ordinal) VALUES (?, ?)",
                    (budget_id, ordinal),
                )

            conn.commit()
        except Exception:
            conn.rollback()
            raise


def get_month_ordinals(budget_id: str, db_path: Path | None = None) -> list[int]:
    """Get the ordinals of every month in a budget's month map.

    Args:
        budget_id: Budget id.
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Ordinals in ascending order.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with _connect(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT ordinal FROM month_map WHERE budget_id = ? ORDER BY ordinal", (budget_id,))
        return [row["ordinal"] for row in cursor.fetchall()]
