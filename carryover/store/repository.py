"""Month document repositories.

The engine talks to storage only through the LedgerRepository protocol, so
the same code runs against sqlite or an in-memory dictionary.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Protocol

from carryover.domain.models import MonthKey, MonthlyLedger
from carryover.store import documents
from carryover.store.queries import get_month_ordinals, get_month_row, upsert_month_row

logger = logging.getLogger(__name__)


class LedgerRepository(Protocol):
    """Storage for one document per budget month plus the month map."""

    def read_month(self, budget_id: str, year: int, month: int) -> MonthlyLedger | None: ...

    def write_month(self, budget_id: str, ledger: MonthlyLedger, *, update_sequence_map: bool) -> MonthlyLedger: ...

    def month_keys(self, budget_id: str) -> set[MonthKey]: ...


def _stamp(ledger: MonthlyLedger, budget_id: str, previous_version: int | None, now: datetime) -> MonthlyLedger:
    """Return the ledger as it will be stored: next version, fresh updated_at."""
    if previous_version is not None and ledger.version < previous_version:
        logger.warning(
            "Budget %s month %s: overwriting newer version %d with a write based on version %d",
            budget_id,
            ledger.key,
            previous_version,
            ledger.version,
        )
    base = max(ledger.version, previous_version or 0)
    return replace(
        ledger,
        budget_id=budget_id,
        version=base + 1,
        updated_at=now,
        created_at=ledger.created_at or now,
    )


class SqliteLedgerRepository:
    """Repository backed by the sqlite database from carryover.store.schema."""

    def __init__(self, db_path: Path | None = None, clock: Callable[[], datetime] = datetime.now):
        self.db_path = db_path
        self.clock = clock

    def read_month(self, budget_id: str, year: int, month: int) -> MonthlyLedger | None:
        """Read one month.

        Raises:
            sqlite3.Error: If database operation fails.
        """
        row = get_month_row(budget_id, year, month, self.db_path)
        if row is None:
            return None
        return documents.loads(row["document"], row["version"], row["updated_at"])

    def write_month(self, budget_id: str, ledger: MonthlyLedger, *, update_sequence_map: bool) -> MonthlyLedger:
        """Write one month, bumping its version.

        Args:
            budget_id: Budget the month belongs to.
            ledger: The month to store.
            update_sequence_map: Also record the month in the month map.

        Returns:
            The ledger as stored.

        Raises:
            sqlite3.Error: If database operation fails.
        """
        stamped: list[MonthlyLedger] = []

        def render(previous_version: int | None) -> tuple[str, int, str]:
            stored = _stamp(ledger, budget_id, previous_version, self.clock())
            stamped.append(stored)
            return documents.dumps(stored), stored.version, stored.updated_at.isoformat() if stored.updated_at else ""

        upsert_month_row(
            budget_id,
            ledger.year,
            ledger.month,
            ledger.key.ordinal,
            render,
            update_sequence_map,
            self.db_path,
        )
        stored = stamped[-1]
        logger.debug("Wrote budget %s month %s (version %d)", budget_id, stored.key, stored.version)
        return stored

    def month_keys(self, budget_id: str) -> set[MonthKey]:
        """Months recorded in the month map."""
        return {MonthKey.from_ordinal(ordinal) for ordinal in get_month_ordinals(budget_id, self.db_path)}


class InMemoryLedgerRepository:
    """Repository holding ledgers in a dictionary. For tests and scripting."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self.months: dict[tuple[str, int, int], MonthlyLedger] = {}
        self.month_map: dict[str, set[MonthKey]] = {}
        self.writes: list[tuple[str, MonthKey]] = []

    def read_month(self, budget_id: str, year: int, month: int) -> MonthlyLedger | None:
        return self.months.get((budget_id, year, month))

    def write_month(self, budget_id: str, ledger: MonthlyLedger, *, update_sequence_map: bool) -> MonthlyLedger:
        existing = self.months.get((budget_id, ledger.year, ledger.month))
        stored = _stamp(ledger, budget_id, existing.version if existing else None, self.clock())

        self.months[(budget_id, stored.year, stored.month)] = stored
        if update_sequence_map:
            self.month_map.setdefault(budget_id, set()).add(stored.key)
        self.writes.append((budget_id, stored.key))
        return stored

    def month_keys(self, budget_id: str) -> set[MonthKey]:
        return set(self.month_map.get(budget_id, set()))
