"""Tests for carryover.store documents and repositories."""

import json
import logging
import sqlite3
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from carryover.domain.models import (
    NO_ACCOUNT,
    UNCATEGORIZED,
    AdjustmentEntry,
    AllocationState,
    CategoryBalance,
    ExpenseEntry,
    IncomeEntry,
    MonthKey,
    MonthlyLedger,
    SpecificAccount,
    SpecificCategory,
    TransferEntry,
)
from carryover.domain.money import round2
from carryover.domain.retotal import retotal_month
from carryover.store.documents import ledger_from_document, ledger_to_document
from carryover.store.queries import get_month_ordinals, get_month_row, upsert_month_row
from carryover.store.repository import InMemoryLedgerRepository, SqliteLedgerRepository
from carryover.store.schema import init_database

NOW = datetime(2025, 5, 1, 9, 30)


def sample_ledger() -> MonthlyLedger:
    day = date(2025, 5, 3)
    ledger = MonthlyLedger(
        budget_id="b1",
        year=2025,
        month=5,
        income=(IncomeEntry("i1", SpecificAccount("current"), round2("2500.00"), day, payee="Employer"),),
        expenses=(
            ExpenseEntry("e1", SpecificAccount("current"), SpecificCategory("rent"), round2(-900), day, cleared=True),
            ExpenseEntry("e2", NO_ACCOUNT, UNCATEGORIZED, round2("-1.99"), day, description="cash"),
        ),
        transfers=(
            TransferEntry(
                "t1",
                SpecificAccount("current"),
                SpecificAccount("savings"),
                UNCATEGORIZED,
                SpecificCategory("holiday"),
                round2(200),
                day,
            ),
        ),
        adjustments=(AdjustmentEntry("a1", SpecificAccount("savings"), UNCATEGORIZED, round2("0.37"), day),),
        category_balances=(CategoryBalance("rent", start_balance=round2(10), allocated=round2(900)),),
        previous_month_income=round2(2400),
        allocation_state=AllocationState.FINALIZED,
        created_at=NOW,
    )
    return retotal_month(ledger)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "carryover.db"
    init_database(path)
    return path


class TestDocuments:
    """Tests for ledger_to_document and ledger_from_document."""

    def test_round_trip(self) -> None:
        """A ledger should survive conversion to a JSON document and back."""
        ledger = sample_ledger()
        doc = json.loads(json.dumps(ledger_to_document(ledger)))

        assert ledger_from_document(doc) == ledger

    def test_amounts_stored_as_strings(self) -> None:
        """Amounts should never go through floats."""
        doc = ledger_to_document(sample_ledger())

        assert doc["income"][0]["amount"] == "2500.00"
        assert doc["expenses"][1]["account_id"] == "__NO_ACCOUNT__"
        assert doc["expenses"][1]["category_id"] == "__NO_CATEGORY__"

    def test_tolerates_missing_fields(self) -> None:
        """Missing fields and bad amounts should default rather than fail."""
        doc = {
            "budget_id": "b1",
            "year": 2025,
            "month": 2,
            "expenses": [{"id": "e1", "amount": None, "category_id": "food"}],
            "category_balances": [{"category_id": "food", "start_balance": "NaN"}],
        }
        ledger = ledger_from_document(doc)

        assert ledger.expenses[0].amount == Decimal("0.00")
        assert ledger.expenses[0].account == NO_ACCOUNT
        assert ledger.category_balance("food").start_balance == Decimal("0.00")
        assert ledger.allocation_state is AllocationState.DRAFT

    def test_legacy_finalized_flag(self) -> None:
        """Older documents with a finalized flag should load as FINALIZED."""
        ledger = ledger_from_document({"year": 2024, "month": 11, "are_allocations_finalized": True})
        assert ledger.allocation_state is AllocationState.FINALIZED


class TestSqliteLedgerRepository:
    """Tests for SqliteLedgerRepository."""

    def test_write_then_read(self, db_path: Path) -> None:
        """A written month should read back equal, with version and timestamp."""
        repo = SqliteLedgerRepository(db_path, clock=lambda: NOW)
        stored = repo.write_month("b1", sample_ledger(), update_sequence_map=True)

        assert stored.version == 1
        assert stored.updated_at == NOW
        assert repo.read_month("b1", 2025, 5) == stored

    def test_missing_month(self, db_path: Path) -> None:
        """Reading a month that was never written should return None."""
        assert SqliteLedgerRepository(db_path).read_month("b1", 2025, 5) is None

    def test_month_map(self, db_path: Path) -> None:
        """Only writes that ask for it should update the month map."""
        repo = SqliteLedgerRepository(db_path)
        repo.write_month("b1", MonthlyLedger("b1", 2025, 1), update_sequence_map=True)
        repo.write_month("b1", MonthlyLedger("b1", 2025, 2), update_sequence_map=False)
        repo.write_month("other", MonthlyLedger("other", 2030, 1), update_sequence_map=True)

        assert repo.month_keys("b1") == {MonthKey(2025, 1)}

    def test_versions_increase(self, db_path: Path) -> None:
        """Each write should bump the version."""
        repo = SqliteLedgerRepository(db_path)
        first = repo.write_month("b1", sample_ledger(), update_sequence_map=True)
        second = repo.write_month("b1", first, update_sequence_map=False)

        assert second.version == 2
        assert repo.read_month("b1", 2025, 5).version == 2

    def test_stale_write_wins_with_warning(self, db_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        """Writing from an older copy should succeed but log a warning."""
        repo = SqliteLedgerRepository(db_path)
        stale = repo.write_month("b1", sample_ledger(), update_sequence_map=True)
        repo.write_month("b1", stale, update_sequence_map=False)

        with caplog.at_level(logging.WARNING, logger="carryover.store.repository"):
            result = repo.write_month("b1", stale, update_sequence_map=False)

        assert "overwriting newer version" in caplog.text
        assert result.version == 3

    def test_database_errors_propagate(self, tmp_path: Path) -> None:
        """Store errors should reach the caller."""
        repo = SqliteLedgerRepository(tmp_path / "missing-schema.db")
        with pytest.raises(sqlite3.Error):
            repo.read_month("b1", 2025, 5)

    def test_init_is_repeatable(self, db_path: Path) -> None:
        """Running init again should keep existing data."""
        repo = SqliteLedgerRepository(db_path)
        repo.write_month("b1", sample_ledger(), update_sequence_map=True)

        init_database(db_path)

        assert repo.read_month("b1", 2025, 5) is not None

    def test_fresh_schema_has_version_columns(self, db_path: Path) -> None:
        """A new database should carry version and updated_at on months."""
        conn = sqlite3.connect(db_path)
        try:
            columns = {row[1] for row in conn.execute("PRAGMA table_info(months)")}
        finally:
            conn.close()

        assert {"version", "updated_at"} <= columns


class TestUpsertMonthRow:
    """Tests for upsert_month_row."""

    def test_render_sees_stored_version(self, db_path: Path) -> None:
        """The render callback should get None for a new month, then the stored version."""
        seen: list[int | None] = []

        def render(previous: int | None) -> tuple[str, int, str]:
            seen.append(previous)
            return "{}", (previous or 0) + 1, NOW.isoformat()

        upsert_month_row("b1", 2025, 5, 24304, render, True, db_path)
        upsert_month_row("b1", 2025, 5, 24304, render, False, db_path)

        assert seen == [None, 1]
        assert get_month_row("b1", 2025, 5, db_path)["version"] == 2

    def test_render_failure_writes_nothing(self, db_path: Path) -> None:
        """An error while rendering should roll back and reach the caller."""

        def render(previous: int | None) -> tuple[str, int, str]:
            raise ValueError("cannot serialize")

        with pytest.raises(ValueError, match="cannot serialize"):
            upsert_month_row("b1", 2025, 5, 24304, render, True, db_path)

        assert get_month_row("b1", 2025, 5, db_path) is None
        assert get_month_ordinals("b1", db_path) == []


class TestInMemoryLedgerRepository:
    """Tests for InMemoryLedgerRepository."""

    def test_write_then_read(self) -> None:
        """Should store and return the stamped ledger."""
        repo = InMemoryLedgerRepository(clock=lambda: NOW)
        stored = repo.write_month("b1", sample_ledger(), update_sequence_map=True)

        assert repo.read_month("b1", 2025, 5) == stored
        assert stored.version == 1
        assert repo.month_keys("b1") == {MonthKey(2025, 5)}
        assert repo.writes == [("b1", MonthKey(2025, 5))]

    def test_budget_id_taken_from_argument(self) -> None:
        """The stored ledger should belong to the budget it was written to."""
        repo = InMemoryLedgerRepository()
        stored = repo.write_month("b2", sample_ledger(), update_sequence_map=False)

        assert stored.budget_id == "b2"
        assert repo.read_month("b1", 2025, 5) is None
