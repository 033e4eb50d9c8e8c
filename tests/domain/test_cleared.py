"""Tests for carryover.domain.cleared pure functions."""

from datetime import date
from decimal import Decimal

from carryover.domain.cleared import split_cleared_balances
from carryover.domain.models import (
    NO_ACCOUNT,
    UNCATEGORIZED,
    AccountBalance,
    ExpenseEntry,
    IncomeEntry,
    MonthlyLedger,
    SpecificAccount,
    SpecificCategory,
    TransferEntry,
)
from carryover.domain.money import round2
from carryover.domain.retotal import retotal_month

DAY = date(2025, 6, 1)


def spend(entry_id: str, amount: str, cleared: bool | None, account: str = "current") -> ExpenseEntry:
    return ExpenseEntry(
        entry_id,
        SpecificAccount(account),
        SpecificCategory("bills"),
        round2(amount),
        DAY,
        cleared=cleared,
    )


class TestSplitClearedBalances:
    """Tests for split_cleared_balances."""

    def test_income_always_counts(self) -> None:
        """Income counts as cleared; expenses only when flagged cleared."""
        ledger = MonthlyLedger(
            budget_id="b1",
            year=2025,
            month=6,
            income=(IncomeEntry("i1", SpecificAccount("current"), round2(500), DAY),),
            expenses=(spend("e1", "-200", True), spend("e2", "-50", False)),
        )
        result = split_cleared_balances(ledger)

        assert result["current"].cleared_balance == Decimal("300.00")
        assert result["current"].uncleared_balance == Decimal("250.00")
        assert result["current"].pending == Decimal("-50.00")

    def test_missing_cleared_flag_is_uncleared(self) -> None:
        """An expense without a cleared flag should only count towards uncleared."""
        ledger = MonthlyLedger(budget_id="b1", year=2025, month=6, expenses=(spend("e1", "-10", None),))
        result = split_cleared_balances(ledger)

        assert result["current"].cleared_balance == Decimal("0.00")
        assert result["current"].uncleared_balance == Decimal("-10.00")

    def test_seeded_from_ledger_start_balance(self) -> None:
        """Both balances should start from the account's start balance."""
        ledger = retotal_month(
            MonthlyLedger(
                budget_id="b1",
                year=2025,
                month=6,
                expenses=(spend("e1", "-20", True),),
                account_balances=(AccountBalance("current", start_balance=round2(1000)),),
            )
        )
        result = split_cleared_balances(ledger)

        assert result["current"].start_balance == Decimal("1000.00")
        assert result["current"].cleared_balance == Decimal("980.00")
        assert result["current"].uncleared_balance == Decimal("980.00")

    def test_seeds_override(self) -> None:
        """Explicit seeds should win over the ledger's start balance."""
        ledger = MonthlyLedger(
            budget_id="b1",
            year=2025,
            month=6,
            account_balances=(AccountBalance("current", start_balance=round2(1000)),),
        )
        result = split_cleared_balances(ledger, seeds={"current": "12.345", "isa": 5000})

        assert result["current"].cleared_balance == Decimal("12.35")
        assert result["isa"].uncleared_balance == Decimal("5000.00")

    def test_transfers_move_both_accounts(self) -> None:
        """A cleared transfer should leave one account and arrive in the other."""
        transfer = TransferEntry(
            id="t1",
            from_account=SpecificAccount("current"),
            to_account=SpecificAccount("savings"),
            from_category=UNCATEGORIZED,
            to_category=UNCATEGORIZED,
            amount=round2(100),
            date=DAY,
            cleared=True,
        )
        ledger = MonthlyLedger(budget_id="b1", year=2025, month=6, transfers=(transfer,))
        result = split_cleared_balances(ledger)

        assert result["current"].cleared_balance == Decimal("-100.00")
        assert result["savings"].cleared_balance == Decimal("100.00")

    def test_no_account_ignored(self) -> None:
        """Entries with no account should not appear."""
        ledger = MonthlyLedger(
            budget_id="b1",
            year=2025,
            month=6,
            income=(IncomeEntry("i1", NO_ACCOUNT, round2(10), DAY),),
        )
        assert split_cleared_balances(ledger) == {}

    def test_read_only(self) -> None:
        """Splitting should not change the ledger."""
        ledger = MonthlyLedger(budget_id="b1", year=2025, month=6, expenses=(spend("e1", "-10", True),))
        before = ledger
        split_cleared_balances(ledger)
        assert ledger == before
