"""Tests for carryover.domain.entries pure functions."""

from datetime import date
from decimal import Decimal

import pytest

from carryover.domain.entries import add_entry, find_entry, remove_entry, update_entry
from carryover.domain.errors import NotFound
from carryover.domain.models import (
    UNCATEGORIZED,
    ExpenseEntry,
    IncomeEntry,
    MonthlyLedger,
    SpecificAccount,
    SpecificCategory,
    TransferEntry,
)
from carryover.domain.money import round2

DAY = date(2025, 4, 12)


def empty_month() -> MonthlyLedger:
    return MonthlyLedger(budget_id="b1", year=2025, month=4)


def coffee(amount: object = "-3.20") -> ExpenseEntry:
    category = SpecificCategory("eating-out")
    return ExpenseEntry("e1", SpecificAccount("current"), category, amount, DAY)  # type: ignore[arg-type]


class TestAddEntry:
    """Tests for add_entry."""

    def test_adds_and_retotals(self) -> None:
        """Adding an expense should update totals and balances."""
        result = add_entry(empty_month(), coffee())

        assert result.expenses == (coffee(round2("-3.20")),)
        assert result.total_expenses == Decimal("-3.20")
        assert result.category_balance("eating-out").spent == Decimal("-3.20")
        assert result.account_balance("current").end_balance == Decimal("-3.20")

    def test_rounds_amount(self) -> None:
        """Amounts should be stored rounded."""
        result = add_entry(empty_month(), coffee(-3.205))
        assert result.expenses[0].amount == Decimal("-3.21")

    def test_routes_by_type(self) -> None:
        """Each entry kind should land in its own list."""
        ledger = add_entry(empty_month(), IncomeEntry("i1", SpecificAccount("current"), round2(100), DAY))
        ledger = add_entry(
            ledger,
            TransferEntry(
                "t1",
                SpecificAccount("current"),
                SpecificAccount("savings"),
                UNCATEGORIZED,
                UNCATEGORIZED,
                round2(40),
                DAY,
            ),
        )

        assert [e.id for e in ledger.income] == ["i1"]
        assert [e.id for e in ledger.transfers] == ["t1"]
        assert ledger.account_balance("savings").end_balance == Decimal("40.00")

    def test_duplicate_id_rejected(self) -> None:
        """Entry ids must be unique within a month."""
        ledger = add_entry(empty_month(), coffee())
        with pytest.raises(ValueError):
            add_entry(ledger, IncomeEntry("e1", SpecificAccount("current"), round2(1), DAY))


class TestUpdateEntry:
    """Tests for update_entry."""

    def test_updates_fields(self) -> None:
        """Should replace the given fields and retotal."""
        ledger = add_entry(empty_month(), coffee())
        result = update_entry(ledger, "e1", amount="-4.50", cleared=True)

        assert result.expenses[0].cleared is True
        assert result.category_balance("eating-out").spent == Decimal("-4.50")

    def test_unknown_id(self) -> None:
        """Updating a missing entry should raise NotFound."""
        with pytest.raises(NotFound):
            update_entry(empty_month(), "nope", cleared=True)


class TestRemoveEntry:
    """Tests for remove_entry."""

    def test_removes_and_retotals(self) -> None:
        """Removing should drop the entry and its effect on balances."""
        ledger = add_entry(empty_month(), coffee())
        result = remove_entry(ledger, "e1")

        assert result.expenses == ()
        assert find_entry(result, "e1") is None
        # The category keeps its balance entry, now with nothing spent
        assert result.category_balance("eating-out").end_balance == Decimal("0.00")

    def test_unknown_id(self) -> None:
        """Removing a missing entry should raise NotFound."""
        with pytest.raises(NotFound):
            remove_entry(empty_month(), "nope")


def transfer(amount: object) -> TransferEntry:
    return TransferEntry(
        "t1",
        SpecificAccount("current"),
        SpecificAccount("savings"),
        UNCATEGORIZED,
        UNCATEGORIZED,
        amount,  # type: ignore[arg-type]
        DAY,
    )


class TestTransferAmounts:
    """Transfers carry their direction in from/to, never in the sign."""

    def test_negative_transfer_rejected_on_add(self) -> None:
        """Adding a transfer with a negative amount should raise ValueError."""
        with pytest.raises(ValueError, match="must not be negative"):
            add_entry(empty_month(), transfer("-40"))

    def test_negative_transfer_rejected_on_update(self) -> None:
        """Changing a transfer to a negative amount should raise ValueError."""
        ledger = add_entry(empty_month(), transfer("40"))
        with pytest.raises(ValueError, match="must not be negative"):
            update_entry(ledger, "t1", amount="-40")

    def test_zero_transfer_allowed(self) -> None:
        """A zero transfer moves nothing but is still a valid entry."""
        ledger = add_entry(empty_month(), transfer("0"))
        assert ledger.account_balance("savings").end_balance == Decimal("0.00")

    def test_negative_expense_still_allowed(self) -> None:
        """Only transfers are unsigned; expenses stay negative for money out."""
        ledger = add_entry(empty_month(), coffee("-3.20"))
        assert ledger.total_expenses == Decimal("-3.20")
