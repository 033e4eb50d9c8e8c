"""Tests for carryover.domain.allocations pure functions."""

from datetime import date
from decimal import Decimal

import pytest

from carryover.domain.allocations import (
    allocation_summary,
    begin_edit,
    cancel_edit,
    delete_all_allocations,
    finalize,
    save_draft,
)
from carryover.domain.errors import InvalidTransition
from carryover.domain.models import (
    AllocationState,
    CategoryBalance,
    ExpenseEntry,
    MonthlyLedger,
    SpecificAccount,
    SpecificCategory,
)
from carryover.domain.money import round2


def make_ledger(state: AllocationState = AllocationState.DRAFT) -> MonthlyLedger:
    """Month with groceries starting at 100 and 30 spent."""
    spend = ExpenseEntry(
        id="e1",
        account=SpecificAccount("current"),
        category=SpecificCategory("groceries"),
        amount=round2(-30),
        date=date(2025, 3, 5),
    )
    return MonthlyLedger(
        budget_id="b1",
        year=2025,
        month=3,
        expenses=(spend,),
        category_balances=(CategoryBalance("groceries", start_balance=round2(100)),),
        previous_month_income=round2(2000),
        allocation_state=state,
    )


def end_balances(ledger: MonthlyLedger) -> dict[str, Decimal]:
    return {cb.category_id: cb.end_balance for cb in ledger.category_balances}


class TestSaveDraft:
    """Tests for save_draft."""

    def test_end_balances_unchanged(self) -> None:
        """Saving a draft should never change any end balance."""
        ledger = finalize(make_ledger(), {})
        ledger = delete_all_allocations(ledger)  # Back to draft with retotaled balances
        before = end_balances(ledger)

        result = save_draft(ledger, {"groceries": 50, "rent": "800"})

        assert result.allocation_state is AllocationState.DRAFT
        assert end_balances(result)["groceries"] == before["groceries"]
        assert end_balances(result)["rent"] == Decimal("0.00")

    def test_stores_rounded_allocations(self) -> None:
        """Should store each allocation rounded to the cent."""
        result = save_draft(make_ledger(), {"groceries": "50.005"})

        assert result.category_balance("groceries").allocated == Decimal("50.01")
        assert result.category_balance("groceries").end_balance == Decimal("70.00")

    def test_garbage_amount_is_zero(self) -> None:
        """NaN or None allocations should be stored as 0."""
        result = save_draft(make_ledger(), {"groceries": float("nan"), "fuel": None})

        assert result.category_balance("groceries").allocated == Decimal("0.00")
        assert result.category_balance("fuel").allocated == Decimal("0.00")

    def test_rejected_when_finalized(self) -> None:
        """Drafts can't be saved over finalized allocations."""
        with pytest.raises(InvalidTransition):
            save_draft(make_ledger(AllocationState.FINALIZED), {"groceries": 10})


class TestFinalize:
    """Tests for finalize."""

    def test_applies_allocations(self) -> None:
        """Finalizing should add allocations to the end balance."""
        result = finalize(make_ledger(), {"groceries": 50})

        assert result.allocation_state is AllocationState.FINALIZED
        assert result.category_balance("groceries").end_balance == Decimal("120.00")

    def test_creates_missing_categories(self) -> None:
        """Categories absent from the month should be added with start balance 0."""
        result = finalize(make_ledger(), {"holiday": "25.50"})

        holiday = result.category_balance("holiday")
        assert holiday.start_balance == Decimal("0.00")
        assert holiday.end_balance == Decimal("25.50")

    def test_keeps_existing_draft_values(self) -> None:
        """Finalizing with no new values should apply the saved draft."""
        drafted = save_draft(make_ledger(), {"groceries": 50})
        result = finalize(drafted, {})

        assert result.category_balance("groceries").end_balance == Decimal("120.00")

    def test_from_editing_commits_edit(self) -> None:
        """Finalizing while editing should save the new values."""
        ledger = begin_edit(finalize(make_ledger(), {"groceries": 50}))
        result = finalize(ledger, {"groceries": 10})

        assert result.allocation_state is AllocationState.FINALIZED
        assert result.category_balance("groceries").end_balance == Decimal("80.00")


class TestEditing:
    """Tests for begin_edit and cancel_edit."""

    def test_begin_edit_keeps_balances(self) -> None:
        """Entering edit mode should change only the state."""
        finalized = finalize(make_ledger(), {"groceries": 50})
        editing = begin_edit(finalized)

        assert editing.allocation_state is AllocationState.EDITING_FINALIZED
        assert editing.allocations_finalized
        assert end_balances(editing) == end_balances(finalized)

    def test_begin_edit_requires_finalized(self) -> None:
        """Only finalized months can be edited."""
        with pytest.raises(InvalidTransition):
            begin_edit(make_ledger())

    def test_cancel_restores_persisted_values(self) -> None:
        """Cancelling should revert to the last persisted allocations."""
        persisted = begin_edit(finalize(make_ledger(), {"groceries": 50}))
        edited = finalize(persisted, {"groceries": 5, "fuel": 40})
        edited = begin_edit(edited)

        result = cancel_edit(edited, persisted)

        assert result.allocation_state is AllocationState.FINALIZED
        assert result.category_balance("groceries").allocated == Decimal("50.00")
        assert result.category_balance("groceries").end_balance == Decimal("120.00")
        # Added during the edit, so it falls back to zero
        assert result.category_balance("fuel").allocated == Decimal("0.00")

    def test_cancel_never_reverts_to_draft(self) -> None:
        """Cancelling should always leave allocations finalized."""
        editing = begin_edit(finalize(make_ledger(), {"groceries": 50}))
        assert cancel_edit(editing).allocations_finalized

    def test_cancel_requires_editing(self) -> None:
        """Cancelling outside edit mode is a misuse."""
        with pytest.raises(InvalidTransition):
            cancel_edit(finalize(make_ledger(), {"groceries": 50}))


class TestDeleteAllAllocations:
    """Tests for delete_all_allocations."""

    def test_zeroes_allocations_and_returns_to_draft(self) -> None:
        """Should clear every allocation and unfinalize the month."""
        finalized = finalize(make_ledger(), {"groceries": 50, "rent": 800})
        result = delete_all_allocations(finalized)

        assert result.allocation_state is AllocationState.DRAFT
        assert all(cb.allocated == 0 for cb in result.category_balances)
        assert result.category_balance("groceries").end_balance == Decimal("70.00")

    def test_rejected_from_draft(self) -> None:
        """There is nothing to delete in a draft month."""
        with pytest.raises(InvalidTransition):
            delete_all_allocations(make_ledger())


class TestAllocationSummary:
    """Tests for allocation_summary."""

    def test_available_is_income_minus_allocations(self) -> None:
        """Should compare allocations with last month's income."""
        summary = allocation_summary(save_draft(make_ledger(), {"groceries": "150.25", "rent": 800}))

        assert summary.state is AllocationState.DRAFT
        assert summary.total_allocated == Decimal("950.25")
        assert summary.available == Decimal("1049.75")
