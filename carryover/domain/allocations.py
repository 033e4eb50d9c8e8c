"""Pure functions for the allocation lifecycle.

A month's allocations are in one of three states:

    DRAFT --finalize--> FINALIZED --begin_edit--> EDITING_FINALIZED
      ^                     |  ^                        |
      |                     |  +------cancel_edit-------+
      +--delete_all---------+  (finalize works from any state)

Draft allocations are stored but never reach category end balances. Every
transition returns a retotaled ledger; cascading to later months is the
caller's job.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace

from carryover.domain.errors import InvalidTransition
from carryover.domain.models import AllocationState, CategoryBalance, Money, MonthlyLedger
from carryover.domain.money import money_sum, round2
from carryover.domain.retotal import retotal_month

Allocations = Mapping[str, object]


@dataclass(frozen=True)
class AllocationSummary:
    """Immutable allocation totals for a month."""

    state: AllocationState
    total_allocated: Money
    previous_month_income: Money
    available: Money  # previous_month_income - total_allocated


def apply_allocations(
    balances: tuple[CategoryBalance, ...],
    allocations: Allocations,
) -> tuple[CategoryBalance, ...]:
    """Write allocated amounts into category balances.

    Args:
        balances: Existing category balances.
        allocations: category_id -> amount. None/NaN/garbage counts as 0.

    Returns:
        Balances with allocated replaced. Categories missing from the month
        are appended with zero start balance.
    """
    updated = list(balances)
    index = {cb.category_id: i for i, cb in enumerate(updated)}

    for category_id, amount in allocations.items():
        allocated = round2(amount)
        if category_id in index:
            position = index[category_id]
            updated[position] = replace(updated[position], allocated=allocated)
        else:
            index[category_id] = len(updated)
            updated.append(CategoryBalance(category_id=category_id, allocated=allocated))

    return tuple(updated)


def allocation_map(ledger: MonthlyLedger) -> dict[str, Money]:
    """Return category_id -> allocated for every category balance."""
    return {cb.category_id: cb.allocated for cb in ledger.category_balances}


def save_draft(ledger: MonthlyLedger, allocations: Allocations) -> MonthlyLedger:
    """Store allocations without applying them.

    Args:
        ledger: Month in DRAFT state.
        allocations: category_id -> amount.

    Returns:
        Retotaled ledger, still DRAFT. End balances are unchanged.

    Raises:
        InvalidTransition: If the month's allocations are already finalized.
    """
    if ledger.allocation_state is not AllocationState.DRAFT:
        raise InvalidTransition(
            f"Cannot save draft allocations for {ledger.key}: allocations are {ledger.allocation_state.value}"
        )

    updated = replace(ledger, category_balances=apply_allocations(ledger.category_balances, allocations))
    return retotal_month(updated)


def finalize(ledger: MonthlyLedger, allocations: Allocations) -> MonthlyLedger:
    """Store allocations and apply them to category end balances.

    Allowed from any state. Finalizing while editing commits the edit.
    """
    updated = replace(
        ledger,
        category_balances=apply_allocations(ledger.category_balances, allocations),
        allocation_state=AllocationState.FINALIZED,
    )
    return retotal_month(updated)


def begin_edit(ledger: MonthlyLedger) -> MonthlyLedger:
    """Enter the editing sub-state of FINALIZED.

    Balances don't change: allocations still count while editing.

    Raises:
        InvalidTransition: Unless the month is FINALIZED.
    """
    if ledger.allocation_state is not AllocationState.FINALIZED:
        raise InvalidTransition(f"Cannot edit allocations for {ledger.key}: allocations are not finalized")
    return replace(ledger, allocation_state=AllocationState.EDITING_FINALIZED)


def cancel_edit(ledger: MonthlyLedger, persisted: MonthlyLedger | None = None) -> MonthlyLedger:
    """Leave editing and restore the last persisted allocations.

    Args:
        ledger: Month in EDITING_FINALIZED state, possibly with edited values.
        persisted: Last persisted copy of the month. Defaults to ledger itself.

    Returns:
        Retotaled ledger in FINALIZED state with persisted allocations.

    Raises:
        InvalidTransition: Unless the month is EDITING_FINALIZED.
    """
    if ledger.allocation_state is not AllocationState.EDITING_FINALIZED:
        raise InvalidTransition(f"Cannot cancel editing for {ledger.key}: allocations are not being edited")

    source = persisted if persisted is not None else ledger
    # Categories added during the edit fall back to zero
    restored: dict[str, object] = dict.fromkeys(allocation_map(ledger), 0)
    restored.update(allocation_map(source))

    updated = replace(
        ledger,
        category_balances=apply_allocations(ledger.category_balances, restored),
        allocation_state=AllocationState.FINALIZED,
    )
    return retotal_month(updated)


def delete_all_allocations(ledger: MonthlyLedger) -> MonthlyLedger:
    """Clear every allocation and return the month to DRAFT.

    Raises:
        InvalidTransition: If the month is still DRAFT.
    """
    if ledger.allocation_state is AllocationState.DRAFT:
        raise InvalidTransition(f"Cannot delete allocations for {ledger.key}: allocations are not finalized")

    cleared = tuple(replace(cb, allocated=round2(0)) for cb in ledger.category_balances)
    return retotal_month(replace(ledger, category_balances=cleared, allocation_state=AllocationState.DRAFT))


def allocation_summary(ledger: MonthlyLedger) -> AllocationSummary:
    """Summarize a month's allocations against last month's income."""
    total_allocated = money_sum(cb.allocated for cb in ledger.category_balances)
    previous_income = round2(ledger.previous_month_income)
    return AllocationSummary(
        state=ledger.allocation_state,
        total_allocated=total_allocated,
        previous_month_income=previous_income,
        available=round2(previous_income - total_allocated),
    )
