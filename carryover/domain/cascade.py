"""Pure functions for carrying balances forward across months.

This module contains the functional core of the cascade:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test

A month's end balances become the next month's start balances. The cascade
walks forward from an edited month and stops as soon as the next month
already starts from the carried values, so unaffected tails are never
touched. It never walks backward and never creates months.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from carryover.dates import next_month
from carryover.domain.models import (
    ZERO,
    AccountBalance,
    CategoryBalance,
    Money,
    MonthKey,
    MonthlyLedger,
)
from carryover.domain.money import round2
from carryover.domain.retotal import retotal_month


class CascadeStop(str, Enum):
    """Why a cascade walk ended."""

    SETTLED = "settled"  # Next month already started from the carried balances
    END_OF_SEQUENCE = "end_of_sequence"  # No later month exists
    GAP = "gap"  # Next available month is not consecutive


@dataclass(frozen=True)
class BalanceSnapshot:
    """End balances of a month, ready to seed the following month."""

    category_end_balances: Mapping[str, Money] = field(default_factory=dict)
    account_end_balances: Mapping[str, Money] = field(default_factory=dict)
    total_income: Money = ZERO


@dataclass(frozen=True)
class CascadeResult:
    """Months whose stored values must change, in chronological order."""

    updated: tuple[MonthlyLedger, ...]
    stop: CascadeStop


def snapshot(ledger: MonthlyLedger) -> BalanceSnapshot:
    """Extract the end balances of a month."""
    return BalanceSnapshot(
        category_end_balances={cb.category_id: round2(cb.end_balance) for cb in ledger.category_balances},
        account_end_balances={ab.account_id: round2(ab.end_balance) for ab in ledger.account_balances},
        total_income=round2(ledger.total_income),
    )


def seeds_match(ledger: MonthlyLedger, previous: BalanceSnapshot) -> bool:
    """Check whether a month already starts from the given snapshot.

    Args:
        ledger: The later month.
        previous: Snapshot of the month before it.

    Returns:
        True if every start balance equals the carried end balance (ids
        missing from the snapshot carry 0) and previous_month_income matches.
    """
    if round2(ledger.previous_month_income) != previous.total_income:
        return False

    for cb in ledger.category_balances:
        if cb.start_balance != round2(previous.category_end_balances.get(cb.category_id)):
            return False
    for ab in ledger.account_balances:
        if ab.start_balance != round2(previous.account_end_balances.get(ab.account_id)):
            return False

    # Ids only in the snapshot would be added by carry_forward; zero needs no entry
    for category_id, end_balance in previous.category_end_balances.items():
        if ledger.category_balance(category_id) is None and round2(end_balance) != 0:
            return False
    for account_id, end_balance in previous.account_end_balances.items():
        if ledger.account_balance(account_id) is None and round2(end_balance) != 0:
            return False

    return True


def carry_forward(ledger: MonthlyLedger, previous: BalanceSnapshot) -> MonthlyLedger:
    """Seed a month's start balances from the previous month and retotal.

    Args:
        ledger: The month to seed.
        previous: Snapshot of the month before it.

    Returns:
        Retotaled ledger. Categories/accounts present only in the snapshot
        are added with no activity.
    """
    categories: list[CategoryBalance] = []
    for cb in ledger.category_balances:
        start = round2(previous.category_end_balances.get(cb.category_id))
        categories.append(replace(cb, start_balance=start))
    for category_id, end_balance in previous.category_end_balances.items():
        if ledger.category_balance(category_id) is None:
            categories.append(CategoryBalance(category_id=category_id, start_balance=round2(end_balance)))

    accounts: list[AccountBalance] = []
    for ab in ledger.account_balances:
        start = round2(previous.account_end_balances.get(ab.account_id))
        accounts.append(replace(ab, start_balance=start))
    for account_id, end_balance in previous.account_end_balances.items():
        if ledger.account_balance(account_id) is None:
            accounts.append(AccountBalance(account_id=account_id, start_balance=round2(end_balance)))

    seeded = replace(
        ledger,
        category_balances=tuple(categories),
        account_balances=tuple(accounts),
        previous_month_income=previous.total_income,
    )
    return retotal_month(seeded)


def cascade_step(previous: BalanceSnapshot, ledger: MonthlyLedger) -> MonthlyLedger | None:
    """Carry one month forward.

    Returns:
        The reseeded month, or None if it already starts from the snapshot.
    """
    if seeds_match(ledger, previous):
        return None
    return carry_forward(ledger, previous)


def plan_cascade(
    target: MonthlyLedger,
    following: Iterable[MonthlyLedger],
    previous: BalanceSnapshot | None = None,
) -> CascadeResult:
    """Recompute a month and every later month its change reaches.

    following is consumed lazily and no further than needed, so callers can
    pass a generator that loads months on demand.

    Args:
        target: The edited month.
        following: Later months in chronological order.
        previous: Snapshot of the month before target. If None target keeps
            its own start balances.

    Returns:
        CascadeResult listing the months whose values changed. target is
        included only if recomputing it changed anything.
    """
    current = carry_forward(target, previous) if previous is not None else retotal_month(target)
    updated: list[MonthlyLedger] = [current] if current != target else []

    for ledger in following:
        if ledger.key != next_month(current.key):
            return CascadeResult(tuple(updated), CascadeStop.GAP)

        step = cascade_step(snapshot(current), ledger)
        if step is None:
            return CascadeResult(tuple(updated), CascadeStop.SETTLED)

        updated.append(step)
        current = step

    return CascadeResult(tuple(updated), CascadeStop.END_OF_SEQUENCE)


def recalculate_sequence(
    months: Sequence[MonthlyLedger],
    previous: BalanceSnapshot | None = None,
) -> tuple[MonthlyLedger, ...]:
    """Recompute every month in order without early termination.

    Args:
        months: Months in chronological order.
        previous: Snapshot seeding the first month. If None the first month
            keeps its own start balances.

    Returns:
        The months whose values changed, in order. A month following a gap
        keeps its own start balances.
    """
    updated: list[MonthlyLedger] = []
    prior: MonthlyLedger | None = None

    for ledger in months:
        if prior is not None and ledger.key == next_month(prior.key):
            recomputed = carry_forward(ledger, snapshot(prior))
        elif prior is None and previous is not None:
            recomputed = carry_forward(ledger, previous)
        else:
            recomputed = retotal_month(ledger)

        if recomputed != ledger:
            updated.append(recomputed)
        prior = recomputed

    return tuple(updated)


def open_month(
    budget_id: str,
    key: MonthKey,
    previous: MonthlyLedger | None,
    now: datetime | None = None,
    known_category_ids: Iterable[str] = (),
    known_account_ids: Iterable[str] = (),
) -> MonthlyLedger:
    """Build a new empty month.

    Args:
        budget_id: Budget the month belongs to.
        key: The month to create.
        previous: The month immediately before, if it exists.
        now: Creation timestamp.
        known_category_ids: Categories to list at zero when there is no
            previous month.
        known_account_ids: Accounts to list at zero when there is no
            previous month.

    Returns:
        A DRAFT ledger with no transactions, seeded from previous.
    """
    empty = MonthlyLedger(budget_id=budget_id, year=key.year, month=key.month, created_at=now, updated_at=now)
    if previous is None:
        return retotal_month(empty, known_category_ids, known_account_ids)
    return carry_forward(empty, snapshot(previous))
