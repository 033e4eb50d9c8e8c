"""Pure functions for retotaling a month from its transaction lists.

This module contains the functional core for balance derivation:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test

Retotaling recomputes totals, account balances and category spent/end
balances. Source values (start_balance, allocated) are preserved, so running
it on its own output changes nothing.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from carryover.domain.models import (
    AccountBalance,
    AllocationState,
    CategoryBalance,
    Money,
    MonthlyLedger,
    account_id_of,
    category_id_of,
)
from carryover.domain.money import money_sum, round2, to_decimal


def category_end_balance(
    start_balance: Money,
    allocated: Money,
    spent: Money,
    transfers: Money,
    adjustments: Money,
    state: AllocationState,
) -> Money:
    """Calculate a category's end balance.

    Args:
        start_balance: Balance carried in from the previous month.
        allocated: Amount allocated this month.
        spent: Expense total (negative for money out).
        transfers: Net category transfer effect.
        adjustments: Adjustment entry total.
        state: Allocation state. Draft allocations are ignored.

    Returns:
        Rounded end balance.
    """
    applied = allocated if state.counts_allocations else Money(Decimal(0))
    return round2(start_balance + applied + spent + transfers + adjustments)


def retotal_month(
    ledger: MonthlyLedger,
    known_category_ids: Iterable[str] = (),
    known_account_ids: Iterable[str] = (),
) -> MonthlyLedger:
    """Re-total a month from its current transactions.

    Args:
        ledger: The month to retotal.
        known_category_ids: Category ids known to the budget. Each gets a
            balance entry even without activity this month.
        known_account_ids: Account ids known to the budget, likewise.

    Returns:
        New ledger with total_income, total_expenses, account_balances and
        category_balances recomputed.
    """
    return replace(
        ledger,
        total_income=money_sum(entry.amount for entry in ledger.income),
        total_expenses=money_sum(entry.amount for entry in ledger.expenses),
        account_balances=retotal_account_balances(ledger, known_account_ids),
        category_balances=retotal_category_balances(ledger, known_category_ids),
    )


def retotal_account_balances(
    ledger: MonthlyLedger,
    known_account_ids: Iterable[str] = (),
) -> tuple[AccountBalance, ...]:
    """Recompute account balances from all transaction types.

    Args:
        ledger: The month.
        known_account_ids: Extra account ids to include with zero activity.

    Returns:
        One AccountBalance per account that has an existing balance, any
        activity, or listed in known_account_ids. Existing balances keep
        their order; new accounts follow in first-seen order. NoAccount is
        never included.
    """
    existing = {ab.account_id: ab for ab in ledger.account_balances}
    account_ids: dict[str, None] = dict.fromkeys(existing)

    income: dict[str, Decimal] = defaultdict(Decimal)
    expenses: dict[str, Decimal] = defaultdict(Decimal)
    transfers: dict[str, Decimal] = defaultdict(Decimal)
    adjustments: dict[str, Decimal] = defaultdict(Decimal)

    for inc in ledger.income:
        account_id = account_id_of(inc.account)
        if account_id is not None:
            account_ids.setdefault(account_id)
            income[account_id] += to_decimal(inc.amount)

    for exp in ledger.expenses:
        account_id = account_id_of(exp.account)
        if account_id is not None:
            account_ids.setdefault(account_id)
            expenses[account_id] += to_decimal(exp.amount)

    for transfer in ledger.transfers:
        amount = to_decimal(transfer.amount)
        from_id = account_id_of(transfer.from_account)
        if from_id is not None:
            account_ids.setdefault(from_id)
            transfers[from_id] -= amount
        to_id = account_id_of(transfer.to_account)
        if to_id is not None:
            account_ids.setdefault(to_id)
            transfers[to_id] += amount

    for adjustment in ledger.adjustments:
        account_id = account_id_of(adjustment.account)
        if account_id is not None:
            account_ids.setdefault(account_id)
            adjustments[account_id] += to_decimal(adjustment.amount)

    for account_id in known_account_ids:
        account_ids.setdefault(account_id)

    balances: list[AccountBalance] = []
    for account_id in account_ids:
        previous = existing.get(account_id)
        start_balance = round2(previous.start_balance if previous else None)
        income_total = round2(income.get(account_id))
        expenses_total = round2(expenses.get(account_id))
        transfers_total = round2(transfers.get(account_id))
        adjustments_total = round2(adjustments.get(account_id))
        net_change = round2(income_total + expenses_total + transfers_total + adjustments_total)

        balances.append(
            AccountBalance(
                account_id=account_id,
                start_balance=start_balance,
                income=income_total,
                expenses=expenses_total,
                transfers=transfers_total,
                adjustments=adjustments_total,
                net_change=net_change,
                end_balance=round2(start_balance + net_change),
            )
        )

    return tuple(balances)


def retotal_category_balances(
    ledger: MonthlyLedger,
    known_category_ids: Iterable[str] = (),
) -> tuple[CategoryBalance, ...]:
    """Recompute category spent/transfers/adjustments and end balances.

    Args:
        ledger: The month.
        known_category_ids: Extra category ids to include with zero activity.

    Returns:
        One CategoryBalance per category with an existing balance, any
        activity, or listed in known_category_ids. Uncategorized is never
        included.
    """
    existing = {cb.category_id: cb for cb in ledger.category_balances}
    category_ids: dict[str, None] = dict.fromkeys(existing)

    spent: dict[str, Decimal] = defaultdict(Decimal)
    transfers: dict[str, Decimal] = defaultdict(Decimal)
    adjustments: dict[str, Decimal] = defaultdict(Decimal)

    for exp in ledger.expenses:
        category_id = category_id_of(exp.category)
        if category_id is not None:
            category_ids.setdefault(category_id)
            spent[category_id] += to_decimal(exp.amount)

    for transfer in ledger.transfers:
        amount = to_decimal(transfer.amount)
        from_id = category_id_of(transfer.from_category)
        if from_id is not None:
            category_ids.setdefault(from_id)
            transfers[from_id] -= amount
        to_id = category_id_of(transfer.to_category)
        if to_id is not None:
            category_ids.setdefault(to_id)
            transfers[to_id] += amount

    for adjustment in ledger.adjustments:
        category_id = category_id_of(adjustment.category)
        if category_id is not None:
            category_ids.setdefault(category_id)
            adjustments[category_id] += to_decimal(adjustment.amount)

    for category_id in known_category_ids:
        category_ids.setdefault(category_id)

    balances: list[CategoryBalance] = []
    for category_id in category_ids:
        previous = existing.get(category_id)
        start_balance = round2(previous.start_balance if previous else None)
        allocated = round2(previous.allocated if previous else None)
        spent_total = round2(spent.get(category_id))
        transfers_total = round2(transfers.get(category_id))
        adjustments_total = round2(adjustments.get(category_id))

        balances.append(
            CategoryBalance(
                category_id=category_id,
                start_balance=start_balance,
                allocated=allocated,
                spent=spent_total,
                transfers=transfers_total,
                adjustments=adjustments_total,
                end_balance=category_end_balance(
                    start_balance,
                    allocated,
                    spent_total,
                    transfers_total,
                    adjustments_total,
                    ledger.allocation_state,
                ),
            )
        )

    return tuple(balances)
