"""Pure functions for reconciliation (cleared vs. all-transaction) balances.

Read-only view: nothing here changes the ledger.
"""

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from carryover.domain.models import Money, MonthlyLedger, account_id_of
from carryover.domain.money import round2, to_decimal


@dataclass(frozen=True)
class ClearedSplit:
    """Immutable reconciliation view of one account."""

    account_id: str
    start_balance: Money
    cleared_balance: Money  # Income plus cleared expenses/transfers/adjustments
    uncleared_balance: Money  # Everything, regardless of cleared flag

    @property
    def pending(self) -> Money:
        """Net amount of transactions not yet cleared."""
        return round2(self.uncleared_balance - self.cleared_balance)


def split_cleared_balances(
    ledger: MonthlyLedger,
    seeds: Mapping[str, object] | None = None,
) -> dict[str, ClearedSplit]:
    """Derive cleared and uncleared balances for every account in a month.

    Args:
        ledger: The month.
        seeds: account_id -> start balance. Accounts not listed fall back to
            the ledger's own start balance, then 0.

    Returns:
        Dictionary of account_id -> ClearedSplit, in first-seen order.
    """
    seeds = seeds or {}
    account_ids: dict[str, None] = dict.fromkeys(ab.account_id for ab in ledger.account_balances)
    account_ids.update(dict.fromkeys(seeds))

    cleared: dict[str, Decimal] = defaultdict(Decimal)
    uncleared: dict[str, Decimal] = defaultdict(Decimal)

    def post(account_id: str | None, amount: Decimal, is_cleared: bool) -> None:
        if account_id is None:
            return
        account_ids.setdefault(account_id)
        uncleared[account_id] += amount
        if is_cleared:
            cleared[account_id] += amount

    # Income has no cleared concept and always counts
    for inc in ledger.income:
        post(account_id_of(inc.account), to_decimal(inc.amount), True)

    for exp in ledger.expenses:
        post(account_id_of(exp.account), to_decimal(exp.amount), exp.cleared is True)

    for transfer in ledger.transfers:
        amount = to_decimal(transfer.amount)
        is_cleared = transfer.cleared is True
        post(account_id_of(transfer.from_account), -amount, is_cleared)
        post(account_id_of(transfer.to_account), amount, is_cleared)

    for adjustment in ledger.adjustments:
        post(account_id_of(adjustment.account), to_decimal(adjustment.amount), adjustment.cleared is True)

    splits: dict[str, ClearedSplit] = {}
    for account_id in account_ids:
        if account_id in seeds:
            start = round2(seeds[account_id])
        else:
            existing = ledger.account_balance(account_id)
            start = round2(existing.start_balance if existing else None)

        splits[account_id] = ClearedSplit(
            account_id=account_id,
            start_balance=start,
            cleared_balance=round2(start + cleared[account_id]),
            uncleared_balance=round2(start + uncleared[account_id]),
        )

    return splits
