"""Domain type definitions for carryover.

These types describe one budget's monthly ledgers:
- Money: Amount as a Decimal quantized to cents
- MonthKey: A (year, month) pair that orders chronologically
- CategoryRef / AccountRef: Either a specific id or the "none" variant
- Transaction entries, per-month balances and the MonthlyLedger itself

Every record is frozen. Changes are made with dataclasses.replace().
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import NewType

# Money amounts are Decimals with exactly two places (see carryover.domain.money)
Money = NewType("Money", Decimal)

ZERO = Money(Decimal("0.00"))


@dataclass(frozen=True, order=True)
class MonthKey:
    """A calendar month. Orders chronologically."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")

    @property
    def ordinal(self) -> int:
        """Months since year 0, so consecutive months differ by exactly one."""
        return self.year * 12 + (self.month - 1)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "MonthKey":
        year, index = divmod(ordinal, 12)
        return cls(year, index + 1)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class SpecificCategory:
    """A real budget category."""

    id: str


@dataclass(frozen=True)
class Uncategorized:
    """Entries that belong to no category. Never tracks a balance."""


@dataclass(frozen=True)
class SpecificAccount:
    """A real account."""

    id: str


@dataclass(frozen=True)
class NoAccount:
    """Entries that belong to no account. Never tracks a balance."""


CategoryRef = SpecificCategory | Uncategorized
AccountRef = SpecificAccount | NoAccount

UNCATEGORIZED = Uncategorized()
NO_ACCOUNT = NoAccount()


def category_id_of(ref: CategoryRef) -> str | None:
    """Return the category id, or None for Uncategorized."""
    if isinstance(ref, SpecificCategory):
        return ref.id
    return None


def account_id_of(ref: AccountRef) -> str | None:
    """Return the account id, or None for NoAccount."""
    if isinstance(ref, SpecificAccount):
        return ref.id
    return None


@dataclass(frozen=True)
class IncomeEntry:
    """Money coming into an account. Income has no category."""

    id: str
    account: AccountRef
    amount: Money  # Positive = money in
    date: date
    cleared: bool | None = None
    payee: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ExpenseEntry:
    """Spending from an account against a category."""

    id: str
    account: AccountRef
    category: CategoryRef
    amount: Money  # Negative = money out, positive = refund
    date: date
    cleared: bool | None = None
    payee: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class AdjustmentEntry:
    """Correction to an account and/or category balance."""

    id: str
    account: AccountRef
    category: CategoryRef
    amount: Money  # Signed, same convention as expenses
    date: date
    cleared: bool | None = None
    payee: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class TransferEntry:
    """Move money between accounts and/or categories.

    The amount is unsigned: it is subtracted on the from side and added on
    the to side.
    """

    id: str
    from_account: AccountRef
    to_account: AccountRef
    from_category: CategoryRef
    to_category: CategoryRef
    amount: Money
    date: date
    cleared: bool | None = None
    description: str | None = None


Entry = IncomeEntry | ExpenseEntry | AdjustmentEntry | TransferEntry


@dataclass(frozen=True)
class CategoryBalance:
    """Per-category balance for one month.

    start_balance and allocated are source values. Everything else is derived
    by the retotaling engine.
    """

    category_id: str
    start_balance: Money = ZERO
    allocated: Money = ZERO
    spent: Money = ZERO  # Negative for money out
    transfers: Money = ZERO
    adjustments: Money = ZERO
    end_balance: Money = ZERO


@dataclass(frozen=True)
class AccountBalance:
    """Per-account balance for one month. Only start_balance is a source value."""

    account_id: str
    start_balance: Money = ZERO
    income: Money = ZERO
    expenses: Money = ZERO
    transfers: Money = ZERO
    adjustments: Money = ZERO
    net_change: Money = ZERO
    end_balance: Money = ZERO


class AllocationState(str, Enum):
    """Lifecycle of a month's category allocations."""

    DRAFT = "draft"
    FINALIZED = "finalized"
    EDITING_FINALIZED = "editing_finalized"

    @property
    def counts_allocations(self) -> bool:
        """Whether allocated amounts flow into category end balances."""
        return self is not AllocationState.DRAFT


@dataclass(frozen=True)
class MonthlyLedger:
    """One budget month: its transactions and the balances derived from them."""

    budget_id: str
    year: int
    month: int
    income: tuple[IncomeEntry, ...] = ()
    expenses: tuple[ExpenseEntry, ...] = ()
    transfers: tuple[TransferEntry, ...] = ()
    adjustments: tuple[AdjustmentEntry, ...] = ()
    category_balances: tuple[CategoryBalance, ...] = ()
    account_balances: tuple[AccountBalance, ...] = ()
    total_income: Money = ZERO
    total_expenses: Money = ZERO
    previous_month_income: Money = ZERO
    allocation_state: AllocationState = AllocationState.DRAFT
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")

    @property
    def key(self) -> MonthKey:
        return MonthKey(self.year, self.month)

    @property
    def allocations_finalized(self) -> bool:
        return self.allocation_state.counts_allocations

    def category_balance(self, category_id: str) -> CategoryBalance | None:
        for balance in self.category_balances:
            if balance.category_id == category_id:
                return balance
        return None

    def account_balance(self, account_id: str) -> AccountBalance | None:
        for balance in self.account_balances:
            if balance.account_id == account_id:
                return balance
        return None
