"""Domain models and pure functions for carryover.

This package contains the functional core:
- Pure functions with no side effects
- No I/O operations
- Easy to test
- Business logic separated from infrastructure
"""

from carryover.domain.models import (
    AccountBalance,
    AccountRef,
    AdjustmentEntry,
    AllocationState,
    CategoryBalance,
    CategoryRef,
    ExpenseEntry,
    IncomeEntry,
    Money,
    MonthKey,
    MonthlyLedger,
    TransferEntry,
)

__all__ = [
    "AccountBalance",
    "AccountRef",
    "AdjustmentEntry",
    "AllocationState",
    "CategoryBalance",
    "CategoryRef",
    "ExpenseEntry",
    "IncomeEntry",
    "Money",
    "MonthKey",
    "MonthlyLedger",
    "TransferEntry",
]
