"""Exceptions raised by the ledger engine."""

from enum import Enum


class LedgerError(Exception):
    """Base class for all ledger engine errors."""


class NotFound(LedgerError):
    """A month or entry has no document."""

    def __init__(self, message: str, budget_id: str | None = None, year: int | None = None, month: int | None = None):
        super().__init__(message)
        self.budget_id = budget_id
        self.year = year
        self.month = month


class ViolationKind(str, Enum):
    """Why a month may not be created."""

    FUTURE_BOUND = "future_bound"
    PAST_BOUND = "past_bound"
    SKIP_FORWARD = "skip_forward"
    SKIP_BACKWARD = "skip_backward"
    GAP = "gap"


class SequenceViolation(LedgerError):
    """Month creation requested out of sequence or outside the calendar window."""

    def __init__(self, message: str, year: int, month: int, kind: ViolationKind):
        super().__init__(message)
        self.year = year
        self.month = month
        self.kind = kind


class InvalidTransition(LedgerError):
    """Allocation operation not allowed from the month's current state."""


class RecalculationFailure(LedgerError):
    """Retotaling or the cascade raised part-way through."""
