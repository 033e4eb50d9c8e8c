"""Imperative shell around the ledger domain functions.

LedgerEngine reads months from a LedgerRepository, applies the pure domain
functions and writes the results back. Mutations are serialized per
(budget_id, year, month) key.
"""

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from carryover.dates import next_month, prev_month
from carryover.domain import allocations as lifecycle
from carryover.domain import entries
from carryover.domain.cascade import (
    CascadeStop,
    open_month,
    plan_cascade,
    recalculate_sequence,
    snapshot,
)
from carryover.domain.cleared import ClearedSplit
from carryover.domain.cleared import split_cleared_balances as split_ledger
from carryover.domain.errors import LedgerError, NotFound, RecalculationFailure
from carryover.domain.models import Entry, MonthKey, MonthlyLedger
from carryover.domain.navigator import (
    DEFAULT_WINDOW_MONTHS,
    CreationReason,
    MonthCreationResult,
    NavigationState,
    next_month_navigation,
    prev_month_navigation,
)
from carryover.domain.navigator import can_create_month as check_creation
from carryover.store.repository import LedgerRepository

logger = logging.getLogger(__name__)


class KeyedLocks:
    """One re-entrant lock per (budget_id, year, month).

    Locks are created on first use and kept for the life of the registry,
    one per month touched. Call prune() from long-running processes.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, int, int], threading.RLock] = {}

    def get(self, budget_id: str, year: int, month: int) -> threading.RLock:
        key = (budget_id, year, month)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, budget_id: str, year: int, month: int) -> Iterator[None]:
        with self.get(budget_id, year, month):
            yield

    def prune(self) -> int:
        """Drop locks nobody holds. Returns how many were dropped.

        Run it between operations: a thread that has fetched a lock but not
        yet acquired it would otherwise end up with a stale one.
        """
        dropped = 0
        with self._guard:
            for key, lock in list(self._locks.items()):
                # Non-blocking acquire fails if another thread holds it
                if not lock.acquire(blocking=False):
                    continue
                try:
                    del self._locks[key]
                    dropped += 1
                finally:
                    lock.release()
        return dropped

    def __len__(self) -> int:
        return len(self._locks)


@dataclass(frozen=True)
class CascadeReport:
    """Which months a recalculation wrote and why it stopped."""

    months_written: tuple[MonthKey, ...]
    stop: CascadeStop


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutation.

    cascade is None when no cascade ran or it failed; failures are listed in
    warnings and the mutation itself is kept.
    """

    ledger: MonthlyLedger
    cascade: CascadeReport | None = None
    warnings: tuple[str, ...] = ()


class LedgerEngine:
    """Operations on a budget's monthly ledgers."""

    def __init__(
        self,
        repository: LedgerRepository,
        *,
        window_months: int = DEFAULT_WINDOW_MONTHS,
        today: Callable[[], date] = date.today,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.window_months = window_months
        self.today = today
        self.clock = clock
        self.locks = KeyedLocks()

    # Reads

    def get_month(self, budget_id: str, year: int, month: int) -> MonthlyLedger:
        """Read a month.

        Raises:
            NotFound: If the month has no document.
        """
        ledger = self.repository.read_month(budget_id, year, month)
        if ledger is None:
            raise NotFound(f"Month {MonthKey(year, month)} not found in budget {budget_id}", budget_id, year, month)
        return ledger

    def month_keys(self, budget_id: str) -> list[MonthKey]:
        """Existing months in chronological order."""
        return sorted(self.repository.month_keys(budget_id))

    def split_cleared_balances(self, budget_id: str, year: int, month: int) -> dict[str, ClearedSplit]:
        """Reconciliation view of every account in a month.

        Raises:
            NotFound: If the month has no document.
        """
        return split_ledger(self.get_month(budget_id, year, month))

    # Month sequence

    def can_create_month(self, budget_id: str, year: int, month: int) -> MonthCreationResult:
        """Check a month against the budget's month map and today's date."""
        return check_creation(year, month, self.repository.month_keys(budget_id), self.today(), self.window_months)

    def navigation(self, budget_id: str, year: int, month: int) -> tuple[NavigationState, NavigationState]:
        """Return (previous, next) navigation states for a month."""
        month_map = self.repository.month_keys(budget_id)
        current = MonthKey(year, month)
        today = self.today()
        return (
            prev_month_navigation(current, month_map, today, self.window_months),
            next_month_navigation(current, month_map, today, self.window_months),
        )

    def create_month(self, budget_id: str, year: int, month: int) -> MonthlyLedger:
        """Open a month, seeded from the month before it when walking forward.

        Returns:
            The stored month. An existing month is returned unchanged.

        Raises:
            SequenceViolation: If the month may not be created.
        """
        key = MonthKey(year, month)
        with self.locks.hold(budget_id, year, month):
            existing = self.repository.read_month(budget_id, year, month)
            if existing is not None:
                return existing

            check = self.can_create_month(budget_id, year, month)
            if not check.allowed:
                assert check.error is not None
                raise check.error

            previous = None
            known_categories: tuple[str, ...] = ()
            known_accounts: tuple[str, ...] = ()
            if check.reason is CreationReason.WALK_FORWARD:
                before = prev_month(key)
                previous = self.repository.read_month(budget_id, before.year, before.month)
            elif check.reason is CreationReason.WALK_BACK:
                after = next_month(key)
                earliest = self.repository.read_month(budget_id, after.year, after.month)
                if earliest is not None:
                    known_categories = tuple(cb.category_id for cb in earliest.category_balances)
                    known_accounts = tuple(ab.account_id for ab in earliest.account_balances)

            ledger = open_month(
                budget_id,
                key,
                previous,
                now=self.clock(),
                known_category_ids=known_categories,
                known_account_ids=known_accounts,
            )
            stored = self.repository.write_month(budget_id, ledger, update_sequence_map=True)
            logger.info("Created budget %s month %s", budget_id, key)
            return stored

    # Recalculation

    def recalculate_and_cascade(self, budget_id: str, year: int, month: int) -> CascadeReport:
        """Recompute a month and carry its end balances forward.

        The month is reseeded from the month before it if that exists. The
        walk stops at the first later month that already starts from the
        carried balances, at the latest month, or at a gap.

        Raises:
            NotFound: If the month has no document.
            RecalculationFailure: If recomputation or a store call fails
                part-way through. Months already written stay written.
        """
        with self.locks.hold(budget_id, year, month):
            ledger = self.get_month(budget_id, year, month)
            try:
                return self._cascade(budget_id, ledger)
            except LedgerError:
                raise
            except Exception as e:
                raise RecalculationFailure(f"Recalculation of {ledger.key} in budget {budget_id} failed: {e}") from e

    def _later_months(self, budget_id: str, after: MonthKey) -> Iterator[MonthlyLedger]:
        """Load the months after a month on demand, in month map order."""
        for key in sorted(k for k in self.repository.month_keys(budget_id) if k > after):
            with self.locks.hold(budget_id, key.year, key.month):
                ledger = self.repository.read_month(budget_id, key.year, key.month)
            if ledger is None:
                # Skipping it makes the walk stop at a gap
                logger.warning("Budget %s month %s is in the month map but has no document", budget_id, key)
                continue
            yield ledger

    def _cascade(self, budget_id: str, ledger: MonthlyLedger) -> CascadeReport:
        # Caller holds the lock for ledger's month; later months are locked one at a time
        before = prev_month(ledger.key)
        previous = self.repository.read_month(budget_id, before.year, before.month)
        plan = plan_cascade(
            ledger,
            self._later_months(budget_id, ledger.key),
            snapshot(previous) if previous is not None else None,
        )

        written: list[MonthKey] = []
        for updated in plan.updated:
            with self.locks.hold(budget_id, updated.year, updated.month):
                stored = self.repository.write_month(budget_id, updated, update_sequence_map=False)
            written.append(stored.key)

        logger.info(
            "Recalculated budget %s from %s: %d month(s) written, stopped (%s)",
            budget_id,
            ledger.key,
            len(written),
            plan.stop.value,
        )
        return CascadeReport(tuple(written), plan.stop)

    def recalculate_all(self, budget_id: str) -> CascadeReport:
        """Recompute every month from the earliest one, without early stop.

        Raises:
            RecalculationFailure: If recomputation or a store call fails.
        """
        try:
            months: list[MonthlyLedger] = []
            for key in self.month_keys(budget_id):
                ledger = self.repository.read_month(budget_id, key.year, key.month)
                if ledger is not None:
                    months.append(ledger)

            written: list[MonthKey] = []
            for updated in recalculate_sequence(months):
                with self.locks.hold(budget_id, updated.year, updated.month):
                    stored = self.repository.write_month(budget_id, updated, update_sequence_map=False)
                written.append(stored.key)
        except LedgerError:
            raise
        except Exception as e:
            raise RecalculationFailure(f"Full recalculation of budget {budget_id} failed: {e}") from e

        logger.info("Recalculated all of budget %s: %d month(s) written", budget_id, len(written))
        return CascadeReport(tuple(written), CascadeStop.END_OF_SEQUENCE)

    def _cascade_after_write(self, budget_id: str, stored: MonthlyLedger) -> OperationResult:
        """Cascade from a month just written. Failure leaves the write in place."""
        try:
            report = self.recalculate_and_cascade(budget_id, stored.year, stored.month)
        except RecalculationFailure as e:
            logger.warning("Budget %s month %s saved but recalculation failed: %s", budget_id, stored.key, e)
            return OperationResult(stored, None, (str(e),))

        latest = self.repository.read_month(budget_id, stored.year, stored.month) or stored
        return OperationResult(latest, report)

    def _mutate(
        self,
        budget_id: str,
        year: int,
        month: int,
        change: Callable[[MonthlyLedger], MonthlyLedger],
        cascade: bool = True,
    ) -> OperationResult:
        with self.locks.hold(budget_id, year, month):
            ledger = self.get_month(budget_id, year, month)
            stored = self.repository.write_month(budget_id, change(ledger), update_sequence_map=False)
            if not cascade:
                return OperationResult(stored)
            return self._cascade_after_write(budget_id, stored)

    # Allocations

    def save_draft(self, budget_id: str, year: int, month: int, allocations: Mapping[str, object]) -> OperationResult:
        """Store draft allocations. End balances are unchanged, so nothing cascades.

        Raises:
            NotFound: If the month has no document.
            InvalidTransition: If the month's allocations are finalized.
        """
        return self._mutate(budget_id, year, month, lambda ledger: lifecycle.save_draft(ledger, allocations), False)

    def finalize(self, budget_id: str, year: int, month: int, allocations: Mapping[str, object]) -> OperationResult:
        """Apply allocations to end balances and cascade.

        Raises:
            NotFound: If the month has no document.
        """
        return self._mutate(budget_id, year, month, lambda ledger: lifecycle.finalize(ledger, allocations))

    def begin_edit(self, budget_id: str, year: int, month: int) -> OperationResult:
        """Mark a finalized month as being edited.

        Raises:
            NotFound: If the month has no document.
            InvalidTransition: Unless the month is finalized.
        """
        return self._mutate(budget_id, year, month, lifecycle.begin_edit, False)

    def cancel_edit(self, budget_id: str, year: int, month: int) -> OperationResult:
        """Leave editing, restoring the stored allocations.

        Raises:
            NotFound: If the month has no document.
            InvalidTransition: Unless the month is being edited.
        """
        return self._mutate(budget_id, year, month, lifecycle.cancel_edit)

    def delete_all_allocations(self, budget_id: str, year: int, month: int) -> OperationResult:
        """Zero every allocation, return the month to draft and cascade.

        Raises:
            NotFound: If the month has no document.
            InvalidTransition: If the month is still draft.
        """
        return self._mutate(budget_id, year, month, lifecycle.delete_all_allocations)

    # Entries

    def add_entry(self, budget_id: str, year: int, month: int, entry: Entry) -> OperationResult:
        """Add a transaction and cascade.

        Raises:
            NotFound: If the month has no document.
            ValueError: If the entry id is already used in the month.
        """
        return self._mutate(budget_id, year, month, lambda ledger: entries.add_entry(ledger, entry))

    def update_entry(self, budget_id: str, year: int, month: int, entry_id: str, **changes: Any) -> OperationResult:
        """Change a transaction and cascade.

        Raises:
            NotFound: If the month or entry doesn't exist.
        """
        return self._mutate(budget_id, year, month, lambda ledger: entries.update_entry(ledger, entry_id, **changes))

    def remove_entry(self, budget_id: str, year: int, month: int, entry_id: str) -> OperationResult:
        """Delete a transaction and cascade.

        Raises:
            NotFound: If the month or entry doesn't exist.
        """
        return self._mutate(budget_id, year, month, lambda ledger: entries.remove_entry(ledger, entry_id))
