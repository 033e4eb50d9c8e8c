"""Pure functions for adding, updating and removing transaction entries.

Each function returns a retotaled ledger. Amounts are rounded on the way in.
"""

from dataclasses import replace
from typing import Any

from carryover.domain.errors import NotFound
from carryover.domain.models import (
    AdjustmentEntry,
    Entry,
    ExpenseEntry,
    IncomeEntry,
    MonthlyLedger,
    TransferEntry,
)
from carryover.domain.money import round2
from carryover.domain.retotal import retotal_month

# Entry type -> MonthlyLedger field holding that kind of entry
ENTRY_FIELDS: dict[type, str] = {
    IncomeEntry: "income",
    ExpenseEntry: "expenses",
    TransferEntry: "transfers",
    AdjustmentEntry: "adjustments",
}


def _field_for(entry: Entry) -> str:
    try:
        return ENTRY_FIELDS[type(entry)]
    except KeyError:
        raise TypeError(f"Not a ledger entry: {entry!r}") from None


def _normalized(entry: Entry) -> Entry:
    """Round the amount and check transfers are unsigned.

    Raises:
        ValueError: If a transfer amount is negative.
    """
    amount = round2(entry.amount)
    if isinstance(entry, TransferEntry) and amount < 0:
        raise ValueError(f"Transfer {entry.id} amount must not be negative, got {amount}")
    return replace(entry, amount=amount)


def find_entry(ledger: MonthlyLedger, entry_id: str) -> Entry | None:
    """Find an entry of any kind by id."""
    for field_name in ENTRY_FIELDS.values():
        for entry in getattr(ledger, field_name):
            if entry.id == entry_id:
                return entry
    return None


def add_entry(ledger: MonthlyLedger, entry: Entry) -> MonthlyLedger:
    """Append an entry and retotal.

    Raises:
        ValueError: If an entry with the same id already exists, or a
            transfer amount is negative.
    """
    if find_entry(ledger, entry.id) is not None:
        raise ValueError(f"Entry {entry.id} already exists in {ledger.key}")

    field_name = _field_for(entry)
    entries = getattr(ledger, field_name) + (_normalized(entry),)
    return retotal_month(replace(ledger, **{field_name: entries}))


def update_entry(ledger: MonthlyLedger, entry_id: str, **changes: Any) -> MonthlyLedger:
    """Change fields of an existing entry and retotal.

    Args:
        ledger: The month.
        entry_id: Id of the entry to change.
        **changes: Field values to replace (e.g. amount=..., cleared=True).

    Raises:
        NotFound: If no entry has that id.
        ValueError: If a transfer amount would become negative.
    """
    existing = find_entry(ledger, entry_id)
    if existing is None:
        raise NotFound(f"Entry {entry_id} not found in {ledger.key}", ledger.budget_id, ledger.year, ledger.month)

    updated_entry = _normalized(replace(existing, **changes))

    field_name = _field_for(existing)
    entries = tuple(updated_entry if e.id == entry_id else e for e in getattr(ledger, field_name))
    return retotal_month(replace(ledger, **{field_name: entries}))


def remove_entry(ledger: MonthlyLedger, entry_id: str) -> MonthlyLedger:
    """Delete an entry and retotal.

    Raises:
        NotFound: If no entry has that id.
    """
    existing = find_entry(ledger, entry_id)
    if existing is None:
        raise NotFound(f"Entry {entry_id} not found in {ledger.key}", ledger.budget_id, ledger.year, ledger.month)

    field_name = _field_for(existing)
    entries = tuple(e for e in getattr(ledger, field_name) if e.id != entry_id)
    return retotal_month(replace(ledger, **{field_name: entries}))
