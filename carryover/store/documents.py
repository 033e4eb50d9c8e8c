"""Conversion between MonthlyLedger and its stored JSON document.

Amounts are stored as decimal strings so nothing passes through a float.
Reading is tolerant: missing fields default, unparseable amounts become 0,
and documents written with the older `are_allocations_finalized` flag are
understood.
"""

import json
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, TypeVar

from carryover.domain.models import (
    NO_ACCOUNT,
    UNCATEGORIZED,
    AccountBalance,
    AccountRef,
    AdjustmentEntry,
    AllocationState,
    CategoryBalance,
    CategoryRef,
    ExpenseEntry,
    IncomeEntry,
    MonthlyLedger,
    SpecificAccount,
    SpecificCategory,
    TransferEntry,
    account_id_of,
    category_id_of,
)
from carryover.domain.money import round2

# Sentinel ids used on the wire for the "none" variants
NO_CATEGORY_ID = "__NO_CATEGORY__"
NO_ACCOUNT_ID = "__NO_ACCOUNT__"

T = TypeVar("T")


def _money(value: object) -> str:
    return str(round2(value))


def _category_ref(value: Any) -> CategoryRef:
    if not value or value == NO_CATEGORY_ID:
        return UNCATEGORIZED
    return SpecificCategory(str(value))


def _account_ref(value: Any) -> AccountRef:
    if not value or value == NO_ACCOUNT_ID:
        return NO_ACCOUNT
    return SpecificAccount(str(value))


def _category_id(ref: CategoryRef) -> str:
    return category_id_of(ref) or NO_CATEGORY_ID


def _account_id(ref: AccountRef) -> str:
    return account_id_of(ref) or NO_ACCOUNT_ID


def _date(value: Any) -> date:
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return date.min


def _datetime(value: Any) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def _cleared(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _allocation_state(doc: dict[str, Any]) -> AllocationState:
    state = doc.get("allocation_state")
    if state:
        try:
            return AllocationState(state)
        except ValueError:
            pass
    # Older documents only carry a finalized flag
    if doc.get("are_allocations_finalized"):
        return AllocationState.FINALIZED
    return AllocationState.DRAFT


def _items(doc: dict[str, Any], key: str, parse: Callable[[dict[str, Any]], T]) -> tuple[T, ...]:
    items = doc.get(key) or []
    return tuple(parse(item) for item in items if isinstance(item, dict))


def _income_to_doc(entry: IncomeEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "account_id": _account_id(entry.account),
        "amount": _money(entry.amount),
        "date": entry.date.isoformat(),
        "cleared": entry.cleared,
        "payee": entry.payee,
        "description": entry.description,
    }


def _income_from_doc(item: dict[str, Any]) -> IncomeEntry:
    return IncomeEntry(
        id=str(item.get("id", "")),
        account=_account_ref(item.get("account_id")),
        amount=round2(item.get("amount")),
        date=_date(item.get("date")),
        cleared=_cleared(item.get("cleared")),
        payee=item.get("payee"),
        description=item.get("description"),
    )


def _expense_to_doc(entry: ExpenseEntry | AdjustmentEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "account_id": _account_id(entry.account),
        "category_id": _category_id(entry.category),
        "amount": _money(entry.amount),
        "date": entry.date.isoformat(),
        "cleared": entry.cleared,
        "payee": entry.payee,
        "description": entry.description,
    }


def _expense_from_doc(item: dict[str, Any]) -> ExpenseEntry:
    return ExpenseEntry(
        id=str(item.get("id", "")),
        account=_account_ref(item.get("account_id")),
        category=_category_ref(item.get("category_id")),
        amount=round2(item.get("amount")),
        date=_date(item.get("date")),
        cleared=_cleared(item.get("cleared")),
        payee=item.get("payee"),
        description=item.get("description"),
    )


def _adjustment_from_doc(item: dict[str, Any]) -> AdjustmentEntry:
    return AdjustmentEntry(
        id=str(item.get("id", "")),
        account=_account_ref(item.get("account_id")),
        category=_category_ref(item.get("category_id")),
        amount=round2(item.get("amount")),
        date=_date(item.get("date")),
        cleared=_cleared(item.get("cleared")),
        payee=item.get("payee"),
        description=item.get("description"),
    )


def _transfer_to_doc(entry: TransferEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "from_account_id": _account_id(entry.from_account),
        "to_account_id": _account_id(entry.to_account),
        "from_category_id": _category_id(entry.from_category),
        "to_category_id": _category_id(entry.to_category),
        "amount": _money(entry.amount),
        "date": entry.date.isoformat(),
        "cleared": entry.cleared,
        "description": entry.description,
    }


def _transfer_from_doc(item: dict[str, Any]) -> TransferEntry:
    return TransferEntry(
        id=str(item.get("id", "")),
        from_account=_account_ref(item.get("from_account_id")),
        to_account=_account_ref(item.get("to_account_id")),
        from_category=_category_ref(item.get("from_category_id")),
        to_category=_category_ref(item.get("to_category_id")),
        amount=round2(item.get("amount")),
        date=_date(item.get("date")),
        cleared=_cleared(item.get("cleared")),
        description=item.get("description"),
    )


def _category_balance_to_doc(balance: CategoryBalance) -> dict[str, Any]:
    return {
        "category_id": balance.category_id,
        "start_balance": _money(balance.start_balance),
        "allocated": _money(balance.allocated),
        "spent": _money(balance.spent),
        "transfers": _money(balance.transfers),
        "adjustments": _money(balance.adjustments),
        "end_balance": _money(balance.end_balance),
    }


def _category_balance_from_doc(item: dict[str, Any]) -> CategoryBalance:
    return CategoryBalance(
        category_id=str(item.get("category_id", "")),
        start_balance=round2(item.get("start_balance")),
        allocated=round2(item.get("allocated")),
        spent=round2(item.get("spent")),
        transfers=round2(item.get("transfers")),
        adjustments=round2(item.get("adjustments")),
        end_balance=round2(item.get("end_balance")),
    )


def _account_balance_to_doc(balance: AccountBalance) -> dict[str, Any]:
    return {
        "account_id": balance.account_id,
        "start_balance": _money(balance.start_balance),
        "income": _money(balance.income),
        "expenses": _money(balance.expenses),
        "transfers": _money(balance.transfers),
        "adjustments": _money(balance.adjustments),
        "net_change": _money(balance.net_change),
        "end_balance": _money(balance.end_balance),
    }


def _account_balance_from_doc(item: dict[str, Any]) -> AccountBalance:
    return AccountBalance(
        account_id=str(item.get("account_id", "")),
        start_balance=round2(item.get("start_balance")),
        income=round2(item.get("income")),
        expenses=round2(item.get("expenses")),
        transfers=round2(item.get("transfers")),
        adjustments=round2(item.get("adjustments")),
        net_change=round2(item.get("net_change")),
        end_balance=round2(item.get("end_balance")),
    )


def ledger_to_document(ledger: MonthlyLedger) -> dict[str, Any]:
    """Convert a ledger to a JSON-compatible dictionary.

    Version and updated_at are kept out of the document; the store tracks
    them in their own columns.
    """
    return {
        "budget_id": ledger.budget_id,
        "year": ledger.year,
        "month": ledger.month,
        "income": [_income_to_doc(e) for e in ledger.income],
        "expenses": [_expense_to_doc(e) for e in ledger.expenses],
        "transfers": [_transfer_to_doc(e) for e in ledger.transfers],
        "adjustments": [_expense_to_doc(e) for e in ledger.adjustments],
        "category_balances": [_category_balance_to_doc(b) for b in ledger.category_balances],
        "account_balances": [_account_balance_to_doc(b) for b in ledger.account_balances],
        "total_income": _money(ledger.total_income),
        "total_expenses": _money(ledger.total_expenses),
        "previous_month_income": _money(ledger.previous_month_income),
        "allocation_state": ledger.allocation_state.value,
        "created_at": ledger.created_at.isoformat() if ledger.created_at else None,
    }


def ledger_from_document(
    doc: dict[str, Any],
    version: int = 0,
    updated_at: str | None = None,
) -> MonthlyLedger:
    """Build a ledger from a stored dictionary.

    Args:
        doc: Document as produced by ledger_to_document (or an older shape).
        version: Version stamp from the store.
        updated_at: ISO timestamp from the store.

    Returns:
        The MonthlyLedger.

    Raises:
        ValueError: If year/month are missing or invalid.
    """
    return MonthlyLedger(
        budget_id=str(doc.get("budget_id", "")),
        year=int(doc["year"]),
        month=int(doc["month"]),
        income=_items(doc, "income", _income_from_doc),
        expenses=_items(doc, "expenses", _expense_from_doc),
        transfers=_items(doc, "transfers", _transfer_from_doc),
        adjustments=_items(doc, "adjustments", _adjustment_from_doc),
        category_balances=_items(doc, "category_balances", _category_balance_from_doc),
        account_balances=_items(doc, "account_balances", _account_balance_from_doc),
        total_income=round2(doc.get("total_income")),
        total_expenses=round2(doc.get("total_expenses")),
        previous_month_income=round2(doc.get("previous_month_income")),
        allocation_state=_allocation_state(doc),
        created_at=_datetime(doc.get("created_at")),
        updated_at=_datetime(updated_at),
        version=version,
    )


def dumps(ledger: MonthlyLedger) -> str:
    """Serialize a ledger to a JSON string."""
    return json.dumps(ledger_to_document(ledger), sort_keys=True)


def loads(text: str, version: int = 0, updated_at: str | None = None) -> MonthlyLedger:
    """Deserialize a ledger from a JSON string."""
    return ledger_from_document(json.loads(text), version, updated_at)
