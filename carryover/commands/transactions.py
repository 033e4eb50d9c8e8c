"""Transaction commands (add, mark cleared, remove)."""

import sys
import uuid
from datetime import date

from carryover.commands.common import (
    command_errors,
    console,
    get_engine,
    get_settings,
    normalize_date,
    report_result,
    require_amount,
    resolve_budget,
    resolve_month,
)
from carryover.dates import month_of
from carryover.domain.models import (
    NO_ACCOUNT,
    UNCATEGORIZED,
    AccountRef,
    AdjustmentEntry,
    CategoryRef,
    Entry,
    ExpenseEntry,
    IncomeEntry,
    SpecificAccount,
    SpecificCategory,
    TransferEntry,
)
from carryover.domain.money import format_money


def new_entry_id() -> str:
    return uuid.uuid4().hex[:12]


def account_ref(account: str | None) -> AccountRef:
    return SpecificAccount(account) if account else NO_ACCOUNT


def category_ref(category: str | None) -> CategoryRef:
    return SpecificCategory(category) if category else UNCATEGORIZED


def _add(entry: Entry, day: date, budget: str | None) -> None:
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = month_of(day)

    with command_errors():
        result = engine.add_entry(budget_id, key.year, key.month, entry)

    console.print(f"[green]✓[/green] Transaction added to {key} (ID: {entry.id})")
    console.print(f"  Date: {day.isoformat()}")
    console.print(f"  Amount: {format_money(entry.amount, include_sign=True)}")
    report_result(result)


def add_income_command(
    account: str,
    amount: str,
    date: str | None = None,
    payee: str | None = None,
    description: str | None = None,
    budget: str | None = None,
) -> None:
    """Add income to an account."""
    day = normalize_date(date)
    entry = IncomeEntry(
        id=new_entry_id(),
        account=account_ref(account),
        amount=require_amount(amount),
        date=day,
        payee=payee,
        description=description,
    )
    _add(entry, day, budget)


def add_expense_command(
    account: str | None,
    category: str | None,
    amount: str,
    date: str | None = None,
    payee: str | None = None,
    description: str | None = None,
    cleared: bool = False,
    refund: bool = False,
    budget: str | None = None,
) -> None:
    """Add spending (or a refund with refund=True)."""
    day = normalize_date(date)
    value = abs(require_amount(amount))
    entry = ExpenseEntry(
        id=new_entry_id(),
        account=account_ref(account),
        category=category_ref(category),
        amount=value if refund else -value,
        date=day,
        cleared=cleared,
        payee=payee,
        description=description,
    )
    _add(entry, day, budget)


def add_transfer_command(
    amount: str,
    from_account: str | None = None,
    to_account: str | None = None,
    from_category: str | None = None,
    to_category: str | None = None,
    date: str | None = None,
    description: str | None = None,
    cleared: bool = False,
    budget: str | None = None,
) -> None:
    """Move money between accounts and/or categories."""
    if not (from_account or to_account or from_category or to_category):
        console.print("[red]A transfer needs at least one account or category[/red]", style="bold")
        sys.exit(1)

    day = normalize_date(date)
    entry = TransferEntry(
        id=new_entry_id(),
        from_account=account_ref(from_account),
        to_account=account_ref(to_account),
        from_category=category_ref(from_category),
        to_category=category_ref(to_category),
        amount=abs(require_amount(amount)),
        date=day,
        cleared=cleared,
        description=description,
    )
    _add(entry, day, budget)


def add_adjustment_command(
    amount: str,
    account: str | None = None,
    category: str | None = None,
    date: str | None = None,
    description: str | None = None,
    cleared: bool = False,
    budget: str | None = None,
) -> None:
    """Correct an account and/or category balance by a signed amount."""
    day = normalize_date(date)
    entry = AdjustmentEntry(
        id=new_entry_id(),
        account=account_ref(account),
        category=category_ref(category),
        amount=require_amount(amount),
        date=day,
        cleared=cleared,
        description=description,
    )
    _add(entry, day, budget)


def set_cleared_command(entry_id: str, cleared: bool, month: str | None, budget: str | None) -> None:
    """Mark a transaction as cleared (or not)."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        result = engine.update_entry(budget_id, key.year, key.month, entry_id, cleared=cleared)

    state = "cleared" if cleared else "uncleared"
    console.print(f"[green]✓[/green] Transaction {entry_id} marked {state}")
    report_result(result)


def remove_command(entry_id: str, month: str | None, budget: str | None) -> None:
    """Delete a transaction."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        result = engine.remove_entry(budget_id, key.year, key.month, entry_id)

    console.print(f"[green]✓[/green] Transaction {entry_id} removed from {key}")
    report_result(result)
