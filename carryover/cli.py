"""CLI entry point for carryover."""

import typer

from carryover.commands.admin import init_command
from carryover.commands.allocate import cancel_command, clear_command, draft_command, edit_command, finalize_command
from carryover.commands.common import get_settings
from carryover.commands.month import cleared_command, create_command, nav_command, recalc_command, status_command
from carryover.commands.transactions import (
    add_adjustment_command,
    add_expense_command,
    add_income_command,
    add_transfer_command,
    remove_command,
    set_cleared_command,
)
from carryover.config import DEFAULT_LOG_LEVEL
from carryover.log import setup_logging

app = typer.Typer(
    name="carryover",
    help="Carryover - monthly envelope budgeting with balances that roll forward",
    add_completion=False,
)
month_app = typer.Typer(help="Create, inspect and recalculate months")
allocate_app = typer.Typer(help="Allocate money to categories")
txn_app = typer.Typer(help="Add and remove transactions")
app.add_typer(month_app, name="month")
app.add_typer(allocate_app, name="allocate")
app.add_typer(txn_app, name="txn")

MONTH_OPTION = typer.Option(None, "--month", "-m", help="Month (YYYY-MM, default: current month)")
BUDGET_OPTION = typer.Option(None, "--budget", "-b", help="Budget id (default: from config)")
DATE_OPTION = typer.Option(None, "--date", "-d", help="Transaction date (default: today)")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log recalculation details"),
) -> None:
    """Carryover - monthly envelope budgeting with balances that roll forward."""
    if verbose:
        level = "INFO"
    elif ctx.invoked_subcommand == "init":
        # init must work even when the config it would replace is broken
        level = DEFAULT_LOG_LEVEL
    else:
        level = get_settings().log_level
    setup_logging(level)


@app.command(name="init")
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing database and config"),
    migrate: bool = typer.Option(False, "--migrate", help="Update the database schema only"),
) -> None:
    """Initialize carryover database and configuration."""
    init_command(force, migrate)


@app.command(name="cleared")
def cleared(month: str = MONTH_OPTION, budget: str = BUDGET_OPTION) -> None:
    """Show cleared and uncleared balances for your accounts."""
    cleared_command(month, budget)


@month_app.command(name="create")
def month_create(month: str = MONTH_OPTION, budget: str = BUDGET_OPTION) -> None:
    """Create a month (one month past either end of your budget)."""
    create_command(month, budget)


@month_app.command(name="status")
def month_status(month: str = MONTH_OPTION, budget: str = BUDGET_OPTION) -> None:
    """Show your category and account balances for a month."""
    status_command(month, budget)


@month_app.command(name="recalc")
def month_recalc(
    month: str = MONTH_OPTION,
    all: bool = typer.Option(False, "--all", "-a", help="Recalculate every month from the earliest"),
    budget: str = BUDGET_OPTION,
) -> None:
    """Recalculate a month and carry balances forward."""
    recalc_command(month, all, budget)


@month_app.command(name="nav")
def month_nav(month: str = MONTH_OPTION, budget: str = BUDGET_OPTION) -> None:
    """Show whether the previous and next months can be opened."""
    nav_command(month, budget)


@allocate_app.command(name="draft")
def allocate_draft(
    allocations: list[str] = typer.Argument(..., help="CATEGORY=AMOUNT pairs"),
    month: str = MONTH_OPTION,
    budget: str = BUDGET_OPTION,
) -> None:
    """Save draft allocations (no effect on balances)."""
    draft_command(allocations, month, budget)


@allocate_app.command(name="finalize")
def allocate_finalize(
    allocations: list[str] = typer.Argument(None, help="CATEGORY=AMOUNT pairs"),
    month: str = MONTH_OPTION,
    budget: str = BUDGET_OPTION,
) -> None:
    """Finalize allocations and roll the balances forward."""
    finalize_command(allocations or [], month, budget)


@allocate_app.command(name="edit")
def allocate_edit(month: str = MONTH_OPTION, budget: str = BUDGET_OPTION) -> None:
    """Start editing finalized allocations."""
    edit_command(month, budget)


@allocate_app.command(name="cancel")
def allocate_cancel(month: str = MONTH_OPTION, budget: str = BUDGET_OPTION) -> None:
    """Discard an edit and keep the finalized allocations."""
    cancel_command(month, budget)


@allocate_app.command(name="clear")
def allocate_clear(month: str = MONTH_OPTION, budget: str = BUDGET_OPTION) -> None:
    """Delete every allocation and return the month to draft."""
    clear_command(month, budget)


@txn_app.command(name="add-income")
def txn_add_income(
    account: str,
    amount: str,
    date: str = DATE_OPTION,
    payee: str = typer.Option(None, "--payee", help="Who paid you"),
    description: str = typer.Option(None, "--description", help="Note"),
    budget: str = BUDGET_OPTION,
) -> None:
    """Add income to an account."""
    add_income_command(account, amount, date, payee, description, budget)


@txn_app.command(name="add-expense")
def txn_add_expense(
    amount: str,
    account: str = typer.Option(None, "--account", help="Account paid from"),
    category: str = typer.Option(None, "--category", "-c", help="Category spent from"),
    date: str = DATE_OPTION,
    payee: str = typer.Option(None, "--payee", help="Who you paid"),
    description: str = typer.Option(None, "--description", help="Note"),
    cleared: bool = typer.Option(False, "--cleared", help="Already cleared by the bank"),
    refund: bool = typer.Option(False, "--refund", help="Money back rather than spending"),
    budget: str = BUDGET_OPTION,
) -> None:
    """Add spending from an account against a category."""
    add_expense_command(account, category, amount, date, payee, description, cleared, refund, budget)


@txn_app.command(name="add-transfer")
def txn_add_transfer(
    amount: str,
    from_account: str = typer.Option(None, "--from-account", help="Account money leaves"),
    to_account: str = typer.Option(None, "--to-account", help="Account money arrives in"),
    from_category: str = typer.Option(None, "--from-category", help="Category money leaves"),
    to_category: str = typer.Option(None, "--to-category", help="Category money arrives in"),
    date: str = DATE_OPTION,
    description: str = typer.Option(None, "--description", help="Note"),
    cleared: bool = typer.Option(False, "--cleared", help="Already cleared by the bank"),
    budget: str = BUDGET_OPTION,
) -> None:
    """Move money between accounts and/or categories."""
    add_transfer_command(
        amount, from_account, to_account, from_category, to_category, date, description, cleared, budget
    )


@txn_app.command(name="add-adjustment")
def txn_add_adjustment(
    amount: str,
    account: str = typer.Option(None, "--account", help="Account to correct"),
    category: str = typer.Option(None, "--category", "-c", help="Category to correct"),
    date: str = DATE_OPTION,
    description: str = typer.Option(None, "--description", help="Note"),
    cleared: bool = typer.Option(False, "--cleared", help="Already cleared by the bank"),
    budget: str = BUDGET_OPTION,
) -> None:
    """Correct a balance by a signed amount."""
    add_adjustment_command(amount, account, category, date, description, cleared, budget)


@txn_app.command(name="clear")
def txn_clear(
    entry_id: str,
    uncleared: bool = typer.Option(False, "--undo", help="Mark as not cleared instead"),
    month: str = MONTH_OPTION,
    budget: str = BUDGET_OPTION,
) -> None:
    """Mark a transaction as cleared by the bank."""
    set_cleared_command(entry_id, not uncleared, month, budget)


@txn_app.command(name="remove")
def txn_remove(entry_id: str, month: str = MONTH_OPTION, budget: str = BUDGET_OPTION) -> None:
    """Delete a transaction."""
    remove_command(entry_id, month, budget)


if __name__ == "__main__":
    app()
