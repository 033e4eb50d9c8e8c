"""Month commands: create, status, recalculation, navigation and reconciliation."""

from rich.table import Table

from carryover.commands.common import (
    command_errors,
    console,
    get_engine,
    get_settings,
    money_markup,
    resolve_budget,
    resolve_month,
)
from carryover.dates import month_label, next_month, prev_month
from carryover.domain.allocations import allocation_summary
from carryover.domain.models import AllocationState, MonthlyLedger

STATE_LABELS = {
    AllocationState.DRAFT: "[yellow]Draft[/yellow]",
    AllocationState.FINALIZED: "[green]Finalized[/green]",
    AllocationState.EDITING_FINALIZED: "[cyan]Editing[/cyan]",
}


def create_command(month: str | None, budget: str | None) -> None:
    """Create a month."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        existed = key in engine.repository.month_keys(budget_id)
        ledger = engine.create_month(budget_id, key.year, key.month)

    if existed:
        console.print(f"[yellow]{month_label(key)} already exists[/yellow]")
    else:
        console.print(f"[green]✓[/green] Created {month_label(key)}")
    show_ledger(ledger)


def show_ledger(ledger: MonthlyLedger) -> None:
    """Print category and account tables for a month."""
    summary = allocation_summary(ledger)
    console.print(f"\n[bold cyan]{month_label(ledger.key)}[/bold cyan]  {STATE_LABELS[ledger.allocation_state]}")
    console.print(
        f"[dim]Income: {money_markup(ledger.total_income)}  "
        f"Spent: {money_markup(ledger.total_expenses)}  "
        f"Last month's income: {money_markup(summary.previous_month_income)}  "
        f"Left to allocate: {money_markup(summary.available)}[/dim]\n"
    )

    if ledger.category_balances:
        table = Table(title="Categories")
        table.add_column("Category", style="magenta")
        table.add_column("Start", justify="right")
        table.add_column("Allocated", justify="right")
        table.add_column("Spent", justify="right")
        table.add_column("Transfers", justify="right")
        table.add_column("Adjustments", justify="right")
        table.add_column("End", justify="right", style="bold")

        for cb in ledger.category_balances:
            allocated = money_markup(cb.allocated)
            if not ledger.allocations_finalized and cb.allocated:
                allocated = f"[dim]{allocated}[/dim]"
            table.add_row(
                cb.category_id,
                money_markup(cb.start_balance),
                allocated,
                money_markup(cb.spent),
                money_markup(cb.transfers, include_sign=True),
                money_markup(cb.adjustments, include_sign=True),
                money_markup(cb.end_balance),
            )
        console.print(table)

    if ledger.account_balances:
        table = Table(title="Accounts")
        table.add_column("Account", style="cyan")
        table.add_column("Start", justify="right")
        table.add_column("Income", justify="right")
        table.add_column("Expenses", justify="right")
        table.add_column("Transfers", justify="right")
        table.add_column("Adjustments", justify="right")
        table.add_column("End", justify="right", style="bold")

        for ab in ledger.account_balances:
            table.add_row(
                ab.account_id,
                money_markup(ab.start_balance),
                money_markup(ab.income),
                money_markup(ab.expenses),
                money_markup(ab.transfers, include_sign=True),
                money_markup(ab.adjustments, include_sign=True),
                money_markup(ab.end_balance),
            )
        console.print(table)

    if not ledger.category_balances and not ledger.account_balances:
        console.print("[yellow]No balances yet[/yellow]")


def status_command(month: str | None, budget: str | None) -> None:
    """Show balances for a month."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        ledger = engine.get_month(budget_id, key.year, key.month)
    show_ledger(ledger)


def recalc_command(month: str | None, all_months: bool, budget: str | None) -> None:
    """Recalculate a month and cascade, or every month."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)

    with command_errors():
        if all_months:
            report = engine.recalculate_all(budget_id)
        else:
            key = resolve_month(month)
            report = engine.recalculate_and_cascade(budget_id, key.year, key.month)

    if not report.months_written:
        console.print("[green]✓[/green] Balances already up to date")
        return

    console.print(f"[green]✓[/green] Recalculated {len(report.months_written)} month(s)")
    for key in report.months_written:
        console.print(f"  {month_label(key)}")
    console.print(f"[dim]Stopped: {report.stop.value}[/dim]")


def nav_command(month: str | None, budget: str | None) -> None:
    """Show which neighbouring months can be viewed or created."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        previous_state, next_state = engine.navigation(budget_id, key.year, key.month)
        months = engine.month_keys(budget_id)

    if months:
        console.print(f"[dim]Months: {months[0]} to {months[-1]} ({len(months)} total)[/dim]")
    else:
        console.print("[dim]No months yet[/dim]")

    for label, target, state in (
        ("Previous", prev_month(key), previous_state),
        ("Next", next_month(key), next_state),
    ):
        if not state.can_navigate:
            console.print(f"{label} ({target}): [red]unavailable[/red] [dim]{state.disabled_reason}[/dim]")
        elif state.can_create:
            console.print(f"{label} ({target}): [yellow]can be created[/yellow]")
        else:
            console.print(f"{label} ({target}): [green]exists[/green]")


def cleared_command(month: str | None, budget: str | None) -> None:
    """Show cleared and uncleared balances for each account."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        splits = engine.split_cleared_balances(budget_id, key.year, key.month)

    if not splits:
        console.print("[yellow]No accounts in this month[/yellow]")
        return

    table = Table(title=f"Reconciliation - {month_label(key)}")
    table.add_column("Account", style="cyan")
    table.add_column("Start", justify="right")
    table.add_column("Cleared", justify="right")
    table.add_column("Uncleared", justify="right")
    table.add_column("Pending", justify="right", style="dim")

    for split in splits.values():
        table.add_row(
            split.account_id,
            money_markup(split.start_balance),
            money_markup(split.cleared_balance),
            money_markup(split.uncleared_balance),
            money_markup(split.pending, include_sign=True),
        )
    console.print(table)
