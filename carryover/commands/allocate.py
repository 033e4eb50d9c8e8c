"""Allocation commands for drafting, finalizing and editing a month's allocations."""

from carryover.commands.common import (
    command_errors,
    console,
    get_engine,
    get_settings,
    parse_allocations,
    report_result,
    resolve_budget,
    resolve_month,
)
from carryover.commands.month import show_ledger
from carryover.dates import month_label
from carryover.domain.allocations import allocation_summary
from carryover.domain.money import format_money


def draft_command(pairs: list[str], month: str | None, budget: str | None) -> None:
    """Save allocations as a draft."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)
    allocations = parse_allocations(pairs)

    with command_errors():
        result = engine.save_draft(budget_id, key.year, key.month, allocations)

    summary = allocation_summary(result.ledger)
    console.print(f"[green]✓[/green] Draft saved for {month_label(key)}")
    allocated = format_money(summary.total_allocated)
    console.print(f"[dim]Allocated {allocated} of {format_money(summary.previous_month_income)}[/dim]")
    console.print("[dim]Draft allocations don't affect balances until finalized[/dim]")


def finalize_command(pairs: list[str], month: str | None, budget: str | None) -> None:
    """Finalize allocations and carry the new balances forward."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)
    allocations = parse_allocations(pairs)

    with command_errors():
        result = engine.finalize(budget_id, key.year, key.month, allocations)

    console.print(f"[green]✓[/green] Allocations finalized for {month_label(key)}")
    report_result(result)
    show_ledger(result.ledger)


def edit_command(month: str | None, budget: str | None) -> None:
    """Start editing finalized allocations."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        engine.begin_edit(budget_id, key.year, key.month)

    console.print(f"[green]✓[/green] Editing allocations for {month_label(key)}")
    console.print("[dim]Use 'carryover allocate finalize' to save or 'carryover allocate cancel' to discard[/dim]")


def cancel_command(month: str | None, budget: str | None) -> None:
    """Stop editing and keep the finalized allocations."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        result = engine.cancel_edit(budget_id, key.year, key.month)

    console.print(f"[green]✓[/green] Edit cancelled for {month_label(key)}")
    report_result(result)


def clear_command(month: str | None, budget: str | None) -> None:
    """Delete every allocation and return the month to draft."""
    settings = get_settings()
    engine = get_engine(settings)
    budget_id = resolve_budget(budget, settings)
    key = resolve_month(month)

    with command_errors():
        result = engine.delete_all_allocations(budget_id, key.year, key.month)

    console.print(f"[green]✓[/green] Allocations cleared for {month_label(key)}")
    report_result(result)
