"""Helpers shared by the CLI commands."""

import sqlite3
import sys
import tomllib
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal, InvalidOperation

import pandas as pd
from rich.console import Console

from carryover.config import Settings, load_settings
from carryover.dates import month_of, parse_month
from carryover.domain.errors import LedgerError
from carryover.domain.models import Money, MonthKey
from carryover.domain.money import format_money, round2
from carryover.engine import LedgerEngine, OperationResult
from carryover.store.repository import SqliteLedgerRepository
from carryover.store.schema import database_exists

console = Console()


def get_settings() -> Settings:
    """Load settings or exit with an error message."""
    try:
        return load_settings()
    except (tomllib.TOMLDecodeError, ValueError) as e:
        console.print(f"[red]Invalid config: {e}[/red]", style="bold")
        sys.exit(1)


def get_engine(settings: Settings | None = None) -> LedgerEngine:
    """Build an engine on the configured database.

    Exits if the database hasn't been initialized.
    """
    if settings is None:
        settings = get_settings()

    if not database_exists(settings.db_path):
        console.print("[red]Database not found. Run 'carryover init' first.[/red]", style="bold")
        sys.exit(1)

    return LedgerEngine(SqliteLedgerRepository(settings.db_path), window_months=settings.window_months)


def resolve_budget(budget: str | None, settings: Settings) -> str:
    return budget or settings.budget_id


def resolve_month(month: str | None) -> MonthKey:
    """Parse a YYYY-MM option, defaulting to the current month."""
    if month is None:
        return month_of(date.today())
    try:
        return parse_month(month)
    except ValueError:
        console.print(f"[red]Invalid month '{month}'. Use YYYY-MM format.[/red]", style="bold")
        sys.exit(1)


def parse_amount(amount_str: str) -> Money | None:
    """Parse an amount in pounds.

    Args:
        amount_str: String such as "12.50", "-3" or "1,200".

    Returns:
        Rounded amount, or None if the string isn't a number.
    """
    try:
        value = Decimal(amount_str.strip().replace(",", "").replace("£", ""))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return round2(value)


def require_amount(amount_str: str) -> Money:
    amount = parse_amount(amount_str)
    if amount is None:
        console.print(f"[red]Invalid amount '{amount_str}'[/red]", style="bold")
        sys.exit(1)
    return amount


def normalize_date(raw_date: str | None) -> date:
    """Parse a transaction date, defaulting to today.

    Uses pandas.to_datetime so ISO, European and most other formats work.
    Ambiguous day/month orders are read day first.
    """
    if raw_date is None:
        return date.today()
    try:
        return pd.to_datetime(raw_date, dayfirst=True).date()
    except (ValueError, pd.errors.ParserError):
        console.print(f"[red]Could not parse date '{raw_date}'[/red]", style="bold")
        sys.exit(1)


def parse_allocations(pairs: list[str]) -> dict[str, Money]:
    """Parse CATEGORY=AMOUNT arguments.

    Exits on a malformed pair.
    """
    allocations: dict[str, Money] = {}
    for pair in pairs:
        category, sep, amount_str = pair.partition("=")
        if not sep or not category.strip():
            console.print(f"[red]Expected CATEGORY=AMOUNT, got '{pair}'[/red]", style="bold")
            sys.exit(1)
        allocations[category.strip()] = require_amount(amount_str)
    return allocations


def money_markup(amount: Money, include_sign: bool = False) -> str:
    """Format an amount with red for negative values."""
    text = format_money(amount, include_sign)
    if amount < 0:
        return f"[red]{text}[/red]"
    return text


def report_result(result: OperationResult) -> None:
    """Print the cascade outcome and any warnings of a mutation."""
    if result.cascade is not None and result.cascade.months_written:
        months = ", ".join(str(key) for key in result.cascade.months_written)
        console.print(f"[dim]Recalculated: {months} ({result.cascade.stop.value})[/dim]")

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")
        console.print("[dim]Changes were saved. Run 'carryover month recalc --all' to retry.[/dim]")


@contextmanager
def command_errors() -> Iterator[None]:
    """Turn ledger and database errors into a red message and exit code 1."""
    try:
        yield
    except LedgerError as e:
        console.print(f"[red]{e}[/red]", style="bold")
        sys.exit(1)
    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)
