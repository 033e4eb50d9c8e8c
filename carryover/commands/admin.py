"""Admin command for initializing the database and configuration."""

import sqlite3
import sys
import tomllib
from pathlib import Path

from carryover.commands.common import console
from carryover.config import create_default_config, get_config_path, load_settings
from carryover.store.schema import get_db_path, init_database


def run_migration(db_path: Path) -> None:
    """Run database migrations on existing database."""
    console.print(f"[cyan]Running migrations on {db_path}...[/cyan]")
    init_database(db_path)
    console.print("[green]✓[/green] Migrations complete")
    console.print("[dim]Database schema is up to date[/dim]")


def run_full_init(db_path: Path, config_path: Path, write_config: bool) -> None:
    """Initialize new database and, if asked, config."""
    console.print(f"[cyan]Initializing database at {db_path}...[/cyan]")
    init_database(db_path)
    console.print("[green]✓[/green] Database initialized")

    if write_config:
        console.print(f"[cyan]Creating config file at {config_path}...[/cyan]")
        create_default_config(config_path)
        console.print("[green]✓[/green] Config file created (permissions: 600)")

    console.print("\n[green]Initialization complete![/green]", style="bold")
    console.print(f"[dim]Database: {db_path}[/dim]")
    console.print(f"[dim]Config: {config_path}[/dim]")


def init_command(force: bool = False, migrate: bool = False) -> None:
    """Initialize carryover database and configuration."""
    config_path = get_config_path()
    config_exists = config_path.exists()
    try:
        db_path = load_settings(config_path).db_path
    except (tomllib.TOMLDecodeError, ValueError) as e:
        console.print(f"[yellow]Ignoring invalid config: {e}[/yellow]")
        if not force:
            console.print("[yellow]Use 'carryover init --force' to replace it[/yellow]")
        db_path = get_db_path()
    db_exists = db_path.exists()

    try:
        # Migration path: update existing database only
        if migrate:
            if not db_exists:
                console.print("[red]No database found to migrate[/red]", style="bold")
                console.print(f"[dim]Expected location: {db_path}[/dim]")
                sys.exit(1)
            run_migration(db_path)
            return

        # Guard: refuse to overwrite without force flag
        if not force and db_exists:
            console.print("[red]Initialization failed:[/red]", style="bold")
            console.print(f"  Database already exists: {db_path}")
            console.print("\n[yellow]Use 'carryover init --force' to start over[/yellow]")
            console.print("[yellow]Or 'carryover init --migrate' to update database schema only[/yellow]")
            sys.exit(1)

        if force and db_exists:
            db_path.unlink()

        run_full_init(db_path, config_path, write_config=force or not config_exists)

    except sqlite3.Error as e:
        console.print(f"[red]Database error: {e}[/red]", style="bold")
        sys.exit(1)
    except OSError as e:
        console.print(f"[red]Filesystem error: {e}[/red]", style="bold")
        sys.exit(1)
