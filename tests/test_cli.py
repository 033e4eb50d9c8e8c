"""Smoke tests for the carryover command line."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from typer.testing import CliRunner

from carryover.cli import app
from carryover.commands.common import parse_amount
from carryover.config import load_settings
from carryover.dates import month_of

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    return tmp_path


@pytest.fixture
def this_month() -> str:
    return str(month_of(date.today()))


@pytest.fixture
def first_of_month() -> str:
    today = date.today()
    return f"01/{today.month:02d}/{today.year}"


def invoke(*args: str):
    return runner.invoke(app, list(args))


class TestInit:
    """Tests for carryover init."""

    def test_creates_database_and_config(self, isolated_home: Path) -> None:
        result = invoke("init")

        assert result.exit_code == 0, result.output
        assert (isolated_home / "data" / "carryover" / "carryover.db").exists()
        assert (isolated_home / "config" / "carryover" / "config.toml").exists()

    def test_refuses_to_overwrite(self) -> None:
        invoke("init")
        result = invoke("init")

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_migrate(self) -> None:
        invoke("init")
        result = invoke("init", "--migrate")

        assert result.exit_code == 0, result.output
        assert "Migrations complete" in result.output

    def test_commands_need_database(self, this_month: str) -> None:
        result = invoke("month", "status", "--month", this_month)

        assert result.exit_code == 1
        assert "carryover init" in result.output

    def test_force_replaces_broken_config(self, isolated_home: Path) -> None:
        config_path = isolated_home / "config" / "carryover" / "config.toml"
        config_path.parent.mkdir(parents=True)
        config_path.write_text("budget_id = [unterminated\n")

        result = invoke("init", "--force")

        assert result.exit_code == 0, result.output
        assert "Ignoring invalid config" in result.output
        assert load_settings(config_path).budget_id == "default"

    def test_other_commands_reject_broken_config(self, isolated_home: Path, this_month: str) -> None:
        config_path = isolated_home / "config" / "carryover" / "config.toml"
        config_path.parent.mkdir(parents=True)
        config_path.write_text("[navigator]\nwindow_months = -1\n")

        result = invoke("month", "status", "--month", this_month)

        assert result.exit_code == 1
        assert "Invalid config" in result.output


class TestWorkflow:
    """A month's worth of commands against a fresh database."""

    def test_create_spend_finalize(self, this_month: str, first_of_month: str) -> None:
        assert invoke("init").exit_code == 0

        result = invoke("month", "create", "--month", this_month)
        assert result.exit_code == 0, result.output
        assert "Created" in result.output

        result = invoke("txn", "add-income", "current", "1500", "--date", first_of_month)
        assert result.exit_code == 0, result.output
        assert "Transaction added" in result.output

        result = invoke(
            "txn", "add-expense", "42.10", "--account", "current", "--category", "food", "--date", first_of_month
        )
        assert result.exit_code == 0, result.output
        assert "-£42.10" in result.output

        result = invoke("allocate", "finalize", "food=200", "--month", this_month)
        assert result.exit_code == 0, result.output
        assert "finalized" in result.output

        result = invoke("month", "status", "--month", this_month)
        assert result.exit_code == 0, result.output
        assert "food" in result.output
        assert "£157.90" in result.output

        result = invoke("cleared", "--month", this_month)
        assert result.exit_code == 0, result.output
        assert "current" in result.output

    def test_draft_after_finalize_fails(self, this_month: str) -> None:
        invoke("init")
        invoke("month", "create", "--month", this_month)
        invoke("allocate", "finalize", "food=10", "--month", this_month)

        result = invoke("allocate", "draft", "food=20", "--month", this_month)

        assert result.exit_code == 1
        assert "finalized" in result.output

    def test_skipping_a_month_fails(self, this_month: str) -> None:
        invoke("init")
        invoke("month", "create", "--month", this_month)
        today = month_of(date.today())
        skipped = f"{today.year + 1}-{today.month:02d}"

        result = invoke("month", "create", "--month", skipped)

        assert result.exit_code == 1

    def test_bad_month(self) -> None:
        invoke("init")
        result = invoke("month", "status", "--month", "March")

        assert result.exit_code == 1
        assert "YYYY-MM" in result.output

    def test_bad_allocation_pair(self, this_month: str) -> None:
        invoke("init")
        invoke("month", "create", "--month", this_month)

        result = invoke("allocate", "finalize", "food", "--month", this_month)

        assert result.exit_code == 1
        assert "CATEGORY=AMOUNT" in result.output

    def test_recalc_up_to_date(self, this_month: str) -> None:
        invoke("init")
        invoke("month", "create", "--month", this_month)

        result = invoke("month", "recalc", "--all")

        assert result.exit_code == 0, result.output
        assert "already up to date" in result.output


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("12.50", Decimal("12.50")),
            ("1,200", Decimal("1200.00")),
            ("£-3", Decimal("-3.00")),
            ("1e40", Decimal(10) ** 40),
        ],
    )
    def test_valid(self, text: str, expected: Decimal) -> None:
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "NaN", "inf"])
    def test_invalid(self, text: str) -> None:
        assert parse_amount(text) is None
