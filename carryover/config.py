"""Configuration file management for carryover."""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli_w

from carryover.domain.navigator import DEFAULT_WINDOW_MONTHS
from carryover.store.schema import get_db_path

DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    db_path: Path
    window_months: int = DEFAULT_WINDOW_MONTHS
    log_level: str = DEFAULT_LOG_LEVEL
    budget_id: str = "default"


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    """Get the config file path (XDG compliant).

    Returns:
        Path to the config file.
    """
    return get_xdg_config_home() / "carryover" / "config.toml"


def create_default_config(config_path: Path | None = None) -> None:
    """Create default config file with secure permissions.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    default_config: dict[str, Any] = {
        "budget_id": "default",
        "navigator": {"window_months": DEFAULT_WINDOW_MONTHS},
        "logging": {"level": DEFAULT_LOG_LEVEL},
    }

    save_config(default_config, config_path)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If the file isn't valid TOML.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to TOML file.

    Args:
        config: Configuration dictionary.
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    os.chmod(config_path, 0o600)


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings, falling back to defaults for anything not configured.

    A missing config file gives the defaults.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Settings.

    Raises:
        tomllib.TOMLDecodeError: If the file isn't valid TOML.
        ValueError: If window_months is not a non-negative integer.
    """
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        config = {}

    db_path = config.get("db_path")
    window_months = config.get("navigator", {}).get("window_months", DEFAULT_WINDOW_MONTHS)
    if not isinstance(window_months, int) or window_months < 0:
        raise ValueError(f"navigator.window_months must be a non-negative integer, got {window_months!r}")

    return Settings(
        db_path=Path(db_path).expanduser() if db_path else get_db_path(),
        window_months=window_months,
        log_level=str(config.get("logging", {}).get("level", DEFAULT_LOG_LEVEL)).upper(),
        budget_id=str(config.get("budget_id", "default")),
    )
