"""Filesystem locations used by hyprdeck."""

import os
from pathlib import Path


def get_config_dir() -> Path:
    """Return XDG-compliant config directory: ~/.config/hyprdeck"""
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "hyprdeck"
    return Path.home() / ".config" / "hyprdeck"


def get_state_dir() -> Path:
    """Return XDG state directory holding history and backups."""
    base = os.environ.get("XDG_STATE_HOME")
    if base:
        return Path(base) / "hyprdeck"
    return Path.home() / ".local" / "state" / "hyprdeck"


def get_config_path(create: bool = False) -> Path:
    """Return path to the settings file.

    Priority:
    1. HYPRDECK_CONFIG environment variable (if set)
    2. ~/.config/hyprdeck/settings.json (default XDG location)

    Args:
        create: If True, create the parent directory when missing

    Returns:
        Path to settings file
    """
    if "HYPRDECK_CONFIG" in os.environ:
        path = Path(os.environ["HYPRDECK_CONFIG"])
    else:
        path = get_config_dir() / "settings.json"
    if create:
        path.parent.mkdir(parents=True, exist_ok=True)
    return path


def get_history_path() -> Path:
    return get_state_dir() / "history.jsonl"


def get_backup_dir() -> Path:
    return get_state_dir() / "backups"


def get_applied_config_path() -> Path:
    """Record of the last successfully applied installation configuration."""
    return get_state_dir() / "applied.json"


def get_theme_state_path() -> Path:
    return get_state_dir() / "theme.json"
