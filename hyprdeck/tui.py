"""Terminal UI helpers for the CLI.

- questionary for interactive prompts (when a TTY is available)
- click for plain output and colors
- TTY guards before all interactive prompts
"""

import sys

import click
import questionary
from prompt_toolkit.styles import Style

from hyprdeck.installer.catalog import default_components, get_catalog
from hyprdeck.installer.models import ComponentName
from hyprdeck.orchestration.results import CheckResult, CheckStatus, OperationResult, SetupStatus

STATUS_ICONS = {
    CheckStatus.PASS: "✅",
    CheckStatus.WARNING: "⚠️ ",
    CheckStatus.FAIL: "❌",
    SetupStatus.COMPLETED: "✅",
    SetupStatus.SKIPPED: "⏭️ ",
    SetupStatus.FAILED: "❌",
    SetupStatus.IN_PROGRESS: "🔄",
    SetupStatus.PENDING: "⚪",
}

# core components render as disabled choices
CHECKBOX_STYLE = Style(
    [
        ("selected", "fg:ansigreen"),
        ("disabled", "fg:ansibrightblack italic"),
    ]
)


def status_icon(result: OperationResult | CheckResult) -> str:
    return STATUS_ICONS.get(result.status, "⚪")


def get_color_for_result(result: OperationResult | CheckResult) -> str:
    """Color name for click.secho (green/yellow/red)."""
    if result.is_failure():
        return "red"
    if result.is_warning() or result.status == SetupStatus.SKIPPED:
        return "yellow"
    return "green"


def format_result_line(name: str, result: OperationResult | CheckResult, width: int = 24) -> str:
    """Format one step result for display.

    Args:
        name: Display name of the operation
        result: Its result
        width: Width to pad the name column for alignment

    Returns:
        Formatted string with icon, name and message
    """
    return f"{status_icon(result)} {name.ljust(width)} {result.message}"


def display_result(name: str, result: OperationResult | CheckResult, verbose: bool = False) -> None:
    click.secho(format_result_line(name, result), fg=get_color_for_result(result))
    if verbose or not result.is_success():
        for detail in result.details:
            click.echo(f"     {detail}")
    if isinstance(result, CheckResult) and not result.is_success():
        for suggestion in result.suggestions:
            click.echo(f"     💡 {suggestion}")


def format_component_choice(component: ComponentName) -> str:
    entry = get_catalog()[component]
    suffix = " (required)" if entry.core else ""
    return f"{component.value:<14} {entry.description}{suffix}"


def select_components_interactive(launcher: str = "fuzzel") -> list[ComponentName] | None:
    """Checkbox picker for the components to install.

    Defaults are pre-checked; the core compositor is always included.

    Returns:
        Selected components, or None if the user cancels.

    Raises:
        RuntimeError: If not running in a TTY
    """
    if not sys.stdin.isatty():
        raise RuntimeError("Interactive component selector requires a TTY")

    defaults = set(default_components(launcher))
    choices = [
        questionary.Choice(
            title=format_component_choice(component),
            value=component,
            checked=component in defaults,
            disabled="always installed" if get_catalog()[component].core else None,
        )
        for component in get_catalog()
    ]

    try:
        selected = questionary.checkbox(
            "Select components to install:",
            choices=choices,
            instruction="Space to toggle, Enter to confirm",
            style=CHECKBOX_STYLE,
        ).ask()
    except KeyboardInterrupt:
        return None

    if selected is None:
        return None

    # disabled choices are never returned by the checkbox
    core = [c for c in get_catalog() if get_catalog()[c].core]
    return core + [c for c in selected if c not in core]


def confirm(message: str, default: bool = False, assume_yes: bool = False) -> bool:
    """Ask a yes/no question.

    Falls back to click.confirm when no TTY is attached, so piped input and
    CliRunner still work.
    """
    if assume_yes:
        return True
    if not sys.stdin.isatty():
        return click.confirm(message, default=default)
    try:
        answer = questionary.confirm(message, default=default).ask()
    except KeyboardInterrupt:
        return False
    return bool(answer)


__all__ = [
    "STATUS_ICONS",
    "CHECKBOX_STYLE",
    "status_icon",
    "get_color_for_result",
    "format_result_line",
    "display_result",
    "format_component_choice",
    "select_components_interactive",
    "confirm",
]
