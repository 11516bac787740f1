"""APT repository commands."""

import asyncio
import sys
from pathlib import Path

import click

from hyprdeck.commands.utils import dump, get_container
from hyprdeck.errors import ValidationError, format_error
from hyprdeck.orchestration.orchestrator import Orchestrator
from hyprdeck.sources import (
    DEFAULT_SOURCES_FILE,
    SourcesEditOperation,
    enable_deb_src,
    enable_non_free,
    read_sources,
)
from hyprdeck.tui import confirm, display_result

file_option = click.option(
    "--file",
    "sources_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_SOURCES_FILE,
    show_default=True,
    help="Sources file to inspect or edit",
)


@click.group()
def repo():
    """Inspect and configure the Debian APT sources."""
    pass


@repo.command(name="check")
@file_option
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.pass_context
def repo_check(ctx, sources_file: Path, as_json: bool):
    """Report which components the sources file enables."""
    container = get_container(ctx)
    try:
        sources = read_sources(sources_file)
    except (OSError, ValidationError) as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    os_info = container.probe.os_info()
    summary = {
        "file": str(sources_file),
        "release": os_info.get("VERSION_CODENAME") or os_info.get("VERSION_ID"),
        **sources.summary(),
    }
    if as_json:
        click.echo(dump(summary, "json"))
        return

    click.echo(f"📄 {summary['file']} ({summary['entries']} entries)")
    if summary["release"]:
        click.echo(f"   Debian release: {summary['release']}")
    if summary["suites"]:
        click.echo(f"   Suites: {', '.join(summary['suites'])}")
    for label, key in (
        ("main", "has_main"),
        ("contrib", "has_contrib"),
        ("non-free", "has_non_free"),
        ("non-free-firmware", "has_non_free_firmware"),
        ("deb-src", "has_deb_src"),
    ):
        icon = "✅" if summary[key] else "❌"
        click.echo(f"   {icon} {label}")
    if not summary["has_non_free"]:
        click.echo("Hint: run 'hyprdeck repo enable-nonfree' for proprietary drivers")


def _run_edit(container, operation: SourcesEditOperation, yes: bool) -> None:
    if not confirm(f"Modify {operation.path}?", default=True, assume_yes=yes):
        click.echo("Nothing changed.")
        return
    session = asyncio.run(
        Orchestrator().run_with_progress(container.run_context(), [operation], display_result)
    )
    if session.failure_count():
        sys.exit(1)
    if operation.backup_id:
        click.echo(f"Backup: {operation.backup_id}")
        click.echo("Run 'sudo apt update' to refresh the package lists.")


@repo.command(name="enable-nonfree")
@file_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def repo_enable_nonfree(ctx, sources_file: Path, yes: bool):
    """Add non-free and non-free-firmware to every main entry."""
    container = get_container(ctx)
    operation = SourcesEditOperation(
        "enable non-free", sources_file, enable_non_free, container.backups
    )
    _run_edit(container, operation, yes)


@repo.command(name="enable-debsrc")
@file_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def repo_enable_debsrc(ctx, sources_file: Path, yes: bool):
    """Add a deb-src line for every deb entry lacking one."""
    container = get_container(ctx)
    operation = SourcesEditOperation(
        "enable deb-src", sources_file, enable_deb_src, container.backups
    )
    _run_edit(container, operation, yes)
