"""Configuration backup commands."""

import sys
from pathlib import Path

import click

from hyprdeck.backup import cleanup_backups, restore_backup
from hyprdeck.commands.utils import OUTPUT_FORMATS, dump, format_bytes, get_container
from hyprdeck.errors import ValidationError, format_error


@click.group()
def backup():
    """Manage backups of replaced configuration files."""
    pass


@backup.command(name="list")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="table")
@click.pass_context
def backup_list(ctx, output_format: str):
    """List backups, newest first."""
    container = get_container(ctx)
    backups = container.backups.list_backups()

    if output_format != "table":
        click.echo(dump([b.to_dict() for b in backups], output_format))
        return

    if not backups:
        click.echo("No backups found.")
        return

    for item in backups:
        when = item.created_at.strftime("%Y-%m-%d %H:%M")
        click.echo(
            f"📦 {item.id}  {when}  {len(item.entries)} file(s)  "
            f"{format_bytes(item.size_bytes)}  {item.reason}"
        )


@backup.command(name="create")
@click.argument(
    "paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option("--reason", default="manual", help="Note stored with the backup")
@click.pass_context
def backup_create(ctx, paths: tuple[Path, ...], reason: str):
    """Back up the given files."""
    container = get_container(ctx)
    try:
        item = container.backups.create([p.resolve() for p in paths], reason=reason)
    except OSError as e:
        click.echo(format_error(f"backup failed: {e}"), err=True)
        sys.exit(1)
    click.echo(
        f"✅ Created backup {item.id} with {len(item.entries)} file(s), "
        f"{format_bytes(item.size_bytes)}"
    )


@backup.command(name="cleanup")
@click.option("--days", type=int, help="Retention period in days (default from settings)")
@click.option("--keep", type=int, help="Minimum number of backups to keep")
@click.option("--dry-run", is_flag=True, help="Show what would be removed")
@click.pass_context
def backup_cleanup(ctx, days: int | None, keep: int | None, dry_run: bool):
    """Remove backups older than the retention period."""
    container = get_container(ctx)
    settings = container.settings
    try:
        result = cleanup_backups(
            container.backups,
            days if days is not None else settings.backup_retention_days,
            keep if keep is not None else settings.backup_keep_minimum,
            dry_run=dry_run,
        )
    except ValidationError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    verb = "Would remove" if dry_run else "Removed"
    for backup_id in result.removed_ids:
        click.echo(f"  - {backup_id}")
    click.echo(
        f"✅ {verb} {result.removed_count} backup(s), freeing {format_bytes(result.freed_bytes)}; "
        f"{result.remaining_count} remaining"
    )
    for error in result.errors:
        click.secho(f"⚠️  {error}", fg="yellow")


@backup.command(name="restore")
@click.argument("backup_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def backup_restore(ctx, backup_id: str, yes: bool):
    """Restore the files saved in a backup."""
    container = get_container(ctx)
    item = container.backups.get(backup_id)
    if item is None:
        click.echo(format_error(f"backup '{backup_id}' not found"), err=True)
        sys.exit(1)

    if not yes:
        click.echo("Files to restore:")
        for entry in item.entries:
            click.echo(f"  {entry.original}")
        if not click.confirm("Overwrite the current files?"):
            click.echo("Restore cancelled.")
            return

    errors = restore_backup(container.backups, backup_id)
    if errors:
        for error in errors:
            click.echo(format_error(str(error)), err=True)
        sys.exit(1)
    click.echo(f"✅ Restored {len(item.entries)} file(s) from {backup_id}")
