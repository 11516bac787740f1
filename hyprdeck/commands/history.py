"""Installation history commands."""

import sys

import click

from hyprdeck.commands.utils import OUTPUT_FORMATS, dump, get_container
from hyprdeck.errors import ValidationError, format_error
from hyprdeck.history import InstallationOutcome, RetentionPolicy

_OUTCOME_ICONS = {
    InstallationOutcome.SUCCESS: "✅",
    InstallationOutcome.FAILED: "❌",
    InstallationOutcome.CANCELLED: "⚪",
    InstallationOutcome.ROLLED_BACK: "🔄",
}


@click.group()
def history():
    """Inspect and prune the installation audit history."""
    pass


@history.command(name="list")
@click.option("--limit", "-n", type=int, default=20, show_default=True, help="Records to show")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="table")
@click.pass_context
def history_list(ctx, limit: int, output_format: str):
    """List recorded installations, newest first."""
    container = get_container(ctx)
    records = sorted(container.history.records(), key=lambda r: r.completed_at, reverse=True)
    records = records[:limit] if limit > 0 else records

    if output_format != "table":
        click.echo(dump([r.to_dict() for r in records], output_format))
        return

    if not records:
        click.echo("No installations recorded yet.")
        return

    for record in records:
        icon = _OUTCOME_ICONS[record.outcome]
        when = record.completed_at.strftime("%Y-%m-%d %H:%M")
        click.echo(
            f"{icon} {when}  {record.session_id[:8]}  "
            f"{record.package_name} {record.target_version}  {record.outcome.value}"
        )


@history.command(name="show")
@click.argument("session_id")
@click.option("--format", "output_format", type=click.Choice(("json", "yaml")), default="yaml")
@click.pass_context
def history_show(ctx, session_id: str, output_format: str):
    """Show the audit record of one installation.

    SESSION_ID may be abbreviated to a unique prefix.
    """
    container = get_container(ctx)
    record = container.history.find(session_id)
    if record is None:
        matches = {
            r.session_id
            for r in container.history.records()
            if r.session_id.startswith(session_id)
        }
        if len(matches) == 1:
            record = container.history.find(matches.pop())
        elif len(matches) > 1:
            click.echo(format_error(f"session id '{session_id}' is ambiguous"), err=True)
            sys.exit(1)

    if record is None:
        click.echo(format_error(f"no history for session '{session_id}'"), err=True)
        sys.exit(1)
    click.echo(dump(record.to_dict(), output_format))


@history.command(name="purge")
@click.option("--days", type=int, help="Keep records newer than this (default from settings)")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def history_purge(ctx, days: int | None, yes: bool):
    """Remove history records older than the retention period."""
    container = get_container(ctx)
    try:
        if days is None:
            days = container.settings.history_retention_days
        policy = RetentionPolicy(days)
    except ValidationError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    if not yes and not click.confirm(f"Remove history older than {policy.days} days?"):
        click.echo("Purge cancelled.")
        return

    removed = container.history.purge(policy)
    click.echo(f"✅ Removed {removed} record(s)")
