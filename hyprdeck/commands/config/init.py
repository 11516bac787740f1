"""Initialize config command implementation."""

import sys

import click

from hyprdeck.config import ConfigError, Settings, save_settings
from hyprdeck.errors import format_error
from hyprdeck.paths import get_config_path


@click.command(name="init")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force re-initialization, overwriting existing settings",
)
@click.pass_context
def config_init(ctx, force: bool):
    """Write a settings file with the default values.

    Creates ~/.config/hyprdeck/settings.json (or $HYPRDECK_CONFIG).

    Use --force to overwrite existing settings (creates a backup first).
    """
    config_path = get_config_path(create=False)

    if config_path.exists() and not force:
        click.echo(f"Settings file already exists: {config_path}")
        click.echo("Use --force to re-initialize (creates backup first).")
        sys.exit(1)

    if config_path.exists():
        backup_path = config_path.with_suffix(".json.bak")
        click.echo(f"Backing up existing settings to {backup_path}...")
        config_path.rename(backup_path)
        click.echo("✅ Backup created")

    try:
        save_settings(Settings(), config_path)
    except (ConfigError, OSError) as e:
        click.echo(format_error(f"initialization failed: {e}"), err=True)
        sys.exit(1)
    click.echo(f"✅ Settings initialized at {config_path}")
