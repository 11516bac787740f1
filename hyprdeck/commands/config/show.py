"""Show config command implementation."""

import sys
from dataclasses import asdict

import click

from hyprdeck.commands.utils import dump
from hyprdeck.config import ConfigError, load_settings
from hyprdeck.errors import format_error
from hyprdeck.paths import get_config_path


@click.command(name="show")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(("json", "yaml")),
    default="json",
    help="Output format",
)
@click.pass_context
def config_show(ctx, output_format: str):
    """Print the effective settings, defaults included.

    Accepts settings files with trailing commas and // comments.
    """
    config_path = get_config_path(create=False)
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    click.echo(dump(asdict(settings), output_format))
