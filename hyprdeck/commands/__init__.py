"""CLI command definitions for hyprdeck."""

import click

from hyprdeck import __version__, setup_logging
from hyprdeck.commands.backup import backup
from hyprdeck.commands.config import config
from hyprdeck.commands.doctor import doctor
from hyprdeck.commands.history import history
from hyprdeck.commands.install import install
from hyprdeck.commands.postinstall import postinstall
from hyprdeck.commands.preflight import preflight
from hyprdeck.commands.repo import repo
from hyprdeck.commands.theme import theme


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.version_option(__version__, prog_name="hyprdeck")
@click.pass_context
def cli(ctx, debug):
    """Provision and maintain a Hyprland desktop on Debian."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    setup_logging(debug)


# Register all commands
cli.add_command(preflight)
cli.add_command(install)
cli.add_command(postinstall)
cli.add_command(doctor)
cli.add_command(history)
cli.add_command(backup)
cli.add_command(config)
cli.add_command(theme)
cli.add_command(repo)

__all__ = ["cli"]


if __name__ == "__main__":
    cli()
