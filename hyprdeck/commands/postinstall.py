"""Post-install command implementation."""

import asyncio
import sys

import click

from hyprdeck.commands.utils import dump, get_container
from hyprdeck.config import DISPLAY_MANAGERS, SHELLS, ConfigError
from hyprdeck.errors import format_error
from hyprdeck.postinstall import (
    PostInstallReport,
    PostInstallRequest,
    build_installers,
    run_post_install,
)
from hyprdeck.tui import confirm, display_result


@click.command()
@click.option(
    "--display-manager",
    type=click.Choice(DISPLAY_MANAGERS),
    help="Display manager to set up (default from settings)",
)
@click.option("--shell", type=click.Choice(SHELLS), help="Login shell to set up")
@click.option("--theme", help="Shell theme to write into the shell rc file")
@click.option("--no-audio", is_flag=True, help="Skip PipeWire setup")
@click.option("--no-network", is_flag=True, help="Skip NetworkManager setup")
@click.option("--no-wallpaper", is_flag=True, help="Skip the wallpaper cache")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def postinstall(
    ctx,
    display_manager: str | None,
    shell: str | None,
    theme: str | None,
    no_audio: bool,
    no_network: bool,
    no_wallpaper: bool,
    yes: bool,
    as_json: bool,
):
    """Set up the display manager, shell, audio, network and wallpapers."""
    container = get_container(ctx)
    try:
        request = PostInstallRequest.from_settings(
            container.settings,
            display_manager=display_manager,
            shell=shell,
            shell_theme=theme,
            audio=not no_audio,
            network=not no_network,
            wallpaper_cache=not no_wallpaper,
        )
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    report = asyncio.run(run_postinstall_command(container, request, yes, as_json))
    if not report.success:
        sys.exit(1)


async def run_postinstall_command(
    container, request: PostInstallRequest, yes: bool, as_json: bool
) -> PostInstallReport:
    installers = build_installers(
        request,
        container.settings,
        container.package_manager,
        container.service_manager,
        container.home_dir,
    )
    on_step = None if as_json else display_result
    report = await run_post_install(container.run_context(), installers, on_step)

    if as_json:
        click.echo(dump(report.to_dict(), "json"))
        return report

    if not report.success and report.session.can_rollback():
        if confirm("Undo the completed post-install steps?", default=False, assume_yes=yes):
            errors = await report.session.rollback_async()
            for error in errors:
                click.secho(f"⚠️  Rollback error: {error}", fg="yellow")

    recommendations = report.recommendations()
    if recommendations:
        click.echo("\nNext steps:")
        for rec in recommendations:
            click.echo(f"  • {rec}")
    return report
