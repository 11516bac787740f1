"""Preflight command implementation."""

import asyncio
import sys

import click

from hyprdeck.commands.utils import dump, get_container
from hyprdeck.preflight import PreflightOutcome, PreflightReport, run_preflight
from hyprdeck.tui import display_result


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def preflight(ctx, as_json: bool):
    """Check whether this host can run a Hyprland installation."""
    container = get_container(ctx)
    report = asyncio.run(run_preflight_command(container, as_json))
    if not report.can_proceed():
        sys.exit(1)


async def run_preflight_command(container, as_json: bool) -> PreflightReport:
    on_step = None if as_json else display_result
    report = await run_preflight(
        container.run_context(), container.preflight_validators(), on_step
    )

    if as_json:
        click.echo(dump(report.to_dict(), "json"))
        return report

    click.echo()
    if report.outcome == PreflightOutcome.BLOCKED:
        click.secho(
            f"❌ {len(report.blockers)} check(s) block installation.", fg="red"
        )
    elif report.outcome == PreflightOutcome.SUCCESS:
        click.secho("✅ All preflight checks passed.", fg="green")
    else:
        click.secho(
            f"⚠️  Ready to install with {len(report.warnings)} warning(s).", fg="yellow"
        )

    recommendations = report.recommendations()
    if recommendations:
        click.echo("\nRecommendations:")
        for rec in recommendations:
            click.echo(f"  • {rec}")
    return report
