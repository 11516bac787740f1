"""Doctor command implementation."""

import asyncio
import sys

import click

from hyprdeck.commands.utils import dump, get_container
from hyprdeck.installer import default_components
from hyprdeck.tui import display_result
from hyprdeck.verification import DoctorReport, build_checkers, run_doctor


@click.command()
@click.option("--quick", "-q", is_flag=True, help="Only run the critical checks")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Show details for passing checks")
@click.pass_context
def doctor(ctx, quick: bool, as_json: bool, verbose: bool):
    """Verify the installed desktop and suggest fixes."""
    container = get_container(ctx)
    report = asyncio.run(run_doctor_command(container, quick, as_json, verbose))
    if not report.is_healthy():
        sys.exit(1)


async def run_doctor_command(container, quick: bool, as_json: bool, verbose: bool) -> DoctorReport:
    applied = container.applied.load()
    if applied is not None:
        components = applied.component_names()
    else:
        components = default_components(container.settings.launcher)

    checkers = build_checkers(
        container.settings,
        container.probe,
        container.package_manager,
        container.service_manager,
        components,
        container.template_variables(),
        quick=quick,
    )

    def on_step(name, result):
        display_result(name, result, verbose=verbose)

    report = await run_doctor(container.run_context(), checkers, None if as_json else on_step)

    if as_json:
        click.echo(dump(report.to_dict(), "json"))
        return report

    click.echo(
        f"\n{report.passed_count} passed, {report.warning_count} warning(s), "
        f"{report.failed_count} failed"
    )
    if report.critical_count:
        click.secho(f"❌ {report.critical_count} critical issue(s) found", fg="red")

    recommendations = report.recommendations()
    if recommendations:
        click.echo("\nRecommendations:")
        for rec in recommendations:
            click.echo(f"  • {rec}")
    return report
