"""Install command implementation."""

import asyncio
import sys

import click

from hyprdeck.commands.utils import get_container
from hyprdeck.container import Container
from hyprdeck.errors import HyprdeckError, format_error
from hyprdeck.installer import (
    GPU_VENDORS,
    ConfigurationMerger,
    ConflictResolver,
    InstallationRequest,
    build_configuration,
    default_components,
    render_plan,
)
from hyprdeck.installer.pipeline import PipelineState
from hyprdeck.orchestration.progress import ProgressUpdate
from hyprdeck.preflight import measure_disk
from hyprdeck.tui import confirm, display_result, select_components_interactive


@click.command()
@click.option(
    "--component",
    "-c",
    "components",
    multiple=True,
    help="Component to install, optionally as name=version (repeatable)",
)
@click.option("--interactive", "-i", is_flag=True, help="Pick components interactively")
@click.option("--gpu", type=click.Choice(GPU_VENDORS), help="GPU vendor (detected if omitted)")
@click.option("--driver", is_flag=True, help="Also install the GPU driver")
@click.option("--dry-run", is_flag=True, help="Show the plan without installing")
@click.option(
    "--merge/--no-merge",
    default=None,
    help="Merge with the previously applied configuration",
)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option(
    "--rollback-on-failure",
    is_flag=True,
    help="Roll back completed steps without asking when installation fails",
)
@click.pass_context
def install(
    ctx,
    components: tuple[str, ...],
    interactive: bool,
    gpu: str | None,
    driver: bool,
    dry_run: bool,
    merge: bool | None,
    yes: bool,
    rollback_on_failure: bool,
):
    """Install Hyprland and its desktop components.

    Without --component the default desktop is installed.

    Examples:
        hyprdeck install
        hyprdeck install -c hyprland -c waybar=0.11.0 --gpu amd --driver
        hyprdeck install --dry-run
    """
    container = get_container(ctx)
    debug = ctx.obj.get("debug", False)

    if interactive:
        try:
            selected = select_components_interactive(container.settings.launcher)
        except RuntimeError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)
        if selected is None:
            click.echo("Installation cancelled.")
            sys.exit(1)
        components = tuple(c.value for c in selected)

    try:
        ok = asyncio.run(
            run_install(
                container,
                list(components),
                gpu,
                driver,
                dry_run,
                merge,
                yes,
                rollback_on_failure,
                debug,
            )
        )
    except HyprdeckError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    if not ok:
        sys.exit(1)


def parse_component_args(values: list[str]) -> list[dict]:
    """Turn ``name`` / ``name=version`` arguments into request entries."""
    parsed = []
    for value in values:
        name, _, version = value.partition("=")
        entry = {"name": name.strip()}
        if version.strip():
            entry["version"] = version.strip()
        parsed.append(entry)
    return parsed


async def build_request(
    container: Container,
    components: list[str],
    gpu: str | None,
    driver: bool,
    merge: bool | None,
    debug: bool,
) -> InstallationRequest:
    if components:
        entries = parse_component_args(components)
    else:
        entries = [{"name": c.value} for c in default_components(container.settings.launcher)]

    if gpu is None:
        vendors = await container.probe.gpu_vendors(debug)
        if vendors:
            gpu = vendors[0]
            if debug:
                click.echo(f"Detected {gpu} GPU", err=True)

    body: dict = {"components": entries, "merge_existing": merge}
    if gpu is not None:
        body["gpu"] = {"vendor": gpu, "requires_driver": driver}
    return InstallationRequest.from_dict(body)


async def show_plan(container: Container, request: InstallationRequest, merge: bool | None) -> None:
    configuration = build_configuration(
        request, measure_disk(container.probe, container.settings)
    )
    if merge is None:
        merge = container.settings.merge_existing
    if merge:
        existing = container.applied.load()
        if existing is not None:
            configuration = ConfigurationMerger().merge(existing, configuration)

    resolver = ConflictResolver(container.package_manager)
    resolutions = await resolver.plan(container.run_context(), configuration.components)
    click.echo(render_plan(configuration, resolutions))


def _progress_printer():
    last = {"message": None}

    def on_progress(update: ProgressUpdate) -> None:
        if update.message == last["message"]:
            return
        last["message"] = update.message
        click.echo(f"🔄 [{update.percent:3d}%] {update.message}")

    return on_progress


async def run_install(
    container: Container,
    components: list[str],
    gpu: str | None,
    driver: bool,
    dry_run: bool,
    merge: bool | None,
    yes: bool,
    rollback_on_failure: bool,
    debug: bool,
) -> bool:
    request = await build_request(container, components, gpu, driver, merge, debug)

    if dry_run:
        await show_plan(container, request, merge)
        click.echo("\nDry run: nothing was installed.")
        return True

    names = ", ".join(c.name for c in request.components)
    if not confirm(f"Install {names}?", default=True, assume_yes=yes):
        click.echo("Installation cancelled.")
        return False

    service = container.service()
    started = service.start(request)
    session_id = started["session_id"]
    click.echo(f"📦 Installing {started['component_count']} component(s) (session {session_id})")

    summary = await service.execute(session_id, on_progress=_progress_printer())
    installation = container.repository.find_by_id(session_id)

    if summary["status"] == PipelineState.COMPLETED.value:
        click.secho(f"\n✅ {summary['message']}", fg="green")
        for warning in summary["warnings"]:
            click.secho(f"⚠️  {warning}", fg="yellow")
        click.echo("\nNext: run 'hyprdeck postinstall' to set up the rest of the desktop.")
        return True

    click.secho(
        f"\n❌ Installation {summary['status']} during {summary['failed_phase']}: "
        f"{summary['message']}",
        fg="red",
    )
    if installation.preflight is not None:
        for result in installation.preflight.blockers:
            display_result(result.component, result)
    for result in installation.session.results():
        if result.is_failure():
            display_result(result.component, result)

    if installation.session.can_rollback():
        count = len(installation.session.rollback_actions())
        if rollback_on_failure or confirm(
            f"Roll back {count} completed step(s)?", default=True, assume_yes=yes
        ):
            outcome = await service.rollback(session_id)
            if outcome["errors"]:
                for error in outcome["errors"]:
                    click.secho(f"⚠️  Rollback error: {error}", fg="yellow")
            else:
                click.echo(f"🔄 Rolled back {len(outcome['actions'])} step(s)")
    return False


__all__ = ["install", "parse_component_args", "build_request", "run_install"]
