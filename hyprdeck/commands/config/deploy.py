"""Deploy component configuration files without installing packages."""

import asyncio
import sys

import click

from hyprdeck.commands.utils import dump, get_container
from hyprdeck.errors import ValidationError, format_error
from hyprdeck.installer.catalog import get_catalog
from hyprdeck.installer.models import ComponentName
from hyprdeck.installer.operations import ConfigDeployOperation
from hyprdeck.orchestration.orchestrator import Orchestrator
from hyprdeck.orchestration.session import Session
from hyprdeck.tui import display_result


def build_deploy_operations(
    components: list[ComponentName], variables: dict[str, str], deployer
) -> list[ConfigDeployOperation]:
    catalog = get_catalog()
    return [
        ConfigDeployOperation(spec, variables, deployer)
        for component in components
        for spec in catalog[component].files
    ]


async def deploy_configs(container, components: list[ComponentName], on_step=None) -> Session:
    """Deploy the files of each component, undoing all of them if one fails."""
    operations = build_deploy_operations(
        components, container.template_variables(), container.deployer
    )
    session = await Orchestrator().run_with_progress(container.run_context(), operations, on_step)
    if session.failure_count() and session.can_rollback():
        await session.rollback_async()
    return session


@click.command(name="deploy")
@click.option(
    "--component",
    "-c",
    "components",
    multiple=True,
    help="Component whose files to deploy (repeatable; default: all with files)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the session as JSON")
@click.pass_context
def config_deploy(ctx, components: tuple[str, ...], as_json: bool):
    """Write component configuration files, backing up replaced ones."""
    container = get_container(ctx)
    try:
        selected = [ComponentName.parse(name) for name in components]
    except ValidationError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    if not selected:
        selected = [c for c, entry in get_catalog().items() if entry.files]

    on_step = None if as_json else display_result
    session = asyncio.run(deploy_configs(container, selected, on_step))

    if as_json:
        click.echo(dump(session.to_dict(), "json"))
    elif session.failure_count():
        click.secho("❌ Deployment failed; deployed files were restored", fg="red")
    else:
        click.echo(f"✅ Deployed {session.success_count()} file(s)")
    if session.failure_count():
        sys.exit(1)
