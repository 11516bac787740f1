"""List the configuration files hyprdeck manages."""

import click

from hyprdeck.commands.utils import OUTPUT_FORMATS, dump, get_container
from hyprdeck.installer.catalog import get_catalog
from hyprdeck.system.deploy import expand_target
from hyprdeck.theme import THEME_FILES


def managed_files(variables: dict[str, str]) -> list[dict]:
    specs = [spec for entry in get_catalog().values() for spec in entry.files]
    specs.extend(THEME_FILES)
    rows = []
    for spec in specs:
        target = expand_target(spec.target, variables)
        rows.append({"component": spec.component, "path": str(target), "exists": target.exists()})
    return rows


@click.command(name="list")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="table")
@click.pass_context
def config_list(ctx, output_format: str):
    """List managed configuration files and whether each is deployed."""
    container = get_container(ctx)
    rows = managed_files(container.template_variables())

    if output_format != "table":
        click.echo(dump(rows, output_format))
        return

    for row in rows:
        icon = "✅" if row["exists"] else "➖"
        click.echo(f"{icon} {row['component']:<10} {row['path']}")
