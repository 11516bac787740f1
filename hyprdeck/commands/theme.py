"""Theme commands."""

import asyncio
import sys

import click

from hyprdeck.commands.utils import OUTPUT_FORMATS, dump, get_container
from hyprdeck.errors import ValidationError, format_error
from hyprdeck.theme import PALETTE_KEYS, Theme, ThemeChange
from hyprdeck.tui import display_result


@click.group()
def theme():
    """List, preview and switch color themes."""
    pass


@theme.command(name="list")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="table")
@click.pass_context
def theme_list(ctx, output_format: str):
    """List the built-in themes."""
    service = get_container(ctx).theme_service()
    active = service.state().active
    themes = service.list_themes()

    if output_format != "table":
        data = [{**t.to_dict(), "active": t.name == active} for t in themes]
        click.echo(dump(data, output_format))
        return

    for item in themes:
        marker = "*" if item.name == active else " "
        click.echo(
            f"{marker} {item.name:<12} {item.display_name:<22} {item.variant.value:<6} "
            f"{item.author}"
        )


@theme.command(name="show")
@click.argument("name", required=False)
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default="table")
@click.pass_context
def theme_show(ctx, name: str | None, output_format: str):
    """Show a theme's details and palette (default: the active theme)."""
    service = get_container(ctx).theme_service()
    try:
        item = service.get(name) if name else service.active()
    except ValidationError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    if output_format != "table":
        click.echo(dump(item.to_dict(), output_format))
        return

    click.echo(f"{item.display_name} ({item.name})")
    click.echo(f"  Author:  {item.author}")
    click.echo(f"  Variant: {item.variant.value}")
    if item.description:
        click.echo(f"  {item.description}")
    for key in PALETTE_KEYS:
        click.echo(f"  {key:<10} {item.colors[key]}")


def _rgb(value: str) -> tuple[int, int, int]:
    return int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16)


def render_preview(item: Theme) -> list[str]:
    title = click.style(
        f" {item.display_name} ",
        fg=_rgb(item.colors["text"]),
        bg=_rgb(item.colors["base"]),
        bold=True,
    )
    lines = [title]
    for key in PALETTE_KEYS:
        swatch = click.style("      ", bg=_rgb(item.colors[key]))
        lines.append(f"{swatch} {key:<10} {item.colors[key]}")
    return lines


@theme.command(name="preview")
@click.argument("name")
@click.pass_context
def theme_preview(ctx, name: str):
    """Print color swatches for a theme."""
    service = get_container(ctx).theme_service()
    try:
        item = service.get(name)
    except ValidationError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    for line in render_preview(item):
        click.echo(line)


def _report(change: ThemeChange, as_json: bool) -> None:
    if as_json:
        click.echo(dump(change.to_dict(), "json"))
    elif change.success:
        click.echo(f"✅ {change.to_dict()['message']}")
    else:
        click.secho(f"❌ {change.to_dict()['message']}", fg="red")
        for error in change.rollback_errors or []:
            click.secho(f"⚠️  Rollback error: {error}", fg="yellow")
    if not change.success:
        sys.exit(1)


@theme.command(name="set")
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def theme_set(ctx, name: str, as_json: bool):
    """Deploy a theme's color files and make it active."""
    container = get_container(ctx)
    service = container.theme_service()
    on_step = None if as_json else display_result
    try:
        change = asyncio.run(service.apply(container.run_context(), name, on_step))
    except ValidationError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    _report(change, as_json)


@theme.command(name="rollback")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def theme_rollback(ctx, as_json: bool):
    """Go back to the previously applied theme."""
    container = get_container(ctx)
    service = container.theme_service()
    on_step = None if as_json else display_result
    try:
        change = asyncio.run(service.rollback(container.run_context(), on_step))
    except ValidationError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    _report(change, as_json)
