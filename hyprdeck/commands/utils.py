"""Shared utility functions for commands."""

import json
import sys

import click
import yaml

from hyprdeck.config import ConfigError, load_settings
from hyprdeck.container import Container, build_container
from hyprdeck.errors import format_error

OUTPUT_FORMATS = ("table", "json", "yaml")


def get_container(ctx: click.Context) -> Container:
    """Return the invocation's container, building it on first use.

    Tests inject a prepared container through ``obj={"container": ...}``.
    """
    obj = ctx.ensure_object(dict)
    if obj.get("container") is None:
        try:
            settings = load_settings()
        except ConfigError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)
        obj["container"] = build_container(settings, debug=obj.get("debug", False))
    return obj["container"]


def dump(data, output_format: str) -> str:
    """Serialize command output as JSON or YAML.

    Args:
        data: JSON-compatible data
        output_format: "json" or "yaml"

    Returns:
        The rendered text, without a trailing newline
    """
    if output_format == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip()
    return json.dumps(data, indent=2)


def format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


__all__ = ["OUTPUT_FORMATS", "get_container", "dump", "format_bytes"]
