"""Configuration management commands."""

import click

from hyprdeck.commands.config.deploy import config_deploy
from hyprdeck.commands.config.files import config_list
from hyprdeck.commands.config.init import config_init
from hyprdeck.commands.config.show import config_show


@click.group()
def config():
    """Configuration management commands."""
    pass


config.add_command(config_init, name="init")
config.add_command(config_show, name="show")
config.add_command(config_list, name="list")
config.add_command(config_deploy, name="deploy")
