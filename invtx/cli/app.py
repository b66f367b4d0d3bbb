"""
invtx CLI Application - Built with Click.
"""

import click

from invtx import __version__
from invtx.cli.simulate import simulate_cmd, validate_cmd
from invtx.core.config import GroupConfig
from invtx.monitoring.logging import setup_transaction_logging


class OrderedGroup(click.Group):
    """Click Group that lists commands in the order they were added."""

    def list_commands(self, ctx):
        return list(self.commands.keys())


@click.group(cls=OrderedGroup)
@click.version_option(version=__version__, prog_name="invtx")
@click.option("--verbose", "-v", is_flag=True, help="Log every executor decision (DEBUG)")
def cli(verbose: bool):
    """
    invtx - Batched, validated inventory transactions.

    \b
    Commands:
        validate         Check a scenario document
        simulate         Run a scenario through a transaction group

    Settings are read from INVTX_* environment variables or a .env file.
    """
    if verbose:
        config = GroupConfig.from_env()
        setup_transaction_logging("DEBUG", json_format=config.log_json)


cli.add_command(validate_cmd)
cli.add_command(simulate_cmd)
