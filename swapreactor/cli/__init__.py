"""
swapreactor/cli/__init__.py

swapreactor CLI: root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    swapreactor = "swapreactor.cli:cli"

Adding a new command:
    1. Create swapreactor/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import click

from swapreactor.cli.journal import journal_group
from swapreactor.cli.quote import quote_command
from swapreactor.core.logging_config import configure_logging


@click.group()
@click.version_option(package_name="swapreactor")
@click.option("--log-level", default=None, help="Override SWAPREACTOR_LOG_LEVEL.")
def cli(log_level) -> None:
    """
    swapreactor: order settlement tooling.

    \b
    Commands:
      quote     Resolve an order at a timestamp and print its amounts.
      journal   Inspect and verify fill journals.

    \b
    Quick start:
      swapreactor quote order.json --at 1700000060
      swapreactor journal verify fills.jsonl --format json
    """
    configure_logging(log_level)


cli.add_command(quote_command)
cli.add_command(journal_group)
