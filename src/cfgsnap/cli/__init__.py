"""
cfgsnap CLI - Schema gate and ConfigSnapshot distribution.

Commands:
    cfgsnap schema check     Check the schema against the accepted baseline
    cfgsnap schema update    Accept the schema and regenerate bindings
    cfgsnap publish once     Run one publish cycle
    cfgsnap publish serve    Run the publisher HTTP service
    cfgsnap receiver serve   Run the engine control endpoint
"""

from typing import Optional

import click

from cfgsnap import __version__
from cfgsnap.config import get_config
from cfgsnap.logger import configure_logging

from .publish import publish
from .receiver import receiver
from .schema import schema


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Override CFGSNAP_LOG_LEVEL",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Override CFGSNAP_LOG_FORMAT",
)
def main(log_level: Optional[str], log_format: Optional[str]):
    """cfgsnap - Versioned configuration snapshots for the engine."""
    config = get_config()
    configure_logging(log_level or config.log_level, log_format or config.log_format)


main.add_command(schema)
main.add_command(publish)
main.add_command(receiver)


if __name__ == "__main__":
    main()
