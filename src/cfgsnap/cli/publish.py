"""cfgsnap CLI - ConfigSnapshot publisher commands."""

import sys
from typing import Optional

import click

from cfgsnap.config import CfgSnapConfig, get_config
from cfgsnap.errors import CfgSnapError


def _build_publisher(config: CfgSnapConfig):
    """Wire the SQL stores and HTTP transmitter from settings."""
    from cfgsnap.distribution.publisher import ConfigPublisher
    from cfgsnap.distribution.sequencer import SqlVersionStore
    from cfgsnap.distribution.sources import SqlRowSource, make_engine
    from cfgsnap.distribution.transport import HttpTransmitter

    if not config.database_url:
        raise click.UsageError("CFGSNAP_DATABASE_URL not set")
    if not config.engine_control_url:
        raise click.UsageError("CFGSNAP_ENGINE_CONTROL_URL not set")

    engine = make_engine(config.database_url, connect_timeout_s=config.db_connect_timeout_s)
    return ConfigPublisher(
        SqlRowSource(engine),
        SqlVersionStore(engine),
        HttpTransmitter(config.engine_control_url, timeout_seconds=config.http_timeout_s),
        fetch_timeout_s=config.row_fetch_timeout_s,
    )


@click.group()
def publish():
    """Publish ConfigSnapshot payloads to the engine."""
    pass


@publish.command("once")
def publish_once_cmd():
    """Run one publish cycle and exit.

    The version counter only advances when the engine accepts the payload.
    """
    config = get_config()
    try:
        publisher = _build_publisher(config)
    except click.UsageError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    try:
        result = publisher.publish_once()
    except CfgSnapError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Published ConfigSnapshot v{result.version} ({result.size_bytes} bytes)")


@publish.command("serve")
@click.option("--host", default=None, help="Bind address (default: CFGSNAP_PUBLISHER_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: CFGSNAP_PUBLISHER_PORT)")
def publish_serve_cmd(host: Optional[str], port: Optional[int]):
    """Run the publisher HTTP service (POST /publish)."""
    from cfgsnap.distribution.server import PublisherServer

    config = get_config()
    try:
        publisher = _build_publisher(config)
    except click.UsageError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    server = PublisherServer(
        publisher,
        port=port or config.publisher_port,
        host=host or config.publisher_host,
    )
    server.run()
