"""cfgsnap CLI - Engine control endpoint."""

from typing import Optional

import click

from cfgsnap.config import get_config


@click.group()
def receiver():
    """Receive and validate ConfigSnapshot payloads."""
    pass


@receiver.command("serve")
@click.option("--host", default=None, help="Bind address (default: CFGSNAP_RECEIVER_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: CFGSNAP_RECEIVER_PORT)")
def receiver_serve_cmd(host: Optional[str], port: Optional[int]):
    """Run the engine control endpoint (POST /config, GET /healthz)."""
    from cfgsnap.distribution.receiver import SnapshotReceiver
    from cfgsnap.distribution.server import ReceiverServer

    config = get_config()
    server = ReceiverServer(
        SnapshotReceiver(),
        port=port or config.receiver_port,
        host=host or config.receiver_host,
    )
    server.run()
