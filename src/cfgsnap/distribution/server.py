"""
HTTP services for snapshot distribution.

``PublisherServer``: ``POST /publish`` runs one publish cycle.
``ReceiverServer``: ``POST /config`` validates one ConfigSnapshot payload.
Both expose ``GET /healthz`` and answer anything else with 404.

A failed request never stops the service; the next request is handled
normally.
"""

import logging

from flask import Flask, Response, request

from cfgsnap.distribution.models import Accepted
from cfgsnap.distribution.publisher import ConfigPublisher
from cfgsnap.distribution.receiver import SnapshotReceiver
from cfgsnap.errors import CfgSnapError

logger = logging.getLogger(__name__)


def _text(body: str, status: int = 200) -> Response:
    return Response(body, status=status, content_type="text/plain; charset=utf-8")


def _install_common_routes(app: Flask) -> None:
    @app.route("/healthz", methods=["GET"])
    def healthz():
        return _text("ok\n")

    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(error):
        return _text("not found\n", 404)


class PublisherServer:
    """Flask service that triggers publish cycles on demand."""

    def __init__(self, publisher: ConfigPublisher, port: int = 7071, host: str = "0.0.0.0"):
        self.publisher = publisher
        self.port = port
        self.host = host

        self.app = Flask(__name__)
        self._setup_routes()

    def _setup_routes(self):
        _install_common_routes(self.app)

        @self.app.route("/publish", methods=["POST"])
        def publish():
            try:
                result = self.publisher.publish_once()
            except CfgSnapError as exc:
                return _text(f"{exc}\n", 500)
            return _text(f"ok v{result.version}\n")

    def run(self, debug: bool = False):
        logger.info("config-publisher listening on %s:%d", self.host, self.port)
        self.app.run(host=self.host, port=self.port, debug=debug)


class ReceiverServer:
    """Flask service standing in for the engine control endpoint."""

    def __init__(self, receiver: SnapshotReceiver, port: int = 7070, host: str = "0.0.0.0"):
        self.receiver = receiver
        self.port = port
        self.host = host

        self.app = Flask(__name__)
        self._setup_routes()

    def _setup_routes(self):
        _install_common_routes(self.app)

        @self.app.route("/config", methods=["POST"])
        def config():
            verdict = self.receiver.accept(request.get_data())
            if isinstance(verdict, Accepted):
                return _text("ok\n")
            if verdict.malformed:
                return _text(f"error: {verdict.reason}\n", 500)
            return _text(f"bad snapshot: {verdict.reason}\n", 400)

    def run(self, debug: bool = False):
        logger.info("engine control listening on %s:%d", self.host, self.port)
        self.app.run(host=self.host, port=self.port, debug=debug)


def create_publisher_app(publisher: ConfigPublisher) -> Flask:
    return PublisherServer(publisher).app


def create_receiver_app(receiver: SnapshotReceiver | None = None) -> Flask:
    return ReceiverServer(receiver or SnapshotReceiver()).app
