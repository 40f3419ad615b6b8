"""HTTP transmitter that posts ConfigSnapshot payloads to the engine."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from cfgsnap.errors import TransmissionError
from cfgsnap.timeouts import HTTP_CLIENT_TIMEOUT_S

logger = logging.getLogger(__name__)


class Transmitter(Protocol):
    def send(self, payload: bytes) -> None: ...


class HttpTransmitter:
    """Posts one payload per call as ``application/octet-stream``.

    Any non-2xx response, connection error or timeout raises
    ``TransmissionError``.  There is no retry.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = HTTP_CLIENT_TIMEOUT_S,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.timeout = timeout_seconds
        self._http = client

    def __enter__(self) -> "HttpTransmitter":
        self._get_client()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _get_client(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(timeout=self.timeout)
        return self._http

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None

    def send(self, payload: bytes) -> None:
        try:
            response = self._get_client().post(
                self.url,
                content=payload,
                headers={"content-type": "application/octet-stream"},
            )
        except httpx.TimeoutException as exc:
            raise TransmissionError(f"Engine did not respond within {self.timeout}s: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransmissionError(f"Failed to reach engine at {self.url}: {exc}") from exc

        if not response.is_success:
            raise TransmissionError(
                f"Engine responded {response.status_code}: {response.text.strip()}",
                status_code=response.status_code,
            )
        logger.debug("Engine accepted %d bytes (%d)", len(payload), response.status_code)

