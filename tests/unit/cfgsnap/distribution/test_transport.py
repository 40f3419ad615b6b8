"""Tests for the HTTP transmitter."""

from __future__ import annotations

import httpx
import pytest

from cfgsnap.distribution.transport import HttpTransmitter
from cfgsnap.errors import TransmissionError

URL = "http://engine:7070/config"


def _transmitter(handler) -> HttpTransmitter:
    return HttpTransmitter(URL, client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestSend:
    def test_posts_octet_stream(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok\n")

        _transmitter(handler).send(b"\x01\x02\x03")

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == URL
        assert seen[0].headers["content-type"] == "application/octet-stream"
        assert seen[0].content == b"\x01\x02\x03"

    def test_any_2xx_is_success(self):
        _transmitter(lambda request: httpx.Response(204)).send(b"x")

    def test_non_2xx_carries_status_and_body(self):
        transmitter = _transmitter(lambda request: httpx.Response(400, text="bad snapshot\n"))
        with pytest.raises(TransmissionError) as exc_info:
            transmitter.send(b"x")
        assert str(exc_info.value) == "Engine responded 400: bad snapshot"
        assert exc_info.value.status_code == 400

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransmissionError, match="Failed to reach engine"):
            _transmitter(handler).send(b"x")

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransmissionError, match="did not respond"):
            _transmitter(handler).send(b"x")


class TestLifecycle:
    def test_context_manager_closes_client(self):
        transmitter = HttpTransmitter(URL)
        with transmitter:
            assert transmitter._http is not None
        assert transmitter._http is None
