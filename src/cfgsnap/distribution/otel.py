"""
OTel span event emission helpers for snapshot distribution.

Usage::

    from cfgsnap.distribution.otel import emit_publish_result, emit_receive_result

    emit_publish_result(version=7, result=result)
    emit_receive_result(verdict)
"""

from __future__ import annotations

from typing import Optional

from cfgsnap._otel_helpers import add_span_event
from cfgsnap.distribution.models import Accepted, PublishResult, Verdict


def emit_publish_result(
    version: int,
    result: Optional[PublishResult] = None,
    error: Optional[str] = None,
) -> None:
    """Emit a span event for one publish cycle.

    Event name: ``config.publish.result``
    """
    attrs: dict[str, str | int | float | bool] = {
        "config.publish.version": version,
        "config.publish.success": result is not None,
    }
    if result is not None:
        attrs["config.publish.size_bytes"] = result.size_bytes
        attrs["config.publish.instruments"] = result.counts.instruments
    if error:
        attrs["config.publish.error"] = error

    add_span_event("config.publish.result", attrs)


def emit_receive_result(verdict: Verdict) -> None:
    """Emit a span event for one received payload.

    Event name: ``config.receive.result``
    """
    accepted = isinstance(verdict, Accepted)
    attrs: dict[str, str | int | float | bool] = {
        "config.receive.accepted": accepted,
    }
    if verdict.version is not None:
        attrs["config.receive.version"] = verdict.version
    if accepted:
        attrs["config.receive.instruments"] = verdict.counts.instruments
    else:
        attrs["config.receive.reason"] = verdict.reason
        attrs["config.receive.malformed"] = verdict.malformed

    add_span_event("config.receive.result", attrs)
