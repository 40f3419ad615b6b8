"""
Shared OTel span event emission helper.

Provides ``add_span_event()`` used by the ``otel.py`` modules of the
schema gate and the distribution services, so each does not repeat the
span recording check.

Usage::

    from cfgsnap._otel_helpers import add_span_event

    add_span_event("schema.gate.result", {"schema.gate.passed": True})
"""

from __future__ import annotations

from opentelemetry import trace as otel_trace


def add_span_event(
    name: str, attributes: dict[str, str | int | float | bool]
) -> None:
    """Add an event to the current OTel span if it is recording.

    Args:
        name: Event name (e.g. ``"config.publish.result"``).
        attributes: Flat dict of span event attributes.
    """
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)
