"""
OTel span event emission helpers for the schema gate.

Usage::

    from cfgsnap.schema_compat.otel import emit_gate_result, emit_violation

    emit_gate_result(result)
    for violation in result.violations:
        emit_violation(violation)
"""

from __future__ import annotations

import logging

from cfgsnap._otel_helpers import add_span_event
from cfgsnap.schema_compat.schema import CompatibilityViolation, GateResult

logger = logging.getLogger(__name__)


def emit_gate_result(result: GateResult) -> None:
    """Emit a span event summarising a gate run.

    Event name: ``schema.gate.result``
    """
    attrs: dict[str, str | int | float | bool] = {
        "schema.gate.passed": result.passed,
        "schema.gate.mode": result.mode,
        "schema.gate.baseline_existed": result.baseline_existed,
        "schema.gate.violation_count": len(result.violations),
        "schema.gate.baseline_written": result.baseline_written,
        "schema.gate.generated": ",".join(result.generated),
    }

    if result.passed:
        logger.info("Schema gate passed (mode=%s): %s", result.mode, result.message)
    else:
        logger.warning(
            "Schema gate FAILED (mode=%s): %d violation(s)",
            result.mode,
            len(result.violations),
        )

    add_span_event("schema.gate.result", attrs)


def emit_violation(violation: CompatibilityViolation) -> None:
    """Emit a span event for one compatibility violation.

    Event name: ``schema.gate.violation``
    """
    attrs: dict[str, str | int | float | bool] = {
        "schema.violation.kind": violation.kind.value,
        "schema.violation.subject": violation.subject,
        "schema.violation.message": violation.describe(),
    }
    if violation.index is not None:
        attrs["schema.violation.index"] = violation.index

    logger.warning("Schema violation: %s", violation.describe())

    add_span_event("schema.gate.violation", attrs)
