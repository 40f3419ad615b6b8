"""
Schema evolution gate for CI/CD pipelines.

Extracts the structure of the current schema, compares it against the
stored baseline and, depending on the mode, accepts it as the new baseline
and regenerates bindings.  Designed to run on every change to the schema
so that wire-breaking edits never reach deployed readers or writers.

Modes:

- ``check``: compare only, never writes.
- ``baseline``: compare, then save the baseline. Codegen is skipped.
- ``full``: compare, save the baseline and regenerate every target.

A missing baseline skips the comparison: the current schema is accepted
as-is.  Any violation fails the run before anything is written.  Codegen
failures propagate as ``CodegenError``.

Usage::

    from cfgsnap.schema_compat.gate import SchemaGate
    from cfgsnap.schema_compat.baseline import FileBaselineStore

    gate = SchemaGate(FileBaselineStore("abi/config_snapshot.abi.json"))
    result = gate.run(Path("config_snapshot.fbs"), mode="check")
    if not result.passed:
        for v in result.violations:
            print(f"GATE FAIL: {v.describe()}")
        sys.exit(1)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Optional

from opentelemetry import trace

from cfgsnap.errors import CodegenError
from cfgsnap.schema_compat.baseline import BaselineStore
from cfgsnap.schema_compat.checker import CompatibilityChecker
from cfgsnap.schema_compat.codegen import FlatcCodegen
from cfgsnap.schema_compat.extractor import SchemaExtractor
from cfgsnap.schema_compat.otel import emit_gate_result, emit_violation
from cfgsnap.schema_compat.schema import GateResult

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

GateMode = Literal["check", "baseline", "full"]


class SchemaGate:
    """Check-then-write gate guarding a schema's baseline."""

    def __init__(
        self,
        store: BaselineStore,
        codegen: Optional[FlatcCodegen] = None,
        checker: Optional[CompatibilityChecker] = None,
    ) -> None:
        self._store = store
        self._codegen = codegen
        self._checker = checker or CompatibilityChecker()

    def run(self, schema_path: Path, mode: GateMode = "check") -> GateResult:
        """Run the gate against the schema at *schema_path*.

        Raises:
            SchemaParseError: If the schema is lexically invalid.
            CodegenError: If flatc fails in ``full`` mode.
            OSError: If the schema cannot be read or the baseline written.
        """
        if mode not in ("check", "baseline", "full"):
            raise ValueError(f"Unknown gate mode: {mode!r}")

        with tracer.start_as_current_span("schema.gate") as span:
            span.set_attribute("schema.path", str(schema_path))
            span.set_attribute("schema.gate.mode", mode)

            source = schema_path.read_text(encoding="utf-8")
            extractor = SchemaExtractor()
            extracted = extractor.extract(source)
            if extractor.ambiguities:
                logger.info(
                    "Schema %s: %d declaration(s) skipped during extraction",
                    schema_path,
                    len(extractor.ambiguities),
                )

            with self._store.lock():
                baseline = self._store.load()
                result = GateResult(mode=mode, baseline_existed=baseline is not None)

                if baseline is not None:
                    result.violations = self._checker.check(baseline, extracted)
                if result.violations:
                    result.passed = False
                    for violation in result.violations:
                        emit_violation(violation)
                    emit_gate_result(result)
                    return result

                if mode == "check":
                    emit_gate_result(result)
                    return result

                self._store.save(extracted)
                result.baseline_written = True

                if mode == "full":
                    codegen = self._codegen or FlatcCodegen()
                    try:
                        result.generated = codegen.generate(schema_path)
                    except CodegenError:
                        logger.error("Codegen failed after baseline update for %s", schema_path)
                        raise

            emit_gate_result(result)
            return result
