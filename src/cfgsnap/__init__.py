"""
cfgsnap - Versioned configuration snapshots for the trading engine.

This package distributes a binary-encoded configuration snapshot
(instruments, ETF composition, option metadata, per-team risk limits)
from the relational store to the engine, and guards the FlatBuffers
schema that carries it against wire-breaking changes.

Key Features:
- Schema gate: structural extraction, append-only compatibility check,
  baseline persistence and ``flatc`` code generation
- Snapshot builder and header-only reader for the ``ConfigSnapshot`` table
- Publisher with monotonic, commit-last version sequencing
- Receiver with minimal acceptance validation

Example usage:
    from pathlib import Path

    from cfgsnap import SchemaGate, FileBaselineStore

    gate = SchemaGate(FileBaselineStore("abi/config_snapshot.abi.json"))
    result = gate.run(Path("protocol/config_snapshot.fbs"), mode="check")
    for violation in result.violations:
        print(violation.describe())
"""

__version__ = "0.1.0"
__all__ = [
    "SchemaGate",
    "FileBaselineStore",
    "ConfigPublisher",
    "SnapshotReceiver",
    "build_snapshot",
    "decode_header",
    "__version__",
]


# Lazy imports to avoid loading SQLAlchemy/Flask at import time
def __getattr__(name: str):
    if name == "SchemaGate":
        from cfgsnap.schema_compat.gate import SchemaGate
        return SchemaGate
    if name == "FileBaselineStore":
        from cfgsnap.schema_compat.baseline import FileBaselineStore
        return FileBaselineStore
    if name == "ConfigPublisher":
        from cfgsnap.distribution.publisher import ConfigPublisher
        return ConfigPublisher
    if name == "SnapshotReceiver":
        from cfgsnap.distribution.receiver import SnapshotReceiver
        return SnapshotReceiver
    if name == "build_snapshot":
        from cfgsnap.snapshot.builder import build_snapshot
        return build_snapshot
    if name == "decode_header":
        from cfgsnap.snapshot.reader import decode_header
        return decode_header
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
