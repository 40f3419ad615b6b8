"""
ConfigSnapshot wire encoding.

Public API::

    from cfgsnap.snapshot import build_snapshot, decode_header, SnapshotView
"""

from cfgsnap.snapshot.builder import build_snapshot
from cfgsnap.snapshot.coercion import as_int, epoch_days, wrap_int
from cfgsnap.snapshot.layout import (
    CONFIG_SNAPSHOT,
    ETF_COMPONENT,
    INSTRUMENT,
    OPTION_META,
    RISK_LIMIT,
    FieldSpec,
    TableLayout,
    WireKind,
)
from cfgsnap.snapshot.reader import SnapshotHeader, SnapshotView, TableView, decode_header

__all__ = [
    "build_snapshot",
    "decode_header",
    "SnapshotHeader",
    "SnapshotView",
    "TableView",
    "as_int",
    "epoch_days",
    "wrap_int",
    "FieldSpec",
    "TableLayout",
    "WireKind",
    "CONFIG_SNAPSHOT",
    "INSTRUMENT",
    "ETF_COMPONENT",
    "OPTION_META",
    "RISK_LIMIT",
]
