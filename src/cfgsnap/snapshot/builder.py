"""
ConfigSnapshot encoder.

Turns the four ordered row collections plus a version into a finished
FlatBuffers buffer rooted at ``ConfigSnapshot``.  Field values are coerced
by the rules in :mod:`cfgsnap.snapshot.coercion`; row order is preserved
into vector order.

Usage::

    from cfgsnap.snapshot.builder import build_snapshot

    payload = build_snapshot(7, instruments, etf_rows, option_rows, limit_rows)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Sequence

import flatbuffers

from cfgsnap.errors import SnapshotBuildError
from cfgsnap.snapshot.coercion import as_int, wrap_int
from cfgsnap.snapshot.layout import CONFIG_SNAPSHOT, FieldSpec, TableLayout, WireKind

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]

_PREPEND_SLOT = {
    WireKind.UINT8: "PrependUint8Slot",
    WireKind.INT32: "PrependInt32Slot",
    WireKind.UINT32: "PrependUint32Slot",
    WireKind.INT64: "PrependInt64Slot",
    WireKind.UINT64: "PrependUint64Slot",
}

MAX_VERSION = (1 << 64) - 1


def build_snapshot(
    version: int,
    instruments: Sequence[Row],
    etf_rows: Sequence[Row],
    option_rows: Sequence[Row],
    limit_rows: Sequence[Row],
    *,
    clock: Callable[[], int] = time.time_ns,
) -> bytes:
    """Encode one ConfigSnapshot.

    ``ts_nanos`` is taken from *clock* at build time.

    Raises:
        SnapshotBuildError: If *version* is out of range or a row field is
            missing or not an integral value.
    """
    if isinstance(version, bool) or not isinstance(version, int):
        raise SnapshotBuildError(CONFIG_SNAPSHOT.name, "version", "must be an integer")
    if not 1 <= version <= MAX_VERSION:
        raise SnapshotBuildError(CONFIG_SNAPSHOT.name, "version", f"{version} out of range")

    builder = flatbuffers.Builder(1024)
    row_sets = {
        "instruments": instruments,
        "etf": etf_rows,
        "options": option_rows,
        "risk_limits": limit_rows,
    }

    vectors: dict[str, int] = {}
    for spec in CONFIG_SNAPSHOT.fields:
        if spec.kind is WireKind.TABLE_VECTOR:
            offsets = [
                _build_row(builder, spec.element, row, index)
                for index, row in enumerate(row_sets[spec.name])
            ]
            vectors[spec.name] = _build_vector(builder, offsets)

    scalars = {
        "version": version,
        "ts_nanos": wrap_int(as_int(clock()), 64, False),
    }

    builder.StartObject(len(CONFIG_SNAPSHOT.fields))
    for slot, spec in enumerate(CONFIG_SNAPSHOT.fields):
        if spec.kind is WireKind.TABLE_VECTOR:
            builder.PrependUOffsetTRelativeSlot(slot, vectors[spec.name], 0)
        else:
            getattr(builder, _PREPEND_SLOT[spec.kind])(slot, scalars[spec.name], 0)
    root = builder.EndObject()
    builder.Finish(root)

    payload = bytes(builder.Output())
    logger.debug(
        "Built ConfigSnapshot v%d: %d bytes (inst=%d etf=%d opt=%d limits=%d)",
        version,
        len(payload),
        len(instruments),
        len(etf_rows),
        len(option_rows),
        len(limit_rows),
    )
    return payload


def _build_vector(builder: flatbuffers.Builder, offsets: list[int]) -> int:
    builder.StartVector(4, len(offsets), 4)
    for offset in reversed(offsets):
        builder.PrependUOffsetTRelative(offset)
    return builder.EndVector()


def _build_row(builder: flatbuffers.Builder, layout: TableLayout, row: Row, index: int) -> int:
    # Strings must be serialized before the table is started.
    strings: dict[str, int] = {}
    scalars: dict[str, int] = {}
    for spec in layout.fields:
        if spec.kind is WireKind.STRING:
            strings[spec.name] = builder.CreateString(_string_value(layout, spec, row, index))
        else:
            scalars[spec.name] = _scalar_value(layout, spec, row, index)

    builder.StartObject(len(layout.fields))
    for slot, spec in enumerate(layout.fields):
        if spec.kind is WireKind.STRING:
            builder.PrependUOffsetTRelativeSlot(slot, strings[spec.name], 0)
        else:
            getattr(builder, _PREPEND_SLOT[spec.kind])(slot, scalars[spec.name], 0)
    return builder.EndObject()


def _raw_value(layout: TableLayout, spec: FieldSpec, row: Row, index: int) -> Any:
    value = row.get(spec.source)
    if value is None:
        if spec.default is None:
            raise SnapshotBuildError(layout.name, spec.name, "missing value", index)
        return spec.default
    return value


def _string_value(layout: TableLayout, spec: FieldSpec, row: Row, index: int) -> str:
    value = _raw_value(layout, spec, row, index)
    if not isinstance(value, str):
        raise SnapshotBuildError(
            layout.name, spec.name, f"expected text, got {type(value).__name__}", index
        )
    return value


def _scalar_value(layout: TableLayout, spec: FieldSpec, row: Row, index: int) -> int:
    raw = _raw_value(layout, spec, row, index)
    try:
        value = as_int(spec.convert(raw) if spec.convert else raw)
    except (TypeError, ValueError) as exc:
        raise SnapshotBuildError(layout.name, spec.name, str(exc), index) from exc

    wrapped = wrap_int(value, spec.kind.bits, spec.kind.signed)
    if wrapped != value:
        logger.warning(
            "%s[%d].%s=%d out of range for %s; wrapped to %d",
            layout.name,
            index,
            spec.name,
            value,
            spec.kind.value,
            wrapped,
        )
    return wrapped
