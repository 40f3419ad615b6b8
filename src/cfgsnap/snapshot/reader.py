"""
Bounds-checked ConfigSnapshot reader.

Payloads arrive from the network, so every offset is validated against the
buffer before it is dereferenced; a buffer that points outside itself
raises ``PayloadDecodeError`` instead of ``IndexError`` or ``struct.error``.
Absent scalar fields read as their default (0), absent vectors as empty.

Usage::

    from cfgsnap.snapshot.reader import decode_header, SnapshotView

    header = decode_header(payload)
    view = SnapshotView(payload)
    first = view.row("instruments", 0).to_dict()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from flatbuffers import encode
from flatbuffers import number_types as N
from flatbuffers.table import Table

from cfgsnap.errors import PayloadDecodeError
from cfgsnap.snapshot.layout import CONFIG_SNAPSHOT, FieldSpec, TableLayout, WireKind

_SCALAR_FLAGS = {
    WireKind.UINT8: N.Uint8Flags,
    WireKind.INT32: N.Int32Flags,
    WireKind.UINT32: N.Uint32Flags,
    WireKind.INT64: N.Int64Flags,
    WireKind.UINT64: N.Uint64Flags,
}

_UOFFSET = N.UOffsetTFlags.bytewidth


class TableView:
    """Lazy accessor over one table inside a snapshot buffer."""

    def __init__(self, buf: bytes, pos: int, layout: TableLayout) -> None:
        self._buf = buf
        self._layout = layout
        self._check(pos, N.SOffsetTFlags.bytewidth, "table")

        vtable = pos - encode.Get(N.SOffsetTFlags.packer_type, buf, pos)
        self._check(vtable, 2 * N.VOffsetTFlags.bytewidth, "vtable")
        vtable_len = encode.Get(N.VOffsetTFlags.packer_type, buf, vtable)
        table_len = encode.Get(N.VOffsetTFlags.packer_type, buf, vtable + 2)
        if vtable_len < 4 or vtable_len % 2:
            raise PayloadDecodeError(f"{layout.name}: malformed vtable length {vtable_len}")
        self._check(vtable, vtable_len, "vtable")
        self._check(pos, table_len, "table body")

        self._tab = Table(buf, pos)
        self._table_len = table_len

    @property
    def layout(self) -> TableLayout:
        return self._layout

    def _check(self, offset: int, size: int, what: str) -> None:
        if offset < 0 or offset + size > len(self._buf):
            raise PayloadDecodeError(
                f"{self._layout.name}: {what} at {offset} (+{size}) outside "
                f"{len(self._buf)}-byte buffer"
            )

    def _field_pos(self, spec: FieldSpec, size: int) -> int:
        """Absolute position of a present field, or 0 when absent."""
        o = self._tab.Offset(4 + 2 * self._layout.slot(spec.name))
        if o == 0:
            return 0
        if o + size > self._table_len:
            raise PayloadDecodeError(f"{self._layout.name}.{spec.name}: field outside table")
        return self._tab.Pos + o

    def _deref(self, pos: int, what: str) -> int:
        self._check(pos, _UOFFSET, what)
        target = pos + encode.Get(N.UOffsetTFlags.packer_type, self._buf, pos)
        self._check(target, _UOFFSET, what)
        return target

    def scalar(self, name: str) -> int:
        spec = self._layout.spec(name)
        flags = _SCALAR_FLAGS[spec.kind]
        pos = self._field_pos(spec, flags.bytewidth)
        if pos == 0:
            return 0
        return self._tab.Get(flags, pos)

    def string(self, name: str) -> str | None:
        spec = self._layout.spec(name)
        pos = self._field_pos(spec, _UOFFSET)
        if pos == 0:
            return None
        start = self._deref(pos, f"{name} string")
        length = encode.Get(N.UOffsetTFlags.packer_type, self._buf, start)
        self._check(start + _UOFFSET, length, f"{name} string")
        raw = bytes(self._buf[start + _UOFFSET:start + _UOFFSET + length])
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PayloadDecodeError(f"{self._layout.name}.{name}: invalid UTF-8") from exc

    def _vector(self, name: str) -> tuple[int, int]:
        spec = self._layout.spec(name)
        pos = self._field_pos(spec, _UOFFSET)
        if pos == 0:
            return 0, 0
        start = self._deref(pos, f"{name} vector")
        length = encode.Get(N.UOffsetTFlags.packer_type, self._buf, start)
        self._check(start + _UOFFSET, length * _UOFFSET, f"{name} vector")
        return start + _UOFFSET, length

    def vector_len(self, name: str) -> int:
        return self._vector(name)[1]

    def row(self, name: str, index: int) -> "TableView":
        spec = self._layout.spec(name)
        start, length = self._vector(name)
        if not 0 <= index < length:
            raise IndexError(f"{self._layout.name}.{name}[{index}] out of range ({length})")
        element = self._deref(start + index * _UOFFSET, f"{name}[{index}]")
        return TableView(self._buf, element, spec.element)

    def rows(self, name: str) -> Iterator["TableView"]:
        for index in range(self.vector_len(name)):
            yield self.row(name, index)

    def to_dict(self) -> dict[str, Any]:
        """Materialize every field, recursing into table vectors."""
        out: dict[str, Any] = {}
        for spec in self._layout.fields:
            if spec.kind is WireKind.STRING:
                out[spec.name] = self.string(spec.name)
            elif spec.kind is WireKind.TABLE_VECTOR:
                out[spec.name] = [r.to_dict() for r in self.rows(spec.name)]
            else:
                out[spec.name] = self.scalar(spec.name)
        return out


class SnapshotView(TableView):
    """Root ``ConfigSnapshot`` view over a finished buffer."""

    def __init__(self, buf: bytes) -> None:
        if len(buf) < 2 * _UOFFSET:
            raise PayloadDecodeError(f"Payload too short: {len(buf)} bytes")
        root = encode.Get(N.UOffsetTFlags.packer_type, buf, 0)
        super().__init__(buf, root, CONFIG_SNAPSHOT)

    @property
    def version(self) -> int:
        return self.scalar("version")

    @property
    def ts_nanos(self) -> int:
        return self.scalar("ts_nanos")


@dataclass(frozen=True)
class SnapshotHeader:
    version: int
    ts_nanos: int
    instruments: int
    etf: int
    options: int
    risk_limits: int

    def counts(self) -> dict[str, int]:
        return {
            "instruments": self.instruments,
            "etf": self.etf,
            "options": self.options,
            "risk_limits": self.risk_limits,
        }


def decode_header(buf: bytes) -> SnapshotHeader:
    """Read the version, timestamp and vector lengths of a snapshot.

    Raises:
        PayloadDecodeError: If the buffer is not a structurally valid
            ConfigSnapshot.
    """
    view = SnapshotView(buf)
    return SnapshotHeader(
        version=view.version,
        ts_nanos=view.ts_nanos,
        instruments=view.vector_len("instruments"),
        etf=view.vector_len("etf"),
        options=view.vector_len("options"),
        risk_limits=view.vector_len("risk_limits"),
    )
