"""
Wire layout of the ConfigSnapshot message.

Each table is described once, in schema field order.  The builder and the
reader both walk these descriptions, so a field's slot (and its vtable
offset ``4 + 2 * slot``) always follows its position in the ``.fbs`` file.
Appending a field here and in the schema is the only supported evolution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from cfgsnap.snapshot.coercion import epoch_days

# Wire schema shipped with the package; the layouts below mirror it.
SCHEMA_FILE = Path(__file__).resolve().parent.parent / "schemas" / "config_snapshot.fbs"


class WireKind(str, Enum):
    UINT8 = "ubyte"
    INT32 = "int"
    UINT32 = "uint"
    INT64 = "long"
    UINT64 = "ulong"
    STRING = "string"
    TABLE_VECTOR = "vector"

    @property
    def bits(self) -> int:
        return _SCALAR_BITS[self][0]

    @property
    def signed(self) -> bool:
        return _SCALAR_BITS[self][1]

    @property
    def is_scalar(self) -> bool:
        return self in _SCALAR_BITS


_SCALAR_BITS = {
    WireKind.UINT8: (8, False),
    WireKind.INT32: (32, True),
    WireKind.UINT32: (32, False),
    WireKind.INT64: (64, True),
    WireKind.UINT64: (64, False),
}


@dataclass(frozen=True)
class FieldSpec:
    """One table field.

    ``column`` is the row key the value is read from.  ``convert`` runs
    before integer coercion (used for dates).  ``default`` replaces a
    missing or NULL value; fields without one are required.
    """

    name: str
    kind: WireKind
    column: Optional[str] = None
    default: Any = None
    convert: Optional[Callable[[Any], Any]] = None
    element: Optional["TableLayout"] = None

    @property
    def source(self) -> str:
        return self.column or self.name


@dataclass(frozen=True)
class TableLayout:
    name: str
    fields: tuple[FieldSpec, ...] = field(default_factory=tuple)

    def slot(self, name: str) -> int:
        for index, spec in enumerate(self.fields):
            if spec.name == name:
                return index
        raise KeyError(f"{self.name} has no field {name!r}")

    def spec(self, name: str) -> FieldSpec:
        return self.fields[self.slot(name)]

    def vtable_offset(self, name: str) -> int:
        return 4 + 2 * self.slot(name)

    @property
    def field_names(self) -> list[str]:
        return [spec.name for spec in self.fields]


INSTRUMENT = TableLayout(
    "Instrument",
    (
        FieldSpec("id", WireKind.UINT32),
        FieldSpec("symbol", WireKind.STRING),
        FieldSpec("type", WireKind.UINT8),
        FieldSpec("currency", WireKind.STRING, default="USD"),
        FieldSpec("tick_size_nanos", WireKind.UINT32),
        FieldSpec("tick_size_ticks", WireKind.UINT32),
        FieldSpec("lot_size_lots", WireKind.UINT32),
        FieldSpec("meta", WireKind.UINT64),
    ),
)

ETF_COMPONENT = TableLayout(
    "EtfComponent",
    (
        FieldSpec("etf_instrument_id", WireKind.UINT32),
        FieldSpec("component_instrument_id", WireKind.UINT32),
        FieldSpec("weight_num", WireKind.INT32),
        FieldSpec("weight_den", WireKind.INT32),
    ),
)

OPTION_META = TableLayout(
    "OptionMeta",
    (
        FieldSpec("instrument_id", WireKind.UINT32),
        FieldSpec("underlying_instrument_id", WireKind.UINT32),
        FieldSpec("strike_ticks", WireKind.INT32),
        FieldSpec("right", WireKind.UINT8),
        FieldSpec("expiry_epoch_days", WireKind.UINT32, column="expiry", convert=epoch_days),
        FieldSpec("multiplier", WireKind.UINT32),
    ),
)

RISK_LIMIT = TableLayout(
    "RiskLimit",
    (
        FieldSpec("team_id", WireKind.UINT32),
        FieldSpec("instrument_id", WireKind.UINT32),
        FieldSpec("pos_min_lots", WireKind.INT64),
        FieldSpec("pos_max_lots", WireKind.INT64),
        FieldSpec("notional_max_ticks", WireKind.INT64),
        FieldSpec("max_orders_per_sec", WireKind.UINT32),
    ),
)

CONFIG_SNAPSHOT = TableLayout(
    "ConfigSnapshot",
    (
        FieldSpec("version", WireKind.UINT64),
        FieldSpec("instruments", WireKind.TABLE_VECTOR, element=INSTRUMENT),
        FieldSpec("etf", WireKind.TABLE_VECTOR, element=ETF_COMPONENT),
        FieldSpec("options", WireKind.TABLE_VECTOR, element=OPTION_META),
        FieldSpec("risk_limits", WireKind.TABLE_VECTOR, element=RISK_LIMIT),
        FieldSpec("ts_nanos", WireKind.UINT64),
    ),
)

ROW_TABLES = (INSTRUMENT, ETF_COMPONENT, OPTION_META, RISK_LIMIT)
