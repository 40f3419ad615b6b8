"""
Explicit coercion rules for snapshot row values.

Every integer field has a declared wire width.  The single rule applied to
all of them: convert the input to an exact integer, then wrap it modulo
2**width into the field's range (two's complement for signed kinds).
This matches the ``>>> 0`` / ``| 0`` / 64-bit conventions the engine was
built against:

=========  ==========================================================
uint8      enum fields (``Instrument.type``, ``OptionMeta.right``)
int32      ``weight_num``, ``weight_den``, ``strike_ticks``
uint32     ids, tick/lot sizes, ``multiplier``, ``expiry_epoch_days``,
           ``max_orders_per_sec``
int64      ``pos_min_lots``, ``pos_max_lots``, ``notional_max_ticks``
uint64     ``meta``, ``version``, ``ts_nanos``
=========  ==========================================================

Inputs that are not exact integers (fractional floats/decimals, NaN,
non-numeric strings) are rejected rather than truncated.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

_EPOCH_DATE = date(1970, 1, 1)
_EPOCH_DATETIME = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_DAY = timedelta(days=1)


def as_int(value: Any) -> int:
    """Convert *value* to an exact ``int``.

    Raises:
        TypeError: For booleans and non-numeric types.
        ValueError: For non-integral or non-finite numbers and bad strings.
    """
    if isinstance(value, bool):
        raise TypeError("boolean is not an integer value")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValueError(f"{value!r} is not an integral number")
        return int(value)
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise ValueError(f"{value!r} is not an integral number")
        return int(value)
    if isinstance(value, str):
        return int(value.strip(), 10)
    raise TypeError(f"{type(value).__name__} is not an integer value")


def wrap_int(value: int, bits: int, signed: bool) -> int:
    """Wrap *value* modulo ``2**bits`` into the unsigned or signed range."""
    wrapped = value & ((1 << bits) - 1)
    if signed and wrapped >= 1 << (bits - 1):
        wrapped -= 1 << bits
    return wrapped


def epoch_days(value: Any) -> int:
    """Whole days since 1970-01-01 UTC, floored.

    Accepts ``date``, ``datetime`` (naive values are taken as UTC) and ISO
    8601 strings of either.
    """
    if isinstance(value, str):
        text = value.strip()
        try:
            value = date.fromisoformat(text)
        except ValueError:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (value - _EPOCH_DATETIME) // _ONE_DAY
    if isinstance(value, date):
        return (value - _EPOCH_DATE).days
    raise TypeError(f"{type(value).__name__} is not a date value")
