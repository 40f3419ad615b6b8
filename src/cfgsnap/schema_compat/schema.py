"""
Pydantic v2 models for structural schema snapshots and gate results.

A ``StructuralSnapshot`` is the order-preserving summary of a FlatBuffers
schema that the compatibility checker compares: enums with their
``(name, value)`` entries, records (tables and structs) with their field
names, unions with their variant names. The same model is the on-disk
baseline format ``{version: 1, enums, records, unions}``.

All models use ``extra="forbid"`` to reject unknown keys at parse time.

Usage::

    from cfgsnap.schema_compat.schema import StructuralSnapshot
    import json

    with open("config_snapshot.abi.json") as fh:
        baseline = StructuralSnapshot.model_validate(json.load(fh))
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Structural snapshot
# ---------------------------------------------------------------------------


class EnumEntry(BaseModel):
    """One enumerator: its name and the integer sent on the wire."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    value: int

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


class StructuralSnapshot(BaseModel):
    """
    Normalized structural summary of a schema.

    Per-entity list order is declaration order and is load-bearing; map
    key order is not.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: Literal[1] = 1
    enums: dict[str, list[EnumEntry]] = Field(default_factory=dict)
    records: dict[str, list[str]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("records", "tables"),
        description="Record name -> ordered field names",
    )
    unions: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Union name -> ordered variant names",
    )

    def to_document(self) -> dict:
        """Return the baseline document with keys sorted for stable diffs."""
        return {
            "version": self.version,
            "enums": {
                name: [{"name": e.name, "value": e.value} for e in entries]
                for name, entries in sorted(self.enums.items())
            },
            "records": {name: list(fields) for name, fields in sorted(self.records.items())},
            "unions": {name: list(variants) for name, variants in sorted(self.unions.items())},
        }


# ---------------------------------------------------------------------------
# Violations
# ---------------------------------------------------------------------------


class ViolationKind(str, Enum):
    """Kinds of wire-breaking change detected by the checker."""

    ENUM_REMOVED = "EnumRemoved"
    ENUM_ENTRY_CHANGED = "EnumEntryChanged"
    RECORD_REMOVED = "RecordRemoved"
    FIELD_CHANGED = "FieldChanged"
    UNION_REMOVED = "UnionRemoved"
    VARIANT_CHANGED = "VariantChanged"


_REMOVED_LABELS = {
    ViolationKind.ENUM_REMOVED: "Enum",
    ViolationKind.RECORD_REMOVED: "Record",
    ViolationKind.UNION_REMOVED: "Union",
}

_CHANGED_LABELS = {
    ViolationKind.ENUM_ENTRY_CHANGED: ("Enum", "entry"),
    ViolationKind.FIELD_CHANGED: ("Record", "field"),
    ViolationKind.VARIANT_CHANGED: ("Union", "variant"),
}


class CompatibilityViolation(BaseModel):
    """A single structural break between the baseline and a new schema.

    ``expected``/``actual`` hold the baseline and new entry at ``index``
    (``NAME=VALUE`` for enum entries); ``actual`` is ``None`` when the new
    list is shorter than the baseline.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: ViolationKind
    subject: str = Field(..., min_length=1)
    index: Optional[int] = Field(None, ge=0)
    expected: Optional[str] = None
    actual: Optional[str] = None

    def describe(self) -> str:
        if self.kind in _REMOVED_LABELS:
            return f"{_REMOVED_LABELS[self.kind]} removed: {self.subject}"
        entity, part = _CHANGED_LABELS[self.kind]
        actual = self.actual if self.actual is not None else "<missing>"
        return (
            f"{entity} {self.subject} {part} changed at index {self.index}: "
            f"{self.expected} -> {actual}"
        )


# ---------------------------------------------------------------------------
# Gate result
# ---------------------------------------------------------------------------


class GateResult(BaseModel):
    """Outcome of one schema gate run."""

    model_config = ConfigDict(extra="forbid")

    passed: bool = True
    mode: Literal["check", "baseline", "full"] = "check"
    baseline_existed: bool = False
    violations: list[CompatibilityViolation] = Field(default_factory=list)
    baseline_written: bool = False
    generated: list[str] = Field(
        default_factory=list,
        description="Languages regenerated by flatc",
    )

    @property
    def message(self) -> str:
        if not self.passed:
            return f"Schema compatibility check failed: {len(self.violations)} violation(s)"
        if not self.baseline_existed and self.baseline_written:
            return "No baseline found; schema accepted as new baseline"
        if not self.baseline_existed:
            return "No baseline found; nothing to compare against"
        return "Schema compatibility OK"
