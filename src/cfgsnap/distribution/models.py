"""
Pydantic v2 models for publish cycles and receiver verdicts.

All models use ``extra="forbid"`` to reject unknown fields at parse time.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class SnapshotCounts(BaseModel):
    """Per-list row counts of one snapshot."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    instruments: int = Field(0, ge=0)
    etf: int = Field(0, ge=0)
    options: int = Field(0, ge=0)
    risk_limits: int = Field(0, ge=0)

    def describe(self) -> str:
        return (
            f"inst={self.instruments} etf={self.etf} "
            f"opt={self.options} limits={self.risk_limits}"
        )


class PublishResult(BaseModel):
    """Outcome of a successful publish cycle."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: int = Field(..., ge=1)
    size_bytes: int = Field(..., ge=0)
    ts_nanos: int = Field(..., ge=0)
    counts: SnapshotCounts


class Accepted(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["accepted"] = "accepted"
    version: int
    counts: SnapshotCounts


class Rejected(BaseModel):
    """Receiver verdict for a payload that was not accepted.

    ``malformed`` distinguishes undecodable buffers from well-formed
    snapshots that fail the acceptance policy.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["rejected"] = "rejected"
    reason: str
    malformed: bool = False
    version: int | None = None


Verdict = Union[Accepted, Rejected]
