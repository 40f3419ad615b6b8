"""
Exception hierarchy for cfgsnap.

Compatibility violations are reported as data
(``cfgsnap.schema_compat.schema.CompatibilityViolation``), not raised.
Everything else that must stop an operation derives from ``CfgSnapError``
so the CLI and HTTP layers can turn it into an operator-visible message.
"""

from __future__ import annotations

from typing import Optional


class CfgSnapError(Exception):
    """Base class for all cfgsnap failures."""


class SchemaParseError(CfgSnapError):
    """Schema source is lexically invalid and cannot be extracted."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class CodegenError(CfgSnapError):
    """External schema compiler failed for a target language."""

    def __init__(self, language: str, reason: str):
        self.language = language
        self.reason = reason
        super().__init__(f"flatc ({language}) failed: {reason}")


class SnapshotBuildError(CfgSnapError, ValueError):
    """A configuration row cannot be encoded into the snapshot."""

    def __init__(self, table: str, field: str, reason: str, row_index: Optional[int] = None):
        self.table = table
        self.field = field
        self.row_index = row_index
        where = table if row_index is None else f"{table}[{row_index}]"
        super().__init__(f"{where}.{field}: {reason}")


class RowFetchError(CfgSnapError):
    """Loading configuration rows from the store failed or timed out."""


class TransmissionError(CfgSnapError):
    """Posting a snapshot to the engine control endpoint failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PayloadDecodeError(CfgSnapError, ValueError):
    """Snapshot bytes are not a structurally valid ConfigSnapshot buffer."""
