"""
Logging setup and structured audit events.

``configure_logging()`` installs one stdout handler on the ``cfgsnap``
logger tree, formatting records either as one JSON object per line (for
log shippers) or as plain text for a console.

``AuditLogger`` writes the operator-facing trail of the distribution
pipeline as JSON entries on the ``cfgsnap.audit`` logger. Only state
changes are logged:

- snapshot.published
- snapshot.publish_failed
- snapshot.accepted
- snapshot.rejected

Usage:
    from cfgsnap.logger import AuditLogger, configure_logging

    configure_logging("info", "json")
    audit = AuditLogger(service_name="engine-control")
    audit.log_accepted(version=42, instruments=120, etf=8, options=40, risk_limits=12)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_audit_logger = logging.getLogger("cfgsnap.audit")

# Attributes present on every LogRecord; anything else came in via ``extra``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "info", fmt: str = "text") -> None:
    """Configure the ``cfgsnap`` logger tree.

    Idempotent: replaces the handler installed by a previous call.

    Args:
        level: ``debug``, ``info``, ``warning`` or ``error``.
        fmt: ``json`` or ``text``.
    """
    root = logging.getLogger("cfgsnap")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        if getattr(handler, "_cfgsnap_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    handler._cfgsnap_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)


class AuditLogger:
    """
    Structured logger for snapshot distribution events.

    Each entry carries the event name, the service that produced it and
    event-specific attributes (version, per-list counts, reason).
    """

    def __init__(
        self,
        service_name: str = "cfgsnap",
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        self.service_name = service_name
        self.extra_labels = extra_labels or {}
        self._logger = _audit_logger

    def _emit(self, event: str, level: str = "info", **fields: Any) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "service": self.service_name,
        }
        entry.update({k: v for k, v in fields.items() if v is not None})
        if self.extra_labels:
            entry["labels"] = self.extra_labels

        log_line = json.dumps(entry, default=str)
        if level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_published(self, version: int, size_bytes: int, **counts: int) -> None:
        """Log a snapshot that the engine acknowledged."""
        self._emit("snapshot.published", version=version, size_bytes=size_bytes, **counts)

    def log_publish_failed(self, version: int, reason: str) -> None:
        """Log a publish cycle that left the version counter untouched."""
        self._emit("snapshot.publish_failed", level="warn", version=version, reason=reason)

    def log_accepted(self, version: int, **counts: int) -> None:
        """Log a snapshot accepted by the receiver."""
        self._emit("snapshot.accepted", version=version, **counts)

    def log_rejected(self, reason: str, version: Optional[int] = None) -> None:
        """Log a snapshot rejected by the receiver."""
        self._emit("snapshot.rejected", level="warn", version=version, reason=reason)
