"""
Engine-side acceptance check for incoming ConfigSnapshot payloads.

Only the header is decoded: version, timestamp and the four list lengths.
A payload is accepted when its version is at least 1 and exactly
representable as a double (consumers read it as a JavaScript number), and
it carries at least one instrument.  Acceptance writes an audit entry and
nothing else.
"""

from __future__ import annotations

import logging
from typing import Optional

from cfgsnap.distribution.models import Accepted, Rejected, SnapshotCounts, Verdict
from cfgsnap.distribution.otel import emit_receive_result
from cfgsnap.errors import PayloadDecodeError
from cfgsnap.logger import AuditLogger
from cfgsnap.snapshot.reader import decode_header

logger = logging.getLogger(__name__)

MAX_SAFE_VERSION = 2**53 - 1


class SnapshotReceiver:
    """Stateless validator; safe to call from concurrent requests."""

    def __init__(self, audit: Optional[AuditLogger] = None):
        self._audit = audit or AuditLogger(service_name="engine-control")

    def accept(self, payload: bytes) -> Verdict:
        try:
            header = decode_header(payload)
        except PayloadDecodeError as exc:
            verdict: Verdict = Rejected(reason=f"Malformed payload: {exc}", malformed=True)
        else:
            counts = SnapshotCounts(**header.counts())
            if not 1 <= header.version <= MAX_SAFE_VERSION:
                verdict = Rejected(
                    reason=f"Version {header.version} is not a usable snapshot version",
                    version=header.version,
                )
            elif counts.instruments <= 0:
                verdict = Rejected(reason="Snapshot has no instruments", version=header.version)
            else:
                verdict = Accepted(version=header.version, counts=counts)

        if isinstance(verdict, Accepted):
            logger.info(
                "ConfigSnapshot v%d received: %s", verdict.version, verdict.counts.describe()
            )
            self._audit.log_accepted(verdict.version, **verdict.counts.model_dump())
        else:
            logger.warning("ConfigSnapshot rejected: %s", verdict.reason)
            self._audit.log_rejected(verdict.reason, version=verdict.version)
        emit_receive_result(verdict)
        return verdict
