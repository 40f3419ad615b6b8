"""
ConfigSnapshot publisher.

One publish cycle::

    fetch rows (4 concurrent queries, joined)
      -> current = versions.current()
      -> payload = build_snapshot(current + 1, ...)
      -> transmitter.send(payload)
      -> versions.advance(current + 1)      # only after the engine acked

The counter is written last.  A cycle that fails at any step leaves it
untouched, so a retry recomputes the same next version.  There is no
automatic retry; the caller decides whether to run the cycle again.
Cycles in one process are serialized.

Usage::

    from cfgsnap.distribution.publisher import ConfigPublisher

    publisher = ConfigPublisher(rows, versions, HttpTransmitter(url))
    result = publisher.publish_once()
    print(f"Published ConfigSnapshot v{result.version} ({result.size_bytes} bytes)")
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional

from opentelemetry import trace

from cfgsnap.distribution.models import PublishResult, SnapshotCounts
from cfgsnap.distribution.otel import emit_publish_result
from cfgsnap.distribution.sequencer import VersionStore
from cfgsnap.distribution.sources import Row, RowSource
from cfgsnap.distribution.transport import Transmitter
from cfgsnap.errors import CfgSnapError, RowFetchError
from cfgsnap.logger import AuditLogger
from cfgsnap.snapshot.builder import build_snapshot
from cfgsnap.timeouts import ROW_FETCH_TIMEOUT_S

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ConfigPublisher:
    """Builds, transmits and commits one snapshot version per cycle."""

    def __init__(
        self,
        rows: RowSource,
        versions: VersionStore,
        transmitter: Transmitter,
        *,
        fetch_timeout_s: float = ROW_FETCH_TIMEOUT_S,
        clock: Callable[[], int] = time.time_ns,
        audit: Optional[AuditLogger] = None,
    ):
        self._rows = rows
        self._versions = versions
        self._transmitter = transmitter
        self._fetch_timeout_s = fetch_timeout_s
        self._clock = clock
        self._audit = audit or AuditLogger(service_name="config-publisher")
        self._lock = threading.Lock()

    def fetch_rows(self) -> Dict[str, List[Row]]:
        """Load all four row sets concurrently and wait for every one.

        Raises:
            RowFetchError: If any query fails or the set does not complete
                within the fetch timeout.
        """
        tasks = {
            "instruments": self._rows.fetch_instruments,
            "etf": self._rows.fetch_etf_components,
            "options": self._rows.fetch_options,
            "risk_limits": self._rows.fetch_risk_limits,
        }
        executor = ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="cfgsnap-rows")
        try:
            futures = {name: executor.submit(fn) for name, fn in tasks.items()}
            _, pending = wait(futures.values(), timeout=self._fetch_timeout_s)
            if pending:
                slow = sorted(name for name, f in futures.items() if f in pending)
                raise RowFetchError(
                    f"Row fetch timed out after {self._fetch_timeout_s}s: {', '.join(slow)}"
                )

            loaded: Dict[str, List[Row]] = {}
            for name, future in futures.items():
                try:
                    loaded[name] = future.result()
                except RowFetchError:
                    raise
                except Exception as exc:
                    raise RowFetchError(f"Failed to load {name}: {exc}") from exc
            return loaded
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def publish_once(self) -> PublishResult:
        """Run one full publish cycle.

        Raises:
            RowFetchError: If loading rows failed.
            SnapshotBuildError: If a row cannot be encoded.
            TransmissionError: If the engine did not acknowledge the payload.
            CfgSnapError: If the engine acknowledged the payload but the
                counter could not be advanced.
        """
        with self._lock, tracer.start_as_current_span("config.publish") as span:
            try:
                rows = self.fetch_rows()
            except RowFetchError as exc:
                logger.error("Publish cycle aborted before versioning: %s", exc)
                raise

            next_version = self._versions.current() + 1
            span.set_attribute("config.publish.version", next_version)

            ts_nanos = self._clock()
            try:
                payload = build_snapshot(
                    next_version,
                    rows["instruments"],
                    rows["etf"],
                    rows["options"],
                    rows["risk_limits"],
                    clock=lambda: ts_nanos,
                )
                self._transmitter.send(payload)
            except CfgSnapError as exc:
                logger.error("Publish of ConfigSnapshot v%d failed: %s", next_version, exc)
                self._audit.log_publish_failed(next_version, str(exc))
                emit_publish_result(next_version, error=str(exc))
                raise

            try:
                self._versions.advance(next_version)
            except CfgSnapError as exc:
                # The engine already holds this version; the counter does not.
                logger.error(
                    "ConfigSnapshot v%d was accepted but the counter was not advanced: %s",
                    next_version,
                    exc,
                )
                reason = f"accepted by engine, counter not advanced: {exc}"
                self._audit.log_publish_failed(next_version, reason)
                emit_publish_result(next_version, error=reason)
                raise

            result = PublishResult(
                version=next_version,
                size_bytes=len(payload),
                ts_nanos=ts_nanos,
                counts=SnapshotCounts(**{name: len(r) for name, r in rows.items()}),
            )
            logger.info("Published ConfigSnapshot v%d (%d bytes)", result.version, result.size_bytes)
            self._audit.log_published(
                result.version, result.size_bytes, **result.counts.model_dump()
            )
            emit_publish_result(next_version, result=result)
            return result
