"""
Durable ConfigSnapshot version counter.

The counter is the publisher's only durable side effect.  It starts at 0,
is initialized on first read, and only moves forward through ``advance()``
after the engine has acknowledged the payload for that version.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cfgsnap.errors import CfgSnapError

logger = logging.getLogger(__name__)

DEFAULT_KEY = "configVersion"


class VersionStore(Protocol):
    def current(self) -> int: ...

    def advance(self, next_version: int) -> None: ...


def _version_of(value: Any) -> int:
    # jsonb columns come back decoded; text/json columns come back as str.
    raw = value
    try:
        if isinstance(value, (str, bytes)):
            value = json.loads(value)
        if not isinstance(value, dict) or "version" not in value:
            raise CfgSnapError(f"Malformed version record: {raw!r}")
        version = value["version"]
        if isinstance(version, bool):
            raise TypeError("version must be an integer")
        return int(version)
    except (ValueError, TypeError) as exc:
        raise CfgSnapError(f"Malformed version record: {raw!r}") from exc


class SqlVersionStore:
    """Counter stored as ``{"version": N}`` under one key of ``settings``."""

    def __init__(self, engine: Engine, key: str = DEFAULT_KEY):
        self._engine = engine
        self.key = key

    def current(self) -> int:
        """Return the last published version, initializing it to 0 if absent."""
        try:
            with self._engine.begin() as conn:
                row = conn.execute(
                    text("select value from settings where key = :key"),
                    {"key": self.key},
                ).first()
                if row is not None and row[0] is not None:
                    return _version_of(row[0])
                conn.execute(
                    text(
                        "insert into settings (key, value) values (:key, :value) "
                        "on conflict (key) do nothing"
                    ),
                    {"key": self.key, "value": json.dumps({"version": 0})},
                )
        except SQLAlchemyError as exc:
            raise CfgSnapError(f"Failed to read {self.key}: {exc}") from exc
        logger.info("Initialized %s at 0", self.key)
        return 0

    def advance(self, next_version: int) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text(
                        "insert into settings (key, value) values (:key, :value) "
                        "on conflict (key) do update set value = excluded.value"
                    ),
                    {"key": self.key, "value": json.dumps({"version": next_version})},
                )
        except SQLAlchemyError as exc:
            raise CfgSnapError(f"Failed to advance {self.key} to {next_version}: {exc}") from exc


class MemoryVersionStore:
    """In-process counter for tests and dry runs."""

    def __init__(self, version: int = 0):
        self.version = version
        self.advances: list[int] = []
        self._lock = threading.Lock()

    def current(self) -> int:
        with self._lock:
            return self.version

    def advance(self, next_version: int) -> None:
        with self._lock:
            self.version = next_version
            self.advances.append(next_version)
