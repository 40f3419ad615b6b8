"""
Baseline storage for the schema gate.

The baseline is the last accepted ``StructuralSnapshot``.  It is read
before every check and written only after a check passes (or when no
baseline exists yet).  Concurrent gate runs against the same baseline must
be serialised, so stores expose ``lock()`` and the gate holds it across
the whole read-check-write sequence.

File layout (format chosen by suffix):
    <path>.json   # indent=2, sorted keys, trailing newline
    <path>.yaml   # sorted keys, block style
    <path>.lock   # advisory lock file, created on demand
"""

from __future__ import annotations

import contextlib
import json
import logging
import sys
import threading
from pathlib import Path
from typing import IO, Generator, Iterator, Optional, Protocol, runtime_checkable

import yaml

from cfgsnap.schema_compat.schema import StructuralSnapshot

logger = logging.getLogger(__name__)


# Cross-platform file locking
if sys.platform == "win32":
    import msvcrt

    def _lock_file(f: IO) -> None:
        """Lock file on Windows."""
        msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)

    def _unlock_file(f: IO) -> None:
        """Unlock file on Windows."""
        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
else:
    import fcntl

    def _lock_file(f: IO) -> None:
        """Lock file on Unix."""
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)

    def _unlock_file(f: IO) -> None:
        """Unlock file on Unix."""
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)


@contextlib.contextmanager
def file_lock(path: Path) -> Generator[IO, None, None]:
    """
    Hold an exclusive advisory lock for *path*.

    The lock lives in a sibling ``<name>.lock`` file so the protected file
    itself can be replaced while the lock is held.

    Example:
        with file_lock(baseline_path):
            ...read, check, write...
    """
    lock_path = path.with_suffix(path.suffix + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch(exist_ok=True)

    with open(lock_path, "r+") as lock_file:
        _lock_file(lock_file)
        try:
            yield lock_file
        finally:
            _unlock_file(lock_file)


@runtime_checkable
class BaselineStore(Protocol):
    """Persistence for the accepted structural snapshot."""

    def load(self) -> Optional[StructuralSnapshot]:
        """Return the stored baseline, or ``None`` on first run."""
        ...

    def save(self, snapshot: StructuralSnapshot) -> None:
        """Replace the stored baseline."""
        ...

    def lock(self) -> contextlib.AbstractContextManager:
        """Serialise a read-check-write sequence against this baseline."""
        ...


class FileBaselineStore:
    """
    Baseline kept in a version-controlled JSON or YAML file.

    Keys are written sorted so that schema changes produce clean diffs.
    Documents written with the legacy ``tables`` key are still readable.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix.lower() in (".yaml", ".yml")

    def load(self) -> Optional[StructuralSnapshot]:
        """Load the baseline.

        Raises:
            json.JSONDecodeError / yaml.YAMLError: If the file is not parseable.
            TypeError: If the document root is not a mapping.
            pydantic.ValidationError: If the document is not a snapshot.
        """
        if not self.path.exists():
            logger.info("No baseline at %s", self.path)
            return None

        with open(self.path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) if self.is_yaml else json.load(fh)

        if not isinstance(raw, dict):
            raise TypeError(
                f"Expected mapping at root of {self.path}, got {type(raw).__name__}"
            )

        snapshot = StructuralSnapshot.model_validate(raw)
        logger.debug(
            "Loaded baseline %s: enums=%d, records=%d, unions=%d",
            self.path,
            len(snapshot.enums),
            len(snapshot.records),
            len(snapshot.unions),
        )
        return snapshot

    def save(self, snapshot: StructuralSnapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = snapshot.to_document()
        if self.is_yaml:
            text = yaml.safe_dump(document, sort_keys=True, default_flow_style=False)
        else:
            text = json.dumps(document, indent=2, sort_keys=True) + "\n"

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(self.path)
        logger.info("Baseline written to %s", self.path)

    def lock(self) -> contextlib.AbstractContextManager:
        return file_lock(self.path)


class MemoryBaselineStore:
    """In-process baseline, for tests and dry runs."""

    def __init__(self, snapshot: Optional[StructuralSnapshot] = None):
        self.snapshot = snapshot
        self.saves = 0
        self._lock = threading.Lock()

    def load(self) -> Optional[StructuralSnapshot]:
        return self.snapshot

    def save(self, snapshot: StructuralSnapshot) -> None:
        self.snapshot = snapshot
        self.saves += 1

    @contextlib.contextmanager
    def lock(self) -> Iterator[None]:
        with self._lock:
            yield
