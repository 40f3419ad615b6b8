"""
``flatc`` invocation for generated protocol bindings.

Each target owns an output directory that is cleared before regeneration,
so bindings always reflect the current schema in full and no stale
artifact survives a removed declaration.  Targets run in order; the first
failure stops the run and is raised as ``CodegenError``.  Directories of
targets that already ran, or the failing one, may be left partially
regenerated.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from cfgsnap.errors import CodegenError
from cfgsnap.timeouts import CODEGEN_TIMEOUT_S

logger = logging.getLogger(__name__)


class CodegenTarget(BaseModel):
    """One language binding produced by flatc."""

    model_config = ConfigDict(extra="forbid")

    language: str = Field(..., min_length=1, description="flatc language flag without dashes")
    out_dir: str = Field(..., min_length=1)
    args: list[str] = Field(default_factory=list, description="Extra flatc arguments")


DEFAULT_TARGETS: tuple[CodegenTarget, ...] = (
    CodegenTarget(language="ts", out_dir="sdk-ts/src/gen", args=["--gen-object-api"]),
    CodegenTarget(language="python", out_dir="sdk-py/gen"),
    CodegenTarget(language="java", out_dir="sdk-java/src/main/java"),
    CodegenTarget(language="cpp", out_dir="sdk-cpp/include"),
)


def clean_dir(path: Path) -> None:
    """Remove *path* recursively and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


class FlatcCodegen:
    """Runs flatc once per target against a schema file."""

    def __init__(
        self,
        targets: Sequence[CodegenTarget] = DEFAULT_TARGETS,
        flatc_bin: Optional[str] = None,
        root: Optional[Path] = None,
        timeout_s: int = CODEGEN_TIMEOUT_S,
    ):
        """
        Args:
            targets: Bindings to generate, in order.
            flatc_bin: flatc executable; ``flatc`` on PATH when not set.
            root: Base directory for relative ``out_dir`` values.
            timeout_s: Per-invocation timeout.
        """
        self.targets = list(targets)
        self.flatc_bin = flatc_bin or "flatc"
        self.root = root or Path.cwd()
        self.timeout_s = timeout_s

    def generate(self, schema_path: Path) -> list[str]:
        """Regenerate every target from *schema_path*.

        Returns:
            Languages generated, in order.

        Raises:
            CodegenError: If flatc cannot be launched, times out or exits
                non-zero for any target.
        """
        generated: list[str] = []
        for target in self.targets:
            out_dir = self._resolve(target.out_dir)
            clean_dir(out_dir)
            self._run(target, [f"--{target.language}", *target.args, "-o", str(out_dir), str(schema_path)])
            generated.append(target.language)
            logger.info("Generated %s bindings in %s", target.language, out_dir)
        return generated

    def _resolve(self, out_dir: str) -> Path:
        path = Path(out_dir)
        return path if path.is_absolute() else self.root / path

    def _run(self, target: CodegenTarget, args: list[str]) -> None:
        cmd = [self.flatc_bin, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            raise CodegenError(target.language, f"timed out after {self.timeout_s}s") from e
        except OSError as e:
            raise CodegenError(target.language, f"cannot launch {self.flatc_bin}: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            reason = f"exited with code {result.returncode}"
            if detail:
                reason = f"{reason}: {detail}"
            raise CodegenError(target.language, reason)
