"""
YAML gate-file loader with per-path caching.

A gate file names the schema, the baseline and the flatc targets so a
repository can pin its codegen layout next to the schema::

    schema_path: config_snapshot.fbs
    baseline_path: abi/config_snapshot.abi.json
    flatc_bin: tools/flatc
    targets:
      - language: ts
        out_dir: ../sdk-ts/src/gen
        args: [--gen-object-api]
      - language: python
        out_dir: ../sdk-py/gen

Relative paths resolve against the directory holding the gate file.

Usage::

    from cfgsnap.schema_compat.loader import GateConfigLoader

    gate_config = GateConfigLoader().load(Path("protocol/schema-gate.yaml"))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from cfgsnap.schema_compat.codegen import DEFAULT_TARGETS, CodegenTarget
from cfgsnap.timeouts import CODEGEN_TIMEOUT_S

logger = logging.getLogger(__name__)


class GateConfig(BaseModel):
    """Schema gate settings from a YAML gate file."""

    model_config = ConfigDict(extra="forbid")

    schema_path: str = Field(..., min_length=1)
    baseline_path: str = Field(..., min_length=1)
    flatc_bin: Optional[str] = None
    codegen_timeout_s: int = Field(CODEGEN_TIMEOUT_S, ge=1)
    targets: list[CodegenTarget] = Field(default_factory=lambda: list(DEFAULT_TARGETS))
    base_dir: Optional[str] = Field(
        None, description="Directory relative paths resolve against (set by the loader)"
    )

    def resolve(self, path: str) -> Path:
        p = Path(path)
        if p.is_absolute() or self.base_dir is None:
            return p
        return Path(self.base_dir) / p

    @property
    def schema_file(self) -> Path:
        return self.resolve(self.schema_path)

    @property
    def baseline_file(self) -> Path:
        return self.resolve(self.baseline_path)

    @property
    def codegen_root(self) -> Path:
        return Path(self.base_dir) if self.base_dir else Path.cwd()


class GateConfigLoader:
    """Loads and caches gate files from YAML."""

    _cache: ClassVar[dict[str, GateConfig]] = {}

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the gate-file cache (useful in tests)."""
        cls._cache.clear()

    def load(self, path: Path) -> GateConfig:
        """Load a gate file.

        Raises:
            FileNotFoundError: If the file does not exist.
            TypeError: If the YAML root is not a mapping.
            yaml.YAMLError: If the file contains invalid YAML.
            pydantic.ValidationError: If the YAML does not match the schema.
        """
        key = str(path.resolve())
        if key in self._cache:
            logger.debug("Gate config cache hit: %s", key)
            return self._cache[key]

        if not path.exists():
            raise FileNotFoundError(f"Gate file not found: {path}")

        with open(path) as fh:
            raw = yaml.safe_load(fh)

        config = self._validate(raw, source=str(path))
        if config.base_dir is None:
            config = config.model_copy(update={"base_dir": str(path.resolve().parent)})
        self._cache[key] = config

        logger.debug(
            "Loaded gate config: schema=%s, baseline=%s, targets=%d",
            config.schema_file,
            config.baseline_file,
            len(config.targets),
        )
        return config

    def load_from_string(self, yaml_str: str) -> GateConfig:
        """Load a gate file from a YAML string (convenience for testing)."""
        return self._validate(yaml.safe_load(yaml_str), source="<string>")

    @staticmethod
    def _validate(raw: object, source: str) -> GateConfig:
        if not isinstance(raw, dict):
            raise TypeError(
                f"Expected YAML mapping at root of {source}, got {type(raw).__name__}"
            )
        return GateConfig.model_validate(raw)
