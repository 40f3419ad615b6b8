"""
Centralized configuration for cfgsnap.

Uses Pydantic BaseSettings for environment variable integration
and validation. All configurable values should be defined here.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (CFGSNAP_*)
3. .env file
4. Default values

Example:
    from cfgsnap.config import get_config

    config = get_config()
    print(config.engine_control_url)  # From CFGSNAP_ENGINE_CONTROL_URL

    # Override at runtime
    config = get_config(publisher_port=9071)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cfgsnap.timeouts import (
    CODEGEN_TIMEOUT_S,
    DB_CONNECT_TIMEOUT_S,
    HTTP_CLIENT_TIMEOUT_S,
    ROW_FETCH_TIMEOUT_S,
)


class CfgSnapConfig(BaseSettings):
    """
    Central configuration for cfgsnap.

    All settings can be overridden via environment variables
    prefixed with CFGSNAP_.

    Example:
        export CFGSNAP_DATABASE_URL=postgresql+psycopg://ctc@db/ctc
        export CFGSNAP_ENGINE_CONTROL_URL=http://engine:7070/config
    """

    model_config = SettingsConfigDict(
        env_prefix="CFGSNAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Publisher endpoints
    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL of the configuration store",
    )
    engine_control_url: Optional[str] = Field(
        default=None,
        description="Engine endpoint that receives ConfigSnapshot payloads",
    )

    # Listeners
    publisher_host: str = Field(default="0.0.0.0")
    publisher_port: int = Field(default=7071, ge=1, le=65535)
    receiver_host: str = Field(default="0.0.0.0")
    receiver_port: int = Field(default=7070, ge=1, le=65535)

    # Timeouts
    http_timeout_s: float = Field(
        default=HTTP_CLIENT_TIMEOUT_S,
        gt=0,
        description="Timeout for posting a snapshot to the engine",
    )
    db_connect_timeout_s: int = Field(default=DB_CONNECT_TIMEOUT_S, ge=1)
    row_fetch_timeout_s: float = Field(default=ROW_FETCH_TIMEOUT_S, gt=0)
    codegen_timeout_s: int = Field(default=CODEGEN_TIMEOUT_S, ge=1)

    # Schema gate
    schema_path: str = Field(
        default="protocol/config_snapshot.fbs",
        description="FlatBuffers schema guarded by the gate",
    )
    baseline_path: str = Field(
        default="protocol/abi/config_snapshot.abi.json",
        description="Accepted structural snapshot (JSON or YAML)",
    )
    gate_config_path: Optional[str] = Field(
        default=None,
        description="Optional YAML gate file with codegen targets",
    )
    flatc_bin: Optional[str] = Field(
        default=None,
        description="flatc executable (resolved from PATH if not set)",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for cfgsnap",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format (json for log shippers, text for console)",
    )

    @field_validator("schema_path", "baseline_path", "gate_config_path")
    @classmethod
    def expand_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ and environment variables in paths."""
        if v is None:
            return v
        return os.path.expanduser(os.path.expandvars(v))

    @field_validator("engine_control_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.rstrip("/")

    def get_schema_path(self) -> Path:
        return Path(self.schema_path)

    def get_baseline_path(self) -> Path:
        return Path(self.baseline_path)


# Global singleton
_config: Optional[CfgSnapConfig] = None


def get_config(**overrides) -> CfgSnapConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        CfgSnapConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = CfgSnapConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
