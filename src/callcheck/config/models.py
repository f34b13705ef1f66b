"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CALLCHECK__SECTION__KEY)
3. Project YAML (callcheck.yaml in the working directory)
4. Global YAML (~/.config/callcheck/config.yaml)
5. Built-in defaults (this file)

Examples:
    CALLCHECK__LOGGING__LEVEL=DEBUG
    CALLCHECK__SNAPSHOT__CALLS_PATH=/tmp/output/calls.json
    CALLCHECK__CHECKS__MAX_CHAIN_HOPS=40
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from callcheck.config.constants import DEFAULT_MAX_CHAIN_HOPS, MAX_CHAIN_HOPS_LIMIT

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CALLCHECK__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. INFO logs every check run; DEBUG logs each hop.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class SnapshotConfig(BaseModel):
    """Where the indexer left its output.

    Env vars:
        CALLCHECK__SNAPSHOT__CALLS_PATH: Path to calls.json
        CALLCHECK__SNAPSHOT__SCIP_PATH: Path to index.scip.json (optional)
    """

    calls_path: str = Field(
        default="output/calls.json",
        description="Call/value graph produced by the indexer. Relative paths resolve "
        "against the working directory.",
    )
    scip_path: str | None = Field(
        default=None,
        description="Symbol/occurrence index in JSON form. Only needed for symbol queries.",
    )


class ChecksConfig(BaseModel):
    """Check behavior.

    Env vars:
        CALLCHECK__CHECKS__MAX_CHAIN_HOPS: Bound on receiver chain walks
        CALLCHECK__CHECKS__ALLOW_SYNTHETIC_RECEIVER: Allow the implicit $this fallback
        CALLCHECK__CHECKS__TYPE_MISMATCH_IS_ERROR: Count type mismatches as failures
    """

    max_chain_hops: int = Field(
        default=DEFAULT_MAX_CHAIN_HOPS,
        description="Maximum hops followed when walking a receiver chain. "
        "Turns an unexpected cycle into a reported failure.",
    )
    allow_synthetic_receiver: bool = Field(
        default=True,
        description="When a chain starts at $this and the indexer emitted no $this parameter "
        "value, use the receiver of the first access call in scope, else a synthetic "
        "placeholder. When off, only an explicit $this value is accepted.",
    )
    type_mismatch_is_error: bool = Field(
        default=False,
        description="Type mismatches between a call's return_type and its result value "
        "are advisory unless this is set.",
    )

    @field_validator("max_chain_hops")
    @classmethod
    def validate_max_chain_hops(cls, v: int) -> int:
        if not (1 <= v <= MAX_CHAIN_HOPS_LIMIT):
            raise ValueError(f"max_chain_hops must be 1-{MAX_CHAIN_HOPS_LIMIT}, got {v}")
        return v


class CallCheckConfig(BaseModel):
    """Root config model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    checks: ChecksConfig = Field(default_factory=ChecksConfig)
