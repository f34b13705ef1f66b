"""Config module exports."""

from callcheck.config.loader import load_config, resolve_snapshot_paths
from callcheck.config.models import (
    CallCheckConfig,
    ChecksConfig,
    LoggingConfig,
    LogOutputConfig,
    SnapshotConfig,
)

__all__ = [
    "load_config",
    "resolve_snapshot_paths",
    "CallCheckConfig",
    "ChecksConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "SnapshotConfig",
]
