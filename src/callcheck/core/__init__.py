"""Core module exports."""

from callcheck.core.errors import (
    CallCheckError,
    CheckFailure,
    ConfigError,
    ErrorCode,
    SnapshotError,
    UsageError,
)
from callcheck.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "CallCheckError",
    "CheckFailure",
    "ConfigError",
    "ErrorCode",
    "SnapshotError",
    "UsageError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
