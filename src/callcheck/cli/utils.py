"""CLI utilities."""

from __future__ import annotations

from pathlib import Path

import click

from callcheck.config.loader import resolve_snapshot_paths
from callcheck.config.models import CallCheckConfig
from callcheck.core.errors import CallCheckError
from callcheck.core.logging import get_log_file_path, get_logger
from callcheck.graph.store import GraphStore

log = get_logger("cli")


def get_config(ctx: click.Context) -> CallCheckConfig:
    """The config loaded by the root command, or defaults when invoked standalone."""
    obj = ctx.find_root().obj or {}
    config = obj.get("config")
    return config if config is not None else CallCheckConfig()


def command_error(error: CallCheckError) -> click.ClickException:
    """Log ``error`` and wrap it for click.

    When a log file is configured the message points at it.
    """
    log.error(
        "command_failed",
        error=error.error_name,
        message=error.message,
        details=error.details,
    )
    message = str(error)
    log_file = get_log_file_path()
    if log_file:
        message += f". See {log_file} for details."
    return click.ClickException(message)


def load_graph(ctx: click.Context, path: Path | None) -> tuple[GraphStore, Path]:
    """Load the snapshot at ``path``, falling back to the configured calls_path.

    Raises:
        click.ClickException: The snapshot cannot be loaded.
    """
    if path is None:
        path, _ = resolve_snapshot_paths(get_config(ctx))
    try:
        return GraphStore.load(path), path
    except CallCheckError as e:
        raise command_error(e) from e
