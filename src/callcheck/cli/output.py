"""Console output helpers.

Status lines go to stderr; results (tables, traces, JSON) go to stdout so
they can be piped.
"""

from __future__ import annotations

import json
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from callcheck.core.logging import get_logger

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}


def get_console(*, stderr: bool = False) -> Console:
    """A console bound to the current stdout/stderr."""
    return Console(stderr=stderr, highlight=False, soft_wrap=True)


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    get_console(stderr=True).print(f"{' ' * indent}{prefix}{message}", markup=True)
    get_logger("cli").debug("status", message=message, style=style)


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``1 call``, ``3 calls``."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def counts_table(title: str, counts: dict[str, int]) -> Table:
    table = Table(title=title, show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    for name, count in counts.items():
        table.add_row(name, f"[red]{count}[/red]" if count else "[dim]0[/dim]")
    return table
