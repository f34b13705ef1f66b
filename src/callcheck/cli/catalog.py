"""callcheck catalog command - list available checks."""

from __future__ import annotations

import click
from rich.table import Table

from callcheck.checks.catalog import CHECK_CATALOG
from callcheck.cli.output import echo_json, get_console

_CATEGORIES = sorted({spec.category for spec in CHECK_CATALOG.values()})


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--category", type=click.Choice(_CATEGORIES), default=None, help="Only this category")
def catalog_command(as_json: bool, category: str | None) -> None:
    """List every check with its category and description."""
    specs = [s for s in CHECK_CATALOG.values() if category is None or s.category == category]

    if as_json:
        echo_json([s.to_dict() for s in specs])
        return

    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("Check", style="cyan")
    table.add_column("Category")
    table.add_column("Description")
    for spec in specs:
        table.add_row(spec.name, spec.category, spec.description)
    get_console().print(table)
