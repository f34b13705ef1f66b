"""callcheck refs command - one value per declaration."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from callcheck.checks.reference import ReferenceConsistencyChecker
from callcheck.cli.output import echo_json, get_console, status
from callcheck.cli.utils import load_graph
from callcheck.core.errors import CheckFailure


@click.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.argument("class_name", metavar="CLASS")
@click.argument("method")
@click.argument("variable", metavar="VAR")
@click.option("--local", "is_local", is_flag=True, help="VAR is a local, not a parameter")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def refs_command(
    ctx: click.Context,
    path: Path,
    class_name: str,
    method: str,
    variable: str,
    is_local: bool,
    as_json: bool,
) -> None:
    """Check that VAR in CLASS::METHOD has one canonical value node."""
    store, _ = load_graph(ctx, path)
    checker = ReferenceConsistencyChecker(store).in_method(class_name, method)
    checker = checker.for_local(variable) if is_local else checker.for_parameter(variable)

    try:
        result = checker.verify()
    except CheckFailure as e:
        if as_json:
            echo_json({"passed": False, "failure": e.to_dict()})
        else:
            status(escape(str(e)), style="error")
        raise SystemExit(1) from e

    if as_json:
        echo_json({"passed": True, "result": result.to_dict()})
        return
    console = get_console()
    console.print(f"Value:     [cyan]{escape(result.value_id)}[/cyan]")
    console.print(f"Values:    {result.value_count}")
    console.print(f"Receivers: {result.call_count}")
    for call_id in result.receiver_call_ids:
        console.print(f"  [dim]•[/dim] {escape(call_id)}")
    status(escape(result.message), style="success")
