"""callcheck chain command - walk an expected receiver chain."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from callcheck.checks.chain import ChainTrace, ChainWalker
from callcheck.cli.output import echo_json, get_console, pluralize, status
from callcheck.cli.utils import get_config, load_graph
from callcheck.config.constants import MAX_CHAIN_HOPS_LIMIT
from callcheck.core.errors import CheckFailure, UsageError
from callcheck.graph.models import CALL_KINDS, Value


def parse_hop(spec: str) -> tuple[str, str]:
    """Split ``KIND:NAME`` into (kind, name).

    Raises:
        click.BadParameter: Missing separator, empty name, or unknown kind.
    """
    kind, sep, name = spec.partition(":")
    if not sep or not name:
        raise click.BadParameter(f"'{spec}' is not KIND:NAME (e.g. access:orderRepository)")
    if kind not in CALL_KINDS:
        raise click.BadParameter(f"unknown call kind '{kind}' in '{spec}'")
    return kind, name


@click.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.argument("class_name", metavar="CLASS")
@click.argument("method")
@click.argument("variable", metavar="VAR")
@click.argument("hops", metavar="HOP...", nargs=-1, required=True)
@click.option(
    "--strict-receiver", is_flag=True, help="Accept only an explicit $this parameter value"
)
@click.option(
    "--max-hops",
    type=click.IntRange(1, MAX_CHAIN_HOPS_LIMIT),
    default=None,
    help="Longest chain accepted (default from config)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def chain_command(
    ctx: click.Context,
    path: Path,
    class_name: str,
    method: str,
    variable: str,
    hops: tuple[str, ...],
    strict_receiver: bool,
    max_hops: int | None,
    as_json: bool,
) -> None:
    """Walk a receiver chain inside CLASS::METHOD starting from VAR.

    Each HOP is KIND:NAME, for example:

        callcheck chain output/calls.json 'App\\Service\\OrderService' createOrder
        '$this' access:orderRepository method:save
    """
    parsed = [parse_hop(h) for h in hops]
    config = get_config(ctx)
    store, _ = load_graph(ctx, path)

    walker = ChainWalker(
        store,
        allow_synthetic_receiver=config.checks.allow_synthetic_receiver and not strict_receiver,
        max_hops=max_hops or config.checks.max_chain_hops,
    ).starting_from(class_name, method, variable)
    for kind, name in parsed:
        walker = walker.through(kind, name)

    try:
        trace = walker.verify()
    except UsageError as e:
        raise click.UsageError(e.message) from e
    except CheckFailure as e:
        if as_json:
            echo_json({"passed": False, "failure": e.to_dict()})
        else:
            status(escape(str(e)), style="error")
        raise SystemExit(1) from e

    if as_json:
        echo_json({"passed": True, "trace": trace.to_dict()})
        return
    get_console().print(_trace_table(trace))
    note = " (synthetic $this receiver)" if trace.synthetic_root else ""
    status(
        escape(
            f"Chain verified: {pluralize(trace.step_count, 'hop')}, "
            f"final type {trace.final_type or 'unknown'}{note}"
        ),
        style="success",
    )


def _trace_table(trace: ChainTrace) -> Table:
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Node")
    table.add_column("Id", style="cyan")
    table.add_column("Type")
    for index, step in enumerate(trace.steps):
        node = step.node
        type_name = node.type if isinstance(node, Value) else node.return_type
        table.add_row(str(index), escape(node.describe()), escape(node.id), escape(type_name or ""))
    return table
