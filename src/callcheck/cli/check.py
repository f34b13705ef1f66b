"""callcheck check command - schema and integrity verification."""

from __future__ import annotations

from pathlib import Path

import click
from rich.markup import escape

from callcheck.checks.integrity import IntegrityChecker
from callcheck.checks.schema import SchemaChecker
from callcheck.cli.output import counts_table, echo_json, get_console, pluralize, status
from callcheck.cli.utils import command_error, get_config, load_graph
from callcheck.config.constants import MAX_CHAIN_HOPS_LIMIT
from callcheck.core.errors import CallCheckError, CheckFailure
from callcheck.core.logging import clear_run_id, set_run_id


@click.command()
@click.argument("path", required=False, type=click.Path(path_type=Path))
@click.option("--strict", is_flag=True, help="Stop at the first failing check")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "--max-hops",
    type=click.IntRange(1, MAX_CHAIN_HOPS_LIMIT),
    default=None,
    help="Receiver chain bound (default from config)",
)
@click.option("--skip-schema", is_flag=True, help="Skip record-level schema validation")
@click.pass_context
def check_command(
    ctx: click.Context,
    path: Path | None,
    strict: bool,
    as_json: bool,
    max_hops: int | None,
    skip_schema: bool,
) -> None:
    """Verify a calls.json snapshot.

    PATH is the snapshot file (default: snapshot.calls_path from config).
    Exits 1 when any blocking issue is found.
    """
    config = get_config(ctx)
    store, snapshot_path = load_graph(ctx, path)
    checker = IntegrityChecker(
        store,
        max_hops=max_hops or config.checks.max_chain_hops,
        type_mismatch_is_error=config.checks.type_mismatch_is_error,
    ).all_checks()
    schema = SchemaChecker(store)

    set_run_id()
    try:
        if strict:
            _run_strict(schema, checker, skip_schema=skip_schema, as_json=as_json)
            return

        violations = [] if skip_schema else schema.check()
        report = checker.report()
    except CallCheckError as e:
        raise command_error(e) from e
    finally:
        clear_run_id()

    passed = not violations and report.passed

    if as_json:
        echo_json(
            {
                "snapshot": str(snapshot_path),
                "version": store.version,
                "values": store.value_count,
                "calls": store.call_count,
                "passed": passed,
                "schema_violations": [v.to_dict() for v in violations],
                "integrity": report.to_dict(),
            }
        )
    else:
        console = get_console()
        console.print(
            f"[bold]{snapshot_path}[/bold] (version {store.version}, "
            f"{pluralize(store.value_count, 'value')}, {pluralize(store.call_count, 'call')})"
        )
        if not skip_schema:
            if violations:
                console.print(f"\n[bold]Schema:[/bold] {pluralize(len(violations), 'violation')}")
                for violation in violations:
                    console.print(f"  [red]•[/red] {escape(str(violation))}")
            else:
                console.print("\n[bold]Schema:[/bold] ok")
        console.print()
        console.print(counts_table("Integrity", report.counts()))
        console.print()
        for issue in report.issues:
            marker = "[yellow]![/yellow]" if issue.advisory else "[red]•[/red]"
            console.print(f"  {marker} {issue.check}: {escape(issue.message)}")
        if passed:
            status(escape(report.summary()), style="success")
        elif report.empty_snapshot:
            status("Empty snapshot: no calls or values to check", style="error")
        else:
            status(
                f"{pluralize(len(violations), 'schema violation')}, "
                f"{pluralize(report.blocking_issues, 'integrity issue')}",
                style="error",
            )

    if not passed:
        raise SystemExit(1)


def _run_strict(
    schema: SchemaChecker,
    checker: IntegrityChecker,
    *,
    skip_schema: bool,
    as_json: bool,
) -> None:
    try:
        if not skip_schema:
            schema.verify()
        checker.verify()
    except CheckFailure as e:
        if as_json:
            echo_json({"passed": False, "failure": e.to_dict()})
        else:
            status(escape(str(e)), style="error")
        raise SystemExit(1) from e

    if as_json:
        echo_json({"passed": True, "checks": checker.enabled_checks})
    else:
        status(f"All {pluralize(len(checker.enabled_checks), 'check')} passed", style="success")
