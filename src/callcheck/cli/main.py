"""callcheck CLI."""

from pathlib import Path

import click

from callcheck import __version__
from callcheck.cli.catalog import catalog_command
from callcheck.cli.chain import chain_command
from callcheck.cli.check import check_command
from callcheck.cli.refs import refs_command
from callcheck.config.loader import load_config
from callcheck.core.errors import ConfigError
from callcheck.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="callcheck")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """callcheck - verify call/value graph snapshots."""
    ctx.ensure_object(dict)
    try:
        config = load_config(Path.cwd())
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config


cli.add_command(check_command, name="check")
cli.add_command(chain_command, name="chain")
cli.add_command(refs_command, name="refs")
cli.add_command(catalog_command, name="catalog")


if __name__ == "__main__":
    cli()
