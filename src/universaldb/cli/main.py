"""UniversalDb CLI - udb command."""

import click

from universaldb import __version__
from universaldb.cli.init import init_command
from universaldb.cli.inspect import classes_command, show_command
from universaldb.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="udb")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """UniversalDb - inspect object graphs stored in the universal schema."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(init_command, name="init")
cli.add_command(classes_command, name="classes")
cli.add_command(show_command, name="show")


if __name__ == "__main__":
    cli()
