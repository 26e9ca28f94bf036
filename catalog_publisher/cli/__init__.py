"""CLI interface for Catalog Publisher."""

import click
from dotenv import load_dotenv

from catalog_publisher import __version__

# Load environment variables (NEO4J_*, CATALOG_PUBLISHER_*) from .env file
load_dotenv(override=True)


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    help="Show the catalog-publisher version and exit.",
)
@click.pass_context
def main(ctx: click.Context, version: bool) -> None:
    """Catalog Publisher - register published data with a metadata catalog.

    \b
      catalog-publisher register TASK_FILES   Register recorded paths
      catalog-publisher paths TASK_FILES      Show the unique recorded paths
    """
    if version:
        click.echo(__version__)
        ctx.exit()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def register_commands() -> None:
    """Register all commands with the main CLI."""
    from catalog_publisher.cli.register import paths, register

    main.add_command(register)
    main.add_command(paths)


# Register commands at import time
register_commands()

__all__ = ["main"]
