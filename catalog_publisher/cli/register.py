"""Register commands - publish completed task paths to the catalog."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from neo4j.exceptions import DriverError, Neo4jError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from catalog_publisher import settings
from catalog_publisher.registration import (
    CatalogPublisherError,
    RegistrationPublisher,
    get_unique_paths_to_register,
)
from catalog_publisher.state import TaskRecord, load_task_records

logger = logging.getLogger(__name__)


def _rich_console(stderr: bool = False) -> Console | None:
    """Return a rich Console, or None when output should stay plain.

    ``[cli].rich`` (or ``CATALOG_PUBLISHER_RICH``) forces the choice;
    otherwise rich is used only when the stream is a terminal, which
    rich decides from ``FORCE_TERMINAL``, ``TTY_COMPATIBLE`` and isatty.
    ``NO_COLOR`` only strips colour; tables still render.
    """
    forced = settings.get_rich_output()
    if forced is False:
        return None
    console = Console(stderr=stderr, force_terminal=forced)
    return console if console.is_terminal else None


def _setup_console_logging(command: str, verbose: bool) -> Console | None:
    from catalog_publisher.cli.logging import configure_cli_logging

    configure_cli_logging(command)
    level = logging.INFO if verbose else logging.WARNING

    package_logger = logging.getLogger("catalog_publisher")
    console_handlers = (RichHandler, logging.StreamHandler)
    for existing in package_logger.handlers[:]:
        # FileHandler subclasses StreamHandler; keep the rotating log file
        if type(existing) in console_handlers:
            package_logger.removeHandler(existing)

    log_console = _rich_console(stderr=True)
    if log_console is not None:
        handler: logging.Handler = RichHandler(console=log_console, show_path=False)
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
            )
        )
    handler.setLevel(level)
    package_logger.addHandler(handler)
    return _rich_console()


def _load_records(task_files: tuple[Path, ...]) -> list[TaskRecord]:
    records: list[TaskRecord] = []
    for task_file in task_files:
        try:
            records.extend(load_task_records(task_file))
        except (OSError, ValueError) as e:
            raise click.ClickException(f"Cannot read {task_file}: {e}") from e
    return records


task_files_argument = click.argument(
    "task_files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)

dirs_key_option = click.option(
    "--dirs-key",
    default=None,
    help="Task property listing published paths (default: data.publisher.dirs)",
)


@click.command("register")
@task_files_argument
@click.option(
    "--threads",
    "-t",
    type=click.IntRange(min=1),
    default=None,
    help="Registration policy worker threads (default: 20)",
)
@click.option(
    "--policy",
    "policy_name",
    default=None,
    help="Registration policy: 'default' or 'package.module:Class'",
)
@click.option(
    "--backend",
    type=click.Choice(["graph", "log"]),
    default=None,
    help="Catalog backend (default: graph)",
)
@dirs_key_option
@click.option("--database", default=None, help="Register all paths in this database")
@click.option(
    "--dry-run", is_flag=True, help="Log catalog specs instead of registering them"
)
@click.option("--verbose", "-v", is_flag=True, help="Show INFO-level logs")
def register(
    task_files: tuple[Path, ...],
    threads: int | None,
    policy_name: str | None,
    backend: str | None,
    dirs_key: str | None,
    database: str | None,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Register the paths recorded in completed task state files.

    TASK_FILES are JSON or JSON-lines files of task records.

    \b
    Examples:
      catalog-publisher register job/tasks.json
      catalog-publisher register job/*.json --database tracking -t 8
      catalog-publisher register job/tasks.jsonl --dry-run -v
    """
    console = _setup_console_logging("register", verbose)
    records = _load_records(task_files)

    policy_options = settings.get_policy_options()
    if database:
        policy_options["database_name"] = database

    try:
        publisher = RegistrationPublisher.from_settings(
            policy_name=policy_name,
            policy_options=policy_options,
            backend="log" if dry_run else backend,
            num_threads=threads,
            dirs_key=dirs_key,
        )
    except (ValueError, DriverError, Neo4jError) as e:
        raise click.ClickException(f"Cannot create publisher: {e}") from e

    try:
        with publisher:
            count = publisher.publish(records)
    except CatalogPublisherError as e:
        cause = f" (caused by {e.__cause__!r})" if e.__cause__ else ""
        click.echo(f"Error: {e}{cause}", err=True)
        raise SystemExit(1) from e

    summary = f"Registered {count} catalog specs from {len(records)} task records"
    if dry_run:
        summary += " (dry run)"
    if console:
        console.print(f"[green]✓[/green] {summary}")
    else:
        click.echo(summary)


@click.command("paths")
@task_files_argument
@dirs_key_option
def paths(task_files: tuple[Path, ...], dirs_key: str | None) -> None:
    """Show the unique paths that would be registered.

    \b
    Examples:
      catalog-publisher paths job/tasks.json
    """
    records = _load_records(task_files)
    unique = sorted(
        get_unique_paths_to_register(records, dirs_key or settings.get_dirs_key())
    )

    console = _rich_console()
    if console is not None:
        table = Table(title=f"{len(unique)} paths from {len(records)} task records")
        table.add_column("Path")
        for path in unique:
            table.add_row(path)
        console.print(table)
    else:
        for path in unique:
            click.echo(path)
