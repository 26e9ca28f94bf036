"""CLI logging configuration with file output.

Provides a shared ``configure_cli_logging`` function that sets up file
logging for CLI commands.  Log files live under
``~/.local/share/catalog-publisher/logs/``, one per command::

    register.log
    paths.log

Usage from any CLI command::

    from catalog_publisher.cli.logging import configure_cli_logging

    configure_cli_logging("register")
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Standard log directory follows XDG convention
LOG_DIR = Path.home() / ".local" / "share" / "catalog-publisher" / "logs"


def get_log_dir() -> Path:
    """Return the CLI log directory, creating it if needed."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR


def get_log_file(command: str) -> Path:
    """Return the log file path for a given CLI command."""
    return get_log_dir() / f"{command}.log"


def configure_cli_logging(
    command: str,
    *,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 3,
) -> Path:
    """Configure file logging for a CLI command.

    Attaches a DEBUG-level rotating file handler to the
    ``catalog_publisher`` logger.

    Returns:
        Path to the log file
    """
    log_file = get_log_file(command)

    package_logger = logging.getLogger("catalog_publisher")

    # Remove existing file handlers to avoid duplicates on repeated calls
    for handler in package_logger.handlers[:]:
        if isinstance(handler, (RotatingFileHandler, logging.FileHandler)):
            package_logger.removeHandler(handler)
            handler.close()

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-8s %(threadName)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    package_logger.addHandler(file_handler)

    # NOTSET (0) means "inherit from parent" which defaults to WARNING,
    # so set the level explicitly for the file handler to receive events.
    if package_logger.level == logging.NOTSET or package_logger.level > file_level:
        package_logger.setLevel(file_level)

    return log_file
