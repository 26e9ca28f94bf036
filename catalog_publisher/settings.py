"""Project settings loaded from pyproject.toml [tool.catalog-publisher] section.

Configuration is organized into subsections:
  [tool.catalog-publisher.publisher]  worker threads, paths property key, shutdown
  [tool.catalog-publisher.policy]     registration policy name and its options
  [tool.catalog-publisher.catalog]    catalog register backend
  [tool.catalog-publisher.graph]      Neo4j graph URI, username, password
  [tool.catalog-publisher.cli]        rich console output

All settings support environment variable overrides (CATALOG_PUBLISHER_* prefix / NEO4J_*).
"""

import importlib.resources
import os
import tomllib
from functools import cache
from pathlib import Path
from typing import Any


@cache
def _load_pyproject_settings() -> dict:
    """Load settings from pyproject.toml [tool.catalog-publisher] section.

    Returns:
        Dictionary of settings from pyproject.toml, empty dict if not found.
    """
    try:
        # Try package resources first (installed package)
        files = importlib.resources.files("catalog_publisher")
        pyproject_path = files.joinpath("..", "pyproject.toml")

        if not pyproject_path.is_file():  # type: ignore[union-attr]
            # Walk up to find pyproject.toml (for development)
            current = Path(__file__).resolve().parent
            while current != current.parent:
                candidate = current / "pyproject.toml"
                if candidate.exists():
                    pyproject_path = candidate
                    break
                current = current.parent
            else:
                return {}

        content = pyproject_path.read_text()  # type: ignore[union-attr]
        data = tomllib.loads(content)
        return data.get("tool", {}).get("catalog-publisher", {})
    except (OSError, tomllib.TOMLDecodeError):
        return {}


def _get_section(section: str) -> dict:
    """Get a subsection from [tool.catalog-publisher.{section}]."""
    return _load_pyproject_settings().get(section, {})


def _parse_bool(value: str | bool) -> bool:
    """Parse a boolean value from string or bool."""
    if isinstance(value, bool):
        return value
    return value.lower() in ("true", "1", "yes")


# ─── Publisher settings ────────────────────────────────────────────────────

DEFAULT_NUM_THREADS = 20
DEFAULT_DIRS_KEY = "data.publisher.dirs"
DEFAULT_SHUTDOWN_TIMEOUT = 60.0


def get_num_threads() -> int:
    """Get the size of the registration policy worker pool.

    Priority: CATALOG_PUBLISHER_NUM_THREADS env → [publisher].num-threads → 20.

    Raises:
        ValueError: If the configured value is not a positive integer.
    """
    if env := os.getenv("CATALOG_PUBLISHER_NUM_THREADS"):
        value = int(env)
    else:
        value = int(_get_section("publisher").get("num-threads", DEFAULT_NUM_THREADS))
    if value < 1:
        raise ValueError(f"num-threads must be a positive integer, got {value}")
    return value


def get_dirs_key() -> str:
    """Get the task property key that lists the published paths.

    Priority: CATALOG_PUBLISHER_DIRS_KEY env → [publisher].dirs-key
    → 'data.publisher.dirs'.
    """
    if env := os.getenv("CATALOG_PUBLISHER_DIRS_KEY"):
        return env
    return _get_section("publisher").get("dirs-key", DEFAULT_DIRS_KEY)


def get_shutdown_timeout() -> float:
    """Get how long close() waits for in-flight policy tasks, in seconds.

    Priority: CATALOG_PUBLISHER_SHUTDOWN_TIMEOUT env → [publisher].shutdown-timeout → 60.
    """
    if env := os.getenv("CATALOG_PUBLISHER_SHUTDOWN_TIMEOUT"):
        return float(env)
    val = _get_section("publisher").get("shutdown-timeout")
    return float(val) if val is not None else DEFAULT_SHUTDOWN_TIMEOUT


def get_cancel_on_failure() -> bool:
    """Get whether a failed publish cancels policy tasks that have not started.

    Priority: CATALOG_PUBLISHER_CANCEL_ON_FAILURE env
    → [publisher].cancel-on-failure → False.
    """
    if env := os.getenv("CATALOG_PUBLISHER_CANCEL_ON_FAILURE"):
        return _parse_bool(env)
    val = _get_section("publisher").get("cancel-on-failure")
    if val is not None:
        return _parse_bool(val)
    return False


# ─── Policy and catalog settings ───────────────────────────────────────────


def get_policy_name() -> str:
    """Get the registration policy name.

    Either ``"default"`` or an importable ``"package.module:Class"`` reference.

    Priority: CATALOG_PUBLISHER_POLICY env → [policy].name → 'default'.
    """
    if env := os.getenv("CATALOG_PUBLISHER_POLICY"):
        return env
    return _get_section("policy").get("name", "default")


def get_policy_options() -> dict[str, Any]:
    """Get keyword options for the registration policy.

    Every key of ``[policy]`` except ``name``, with dashes mapped to
    underscores (``database-regex`` → ``database_regex``).
    """
    return {
        key.replace("-", "_"): value
        for key, value in _get_section("policy").items()
        if key != "name"
    }


def get_catalog_backend() -> str:
    """Get the catalog register backend (``"graph"`` or ``"log"``).

    Priority: CATALOG_PUBLISHER_BACKEND env → [catalog].backend → 'graph'.
    """
    if env := os.getenv("CATALOG_PUBLISHER_BACKEND"):
        return env.lower()
    return str(_get_section("catalog").get("backend", "graph")).lower()


# ─── Graph settings ────────────────────────────────────────────────────────


def get_graph_uri() -> str:
    """Get the Neo4j bolt URI.

    Priority: NEO4J_URI env → [graph].uri → 'bolt://localhost:7687'.
    """
    if env := os.getenv("NEO4J_URI"):
        return env
    return _get_section("graph").get("uri", "bolt://localhost:7687")


def get_graph_username() -> str:
    """Get the Neo4j username."""
    if env := os.getenv("NEO4J_USERNAME"):
        return env
    return _get_section("graph").get("username", "neo4j")


def get_graph_password() -> str:
    """Get the Neo4j password."""
    if env := os.getenv("NEO4J_PASSWORD"):
        return env
    return _get_section("graph").get("password", "neo4j")


# ─── CLI settings ──────────────────────────────────────────────────────────


def get_rich_output() -> bool | None:
    """Get whether CLI commands render rich tables and log output.

    None means "detect": rich is used when stdout is a terminal.

    Priority: CATALOG_PUBLISHER_RICH env → [cli].rich → None.
    """
    if env := os.getenv("CATALOG_PUBLISHER_RICH", "").strip():
        return _parse_bool(env)
    val = _get_section("cli").get("rich")
    if val is not None:
        return _parse_bool(val)
    return None
