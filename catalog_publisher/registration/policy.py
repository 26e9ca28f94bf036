"""Registration policies: turn a published path into catalog specs.

A policy is the expensive step of registration.  It may inspect files,
read schemas, or query a remote service, so the publisher runs policies
on a worker pool.  Policies must be safe to call from several threads at
once; the bundled policy keeps no mutable state.

Policies are selected by name from configuration::

    [tool.catalog-publisher.policy]
    name = "default"                 # or "my_package.policies:MyPolicy"
    database-regex = "^/data/([^/]+)/"

Architecture:
    - RegistrationPolicy: structural interface (``get_specs(path)``)
    - PathBasedRegistrationPolicy: derives database/table names from the path
    - get_policy(): resolves a configured name to a policy instance
"""

from __future__ import annotations

import importlib
import logging
import re
from collections import Counter
from collections.abc import Collection
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from catalog_publisher.registration.errors import GenerationError
from catalog_publisher.registration.spec import CatalogSpec

logger = logging.getLogger(__name__)

# Extensions recognised when inspecting the storage format of a directory
STORAGE_FORMATS = frozenset({"avro", "parquet", "orc", "csv", "json", "txt"})

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9_]")


@runtime_checkable
class RegistrationPolicy(Protocol):
    """Interface for generating catalog specs from a published path."""

    def get_specs(self, path: str) -> Collection[CatalogSpec]:
        """Return zero or more catalog specs for ``path``.

        Raises:
            GenerationError: If specs cannot be generated for the path.
        """
        ...


def sanitize_name(name: str) -> str:
    """Lowercase a name and replace characters the catalog rejects with ``_``."""
    return _INVALID_NAME_CHARS.sub("_", name.strip().lower())


def detect_storage_format(location: str | Path) -> str | None:
    """Return the most common data file format below a local directory.

    Hidden and underscore-prefixed files (``_SUCCESS``, ``.crc``) are
    ignored.  Returns None when the location is not a readable local
    directory or holds no recognised data files.
    """
    root = Path(location)
    if not root.is_dir():
        return None
    counts: Counter[str] = Counter()
    try:
        for file in root.rglob("*"):
            if file.name.startswith((".", "_")) or not file.is_file():
                continue
            ext = file.suffix.lstrip(".").lower()
            if ext in STORAGE_FORMATS:
                counts[ext] += 1
    except OSError as e:
        logger.debug(f"Cannot inspect {root}: {e}")
        return None
    if not counts:
        return None
    return counts.most_common(1)[0][0]


class PathBasedRegistrationPolicy:
    """Register each path as one table, or one partition of a table.

    The database name is the explicit ``database_name``, else the first
    group of ``database_regex`` matched against the path, else
    ``default_database``.  The table name is the explicit ``table_name``,
    else the first group of ``table_regex``, else the last non-partition
    path component.  Trailing ``key=value`` components become the
    partition of the spec.

    Example:
        >>> policy = PathBasedRegistrationPolicy(database_regex=r"^/data/([^/]+)/")
        >>> [s.table_id for s in policy.get_specs("/data/tracking/page_views")]
        ['tracking.page_views']
    """

    def __init__(
        self,
        database_name: str | None = None,
        database_regex: str | None = None,
        table_name: str | None = None,
        table_regex: str | None = None,
        default_database: str = "default",
        inspect_format: bool = True,
    ) -> None:
        self.database_name = database_name
        self.database_regex = re.compile(database_regex) if database_regex else None
        self.table_name = table_name
        self.table_regex = re.compile(table_regex) if table_regex else None
        self.default_database = default_database
        self.inspect_format = inspect_format

    def get_specs(self, path: str) -> list[CatalogSpec]:
        table_path, partition = self._split_partition(path)
        spec = CatalogSpec(
            path=path,
            database=self._get_database_name(path),
            table=self._get_table_name(path, table_path),
            location=path,
            storage_format=detect_storage_format(path) if self.inspect_format else None,
            partition=partition or None,
        )
        logger.debug(f"Generated spec {spec.table_id} for {path}")
        return [spec]

    def _get_database_name(self, path: str) -> str:
        if self.database_name:
            return sanitize_name(self.database_name)
        if self.database_regex:
            return sanitize_name(self._match_group(self.database_regex, path, "database"))
        return sanitize_name(self.default_database)

    def _get_table_name(self, path: str, table_path: str) -> str:
        if self.table_name:
            return sanitize_name(self.table_name)
        if self.table_regex:
            return sanitize_name(self._match_group(self.table_regex, path, "table"))
        name = Path(table_path).name
        if not name:
            raise GenerationError(f"Cannot derive a table name from {path!r}", path=path)
        return sanitize_name(name)

    @staticmethod
    def _match_group(pattern: re.Pattern[str], path: str, what: str) -> str:
        match = pattern.search(path)
        if not match or not match.groups() or not match.group(1):
            raise GenerationError(
                f"Path {path!r} does not match {what} regex {pattern.pattern!r}",
                path=path,
            )
        return match.group(1)

    @staticmethod
    def _split_partition(path: str) -> tuple[str, dict[str, str]]:
        """Split trailing ``key=value`` components off a path."""
        parts = list(Path(path.rstrip("/") or "/").parts)
        partition: list[tuple[str, str]] = []
        while parts and "=" in parts[-1]:
            key, _, value = parts.pop().partition("=")
            partition.append((key, value))
        table_path = str(Path(*parts)) if parts else ""
        return table_path, dict(reversed(partition))


_POLICIES: dict[str, type] = {
    "default": PathBasedRegistrationPolicy,
}


def get_policy(name: str = "default", **options: Any) -> RegistrationPolicy:
    """Instantiate a registration policy by configured name.

    Args:
        name: ``"default"`` or an importable ``"package.module:Class"``.
        **options: Keyword arguments passed to the policy constructor.

    Raises:
        ValueError: If the name is unknown, does not resolve to a policy,
            or the policy rejects ``options``.
    """
    if name in _POLICIES:
        policy_cls = _POLICIES[name]
    elif ":" in name:
        module_name, _, attr = name.partition(":")
        try:
            policy_cls = getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Cannot load registration policy {name!r}: {e}") from e
    else:
        raise ValueError(
            f"Unknown registration policy '{name}'. "
            f"Use one of {', '.join(sorted(_POLICIES))} or 'package.module:Class'"
        )

    try:
        policy = policy_cls(**options)
    except TypeError as e:
        # Unknown or missing [policy] option keys
        raise ValueError(
            f"Invalid options for registration policy {name!r}: {e}"
        ) from e
    if not isinstance(policy, RegistrationPolicy):
        raise ValueError(f"{name!r} does not implement get_specs(path)")
    return policy
