"""Completed task state records.

A :class:`TaskRecord` is the read-only view of one finished task of a
data-movement job.  Upstream publishers record the locations they wrote
under a well-known property (``data.publisher.dirs`` by default), either
as a comma-separated string or as a JSON list of strings.

Records are loaded from JSON files written by the job runner::

    {"properties": {"data.publisher.dirs": "/data/db/events,/data/db/users"}}

A file may hold a single object, a list of objects, or one object per
line (JSON lines).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskRecord:
    """Read-only property map describing one completed task."""

    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "properties", MappingProxyType(dict(self.properties))
        )

    def contains(self, key: str) -> bool:
        return key in self.properties

    def get_prop(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def get_prop_as_list(self, key: str) -> list[str]:
        """Return a property as a list of non-empty, stripped strings.

        Accepts a comma-separated string or a list of strings.  A missing
        property yields an empty list.

        Raises:
            TypeError: If the value is neither a string nor a list of strings.
        """
        value = self.properties.get(key)
        if value is None:
            return []
        if isinstance(value, str):
            items = value.split(",")
        elif isinstance(value, list | tuple) and all(
            isinstance(item, str) for item in value
        ):
            items = list(value)
        else:
            raise TypeError(
                f"Property {key!r} must be a string or list of strings, "
                f"got {type(value).__name__}"
            )
        return [item.strip() for item in items if item.strip()]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TaskRecord:
        """Build a record from a JSON object.

        Objects with a ``properties`` member use it as the property map;
        otherwise the object itself is the property map.
        """
        props = data.get("properties", data)
        if not isinstance(props, Mapping):
            raise ValueError("Task record 'properties' must be a JSON object")
        return cls(properties=props)


def _iter_json_objects(text: str, source: Path) -> Iterator[Mapping[str, Any]]:
    stripped = text.strip()
    if not stripped:
        return
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError:
        # Fall back to JSON lines
        for lineno, line in enumerate(stripped.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{source}:{lineno}: invalid JSON: {e}") from e
        return
    if isinstance(data, list):
        yield from data
    else:
        yield data


def load_task_records(path: str | Path) -> list[TaskRecord]:
    """Load task records from a JSON or JSON-lines file."""
    source = Path(path)
    records = []
    for obj in _iter_json_objects(source.read_text(encoding="utf-8"), source):
        if not isinstance(obj, Mapping):
            raise ValueError(f"{source}: task record must be a JSON object")
        records.append(TaskRecord.from_dict(obj))
    logger.debug(f"Loaded {len(records)} task records from {source}")
    return records
