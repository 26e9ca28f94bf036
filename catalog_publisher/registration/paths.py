"""Collect the unique set of published paths from completed task records."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from catalog_publisher.settings import DEFAULT_DIRS_KEY
from catalog_publisher.state import TaskRecord

logger = logging.getLogger(__name__)


def get_unique_paths_to_register(
    records: Iterable[TaskRecord], key: str = DEFAULT_DIRS_KEY
) -> set[str]:
    """Union the paths recorded under ``key`` across all task records.

    Records without the property contribute nothing.  A record whose value
    cannot be read as a list of paths is skipped with a warning so one
    misconfigured task does not abort the batch.
    """
    paths: set[str] = set()
    for record in records:
        if not record.contains(key):
            continue
        try:
            paths.update(record.get_prop_as_list(key))
        except TypeError as e:
            logger.warning(f"Ignoring malformed {key} on task record: {e}")
    return paths
