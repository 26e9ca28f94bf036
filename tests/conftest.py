"""Shared fixtures for catalog publisher tests.

Provides an in-memory policy and catalog register so the registration
pipeline can be exercised without Neo4j or a filesystem.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import pytest

from catalog_publisher.registration.register import CatalogRegister
from catalog_publisher.registration.spec import CatalogSpec
from catalog_publisher.state import TaskRecord

DIRS_KEY = "data.publisher.dirs"


def _make_spec(path: str, table: str | None = None) -> CatalogSpec:
    name = table or path.strip("/").replace("/", "_") or "root"
    return CatalogSpec(path=path, database="test", table=name, location=path)


def _make_record(*paths: str) -> TaskRecord:
    if not paths:
        return TaskRecord({})
    return TaskRecord({DIRS_KEY: ",".join(paths)})


class RecordingPolicy:
    """Policy returning configurable specs per path and recording calls."""

    def __init__(
        self,
        specs_per_path: int = 1,
        on_call: Callable[[str], None] | None = None,
    ) -> None:
        self.specs_per_path = specs_per_path
        self.on_call = on_call
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def get_specs(self, path: str) -> list[CatalogSpec]:
        with self._lock:
            self.calls.append(path)
        if self.on_call:
            self.on_call(path)
        return [
            _make_spec(path, table=f"{path.strip('/')}_{i}")
            for i in range(self.specs_per_path)
        ]


class RecordingRegister(CatalogRegister):
    """Register that records specs and detects concurrent calls."""

    backend = "memory"

    def __init__(
        self,
        fail_on: int | None = None,
        close_error: Exception | None = None,
        on_register: Callable[[CatalogSpec], None] | None = None,
    ) -> None:
        self.registered: list[CatalogSpec] = []
        self.threads: set[str] = set()
        self.on_register = on_register
        self.fail_on = fail_on
        self.close_error = close_error
        self.close_count = 0
        self.after_close: list[CatalogSpec] = []
        self.max_concurrent = 0
        self._active = 0
        self._lock = threading.Lock()

    def register(self, spec: CatalogSpec) -> None:
        with self._lock:
            self._active += 1
            self.max_concurrent = max(self.max_concurrent, self._active)
        if self.close_count:
            self.after_close.append(spec)
        try:
            if self.fail_on is not None and len(self.registered) + 1 == self.fail_on:
                raise RuntimeError(f"catalog rejected {spec.table_id}")
            self.registered.append(spec)
            self.threads.add(threading.current_thread().name)
            if self.on_register:
                self.on_register(spec)
        finally:
            with self._lock:
                self._active -= 1

    def close(self) -> None:
        self.close_count += 1
        if self.close_error is not None:
            raise self.close_error

    @property
    def registered_paths(self) -> list[str]:
        return [spec.path for spec in self.registered]


@pytest.fixture
def make_record() -> Callable[..., TaskRecord]:
    """Factory for task records listing the given published paths."""
    return _make_record


@pytest.fixture
def make_policy() -> type[RecordingPolicy]:
    """Factory for recording policies, e.g. ``make_policy(specs_per_path=2)``."""
    return RecordingPolicy


@pytest.fixture
def make_register() -> type[RecordingRegister]:
    """Factory for recording registers, e.g. ``make_register(fail_on=2)``."""
    return RecordingRegister


@pytest.fixture
def policy(make_policy) -> RecordingPolicy:
    return make_policy()


@pytest.fixture
def register(make_register) -> RecordingRegister:
    return make_register()
