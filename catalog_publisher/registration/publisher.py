"""Publisher that registers already-published data with the metadata catalog.

This publisher does not move data.  It relies on the task-level publisher
to record the paths it wrote under the ``data.publisher.dirs`` property of
each task record, and registers those paths once the job has finished.

Pipeline:
    1. Union the recorded paths across all task records (duplicates collapse)
    2. Submit one registration-policy task per path to a fixed-size pool
    3. Drain the tasks in completion order, not submission order
    4. Register each finished path's specs on the calling thread, back to back

The catalog register is only ever called from the thread that invoked
:meth:`RegistrationPublisher.publish_data`, so it need not be thread-safe.
The first failure aborts the call with :class:`RegistrationError`.  Specs
registered before the failure stay registered, and policy tasks that are
still running are left to finish in the background unless
``cancel_on_failure`` is set, in which case tasks that have not started
yet are cancelled.

Usage:
    from catalog_publisher.registration import RegistrationPublisher

    with RegistrationPublisher.from_settings() as publisher:
        publisher.publish(records)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Collection, Iterable
from concurrent.futures import CancelledError, Future, as_completed
from contextlib import ExitStack
from typing import Any, Self

from catalog_publisher import settings
from catalog_publisher.registration.errors import CloseError, RegistrationError
from catalog_publisher.registration.executors import (
    FutureTracker,
    new_policy_executor,
    shutdown_executor,
)
from catalog_publisher.registration.paths import get_unique_paths_to_register
from catalog_publisher.registration.policy import RegistrationPolicy, get_policy
from catalog_publisher.registration.register import CatalogRegister, get_register
from catalog_publisher.registration.spec import CatalogSpec
from catalog_publisher.state import TaskRecord

logger = logging.getLogger(__name__)


class RegistrationPublisher:
    """Register the paths recorded by completed tasks with a catalog.

    Args:
        policy: Generates catalog specs for a path; runs on the worker pool.
        register: Commits specs; owned and closed by this publisher.
        num_threads: Size of the policy worker pool.
        dirs_key: Task property listing the published paths.
        shutdown_timeout: Seconds close() waits for in-flight policy tasks.
        cancel_on_failure: Cancel queued policy tasks when a publish fails.
    """

    def __init__(
        self,
        policy: RegistrationPolicy,
        register: CatalogRegister,
        *,
        num_threads: int = settings.DEFAULT_NUM_THREADS,
        dirs_key: str = settings.DEFAULT_DIRS_KEY,
        shutdown_timeout: float = settings.DEFAULT_SHUTDOWN_TIMEOUT,
        cancel_on_failure: bool = False,
    ) -> None:
        self.policy = policy
        self.dirs_key = dirs_key
        self.shutdown_timeout = shutdown_timeout
        self.cancel_on_failure = cancel_on_failure

        self.register = register
        self._closer = ExitStack()
        self._closer.callback(register.close)
        try:
            self._executor = new_policy_executor(num_threads)
        except Exception:
            self._closer.close()
            raise
        self._tracker = FutureTracker()
        self._close_lock = threading.Lock()
        # Held for each register call and while the register is closed
        self._register_lock = threading.RLock()
        self._closed = False

    @classmethod
    def from_settings(cls, **overrides: Any) -> RegistrationPublisher:
        """Build a publisher from ``[tool.catalog-publisher]`` settings.

        Keyword overrides: ``policy``, ``register``, ``policy_name``,
        ``policy_options``, ``backend``, ``num_threads``, ``dirs_key``,
        ``shutdown_timeout``, ``cancel_on_failure``.  An override of None
        falls back to the configured value; any other value, including 0,
        is used as given.
        """

        def option(name: str, default: Callable[[], Any]) -> Any:
            value = overrides.get(name)
            return default() if value is None else value

        policy = option(
            "policy",
            lambda: get_policy(
                option("policy_name", settings.get_policy_name),
                **option("policy_options", settings.get_policy_options),
            ),
        )
        register = option(
            "register",
            lambda: get_register(option("backend", settings.get_catalog_backend)),
        )
        return cls(
            policy,
            register,
            num_threads=option("num_threads", settings.get_num_threads),
            dirs_key=option("dirs_key", settings.get_dirs_key),
            shutdown_timeout=option(
                "shutdown_timeout", settings.get_shutdown_timeout
            ),
            cancel_on_failure=option(
                "cancel_on_failure", settings.get_cancel_on_failure
            ),
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, records: Collection[TaskRecord]) -> int:
        """Publish data then metadata; returns the number of specs registered."""
        count = self.publish_data(records)
        self.publish_metadata(records)
        return count

    def publish_data(self, records: Iterable[TaskRecord]) -> int:
        """Register the unique paths recorded by ``records``.

        Returns:
            Number of catalog specs registered.

        Raises:
            RegistrationError: On the first policy, cancellation or register
                failure, chained to the original cause.
        """
        if self._closed:
            raise RegistrationError("RegistrationPublisher is closed")

        paths = get_unique_paths_to_register(records, self.dirs_key)
        logger.info(f"Number of paths to be registered in catalog: {len(paths)}")
        if not paths:
            return 0

        futures: dict[Future, str] = {}
        for path in sorted(paths):
            futures[self._submit(path)] = path

        try:
            registered = self._drain(futures)
        except RegistrationError:
            if self.cancel_on_failure:
                cancelled = sum(f.cancel() for f in futures)
                logger.info(f"Cancelled {cancelled} queued policy tasks")
            raise

        logger.info(f"Finished registering {registered} catalog specs")
        return registered

    def publish_metadata(self, records: Iterable[TaskRecord]) -> None:
        """Nothing to do: this publisher writes no job metadata."""

    def _submit(self, path: str) -> Future:
        try:
            future = self._executor.submit(self._generate_specs, path)
        except RuntimeError as e:
            # Pool shut down by a concurrent close()
            raise RegistrationError(
                f"Cannot submit catalog spec generation for {path}", path=path
            ) from e
        return self._tracker.track(future)

    def _generate_specs(self, path: str) -> Collection[CatalogSpec]:
        return self.policy.get_specs(path)

    def _drain(self, futures: dict[Future, str]) -> int:
        registered = 0
        for future in as_completed(futures):
            path = futures[future]
            try:
                specs = list(future.result())
            except CancelledError as e:
                logger.info(f"Catalog spec generation for {path} was cancelled")
                raise RegistrationError(
                    f"Catalog spec generation for {path} was cancelled", path=path
                ) from e
            except Exception as e:
                logger.info(
                    f"Failed to generate catalog specs for {path}", exc_info=True
                )
                raise RegistrationError(
                    f"Failed to generate catalog specs for {path}: {e}", path=path
                ) from e

            for spec in specs:
                with self._register_lock:
                    if self._closed:
                        # close() ran on another thread; the register may be gone
                        raise RegistrationError(
                            "RegistrationPublisher is closed", path=path
                        )
                    try:
                        self.register.register(spec)
                    except Exception as e:
                        logger.info(
                            f"Failed to register {spec.table_id}", exc_info=True
                        )
                        raise RegistrationError(
                            f"Failed to register {spec.table_id} for {path}: {e}",
                            path=path,
                        ) from e
                registered += 1
        return registered

    def close(self) -> None:
        """Shut down the policy pool, then close the catalog register.

        The register is closed even if the pool shutdown fails, and never
        while a register call from a concurrent publish is in progress.  A pool
        failure takes precedence; a register close failure behind it is
        logged.  Closing an already closed publisher does nothing.

        Raises:
            CloseError: If either step fails.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        pool_error: Exception | None = None
        try:
            shutdown_executor(self._executor, self._tracker, self.shutdown_timeout)
        except Exception as e:
            pool_error = e

        try:
            with self._register_lock:
                self._closer.close()
        except Exception as e:
            if pool_error is None:
                raise CloseError(f"Failed to close catalog register: {e}") from e
            logger.error("Failed to close catalog register", exc_info=e)

        if pool_error is not None:
            raise CloseError(
                f"Failed to shut down policy executor: {pool_error}"
            ) from pool_error

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
