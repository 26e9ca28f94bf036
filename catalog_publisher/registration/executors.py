"""Worker pool helpers for running registration policies.

The pool is a fixed-size :class:`~concurrent.futures.ThreadPoolExecutor`.
:class:`FutureTracker` records the futures still in flight so that
:func:`shutdown_executor` can wait for them with a bounded timeout, which
``ThreadPoolExecutor.shutdown`` itself cannot do.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

logger = logging.getLogger(__name__)


def new_policy_executor(
    num_threads: int, thread_name_prefix: str = "CatalogPolicyExecutor"
) -> ThreadPoolExecutor:
    """Create the fixed-size pool that runs registration policies."""
    if num_threads < 1:
        raise ValueError(f"num_threads must be a positive integer, got {num_threads}")
    return ThreadPoolExecutor(
        max_workers=num_threads, thread_name_prefix=thread_name_prefix
    )


class FutureTracker:
    """Thread-safe set of futures that have not completed yet."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: set[Future] = set()

    def track(self, future: Future) -> Future:
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def pending(self) -> set[Future]:
        with self._lock:
            return set(self._pending)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


def shutdown_executor(
    executor: ThreadPoolExecutor,
    tracker: FutureTracker,
    timeout: float,
) -> int:
    """Stop ``executor`` accepting work and wait for in-flight futures.

    Waits at most ``timeout`` seconds.  Futures still queued after the
    timeout are cancelled; tasks already running cannot be interrupted and
    finish in their worker thread.  Cancelled futures stay in the work
    queue so a worker still marks them cancelled and wakes any thread
    waiting on them in ``as_completed``.

    Returns:
        Number of futures that had not completed when the timeout elapsed.
    """
    executor.shutdown(wait=False)
    pending = tracker.pending()
    if not pending:
        return 0

    logger.debug(f"Waiting up to {timeout}s for {len(pending)} policy tasks")
    _, not_done = wait(pending, timeout=timeout)
    if not_done:
        logger.warning(
            f"{len(not_done)} policy tasks still running after {timeout}s; "
            "cancelling queued tasks"
        )
        for future in not_done:
            future.cancel()
    return len(not_done)
