# devfiles/core/tasks.py
"""
Global task manager for background file operations.

Batches block on the network and on operator decisions, so front ends that
must stay responsive run them on this shared I/O pool instead of spawning
their own threads.

Usage:
    future = AsyncTaskManager.get().submit_io(browser.upload_files, sources)

    # Shutdown (called by the front end on exit)
    AsyncTaskManager.get().shutdown()
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Set

from ..utils.logger import get_logger


class AsyncTaskManager:
    """Singleton owner of the I/O thread pool. Thread-safe."""

    _instance: Optional["AsyncTaskManager"] = None
    _lock = threading.Lock()

    IO_POOL_SIZE = 4

    def __init__(self):
        self.logger = get_logger("devfiles.core.tasks")
        self._io_executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=self.IO_POOL_SIZE, thread_name_prefix="devfiles-io"
        )
        self._active_futures: Set[Future] = set()
        self._futures_lock = threading.Lock()
        self._is_shutdown = False
        self.logger.info(f"AsyncTaskManager initialized (IO workers: {self.IO_POOL_SIZE})")

    @classmethod
    def get(cls) -> "AsyncTaskManager":
        """Get the singleton instance, creating it lazily."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Shut down and forget the singleton (used by tests)."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown(wait=False)
                cls._instance = None

    def _track_future(self, future: Future) -> None:
        with self._futures_lock:
            self._active_futures.add(future)
        future.add_done_callback(self._remove_future)

    def _remove_future(self, future: Future) -> None:
        with self._futures_lock:
            self._active_futures.discard(future)

    def submit_io(self, fn: Callable, *args, **kwargs) -> Optional[Future]:
        """
        Submit an I/O-bound task (listing, transfers, whole batches).

        Returns:
            A Future object, or None if the manager is shut down.
        """
        if self._is_shutdown or self._io_executor is None:
            self.logger.warning("IO task submitted after shutdown, ignoring")
            return None

        try:
            future = self._io_executor.submit(fn, *args, **kwargs)
        except RuntimeError as e:
            self.logger.error(f"Failed to submit IO task: {e}")
            return None
        self._track_future(future)
        return future

    @property
    def pending_tasks(self) -> int:
        with self._futures_lock:
            return sum(1 for f in self._active_futures if not f.done())

    def shutdown(self, wait: bool = False) -> None:
        """
        Shut down the pool.

        Args:
            wait: If True, wait for running tasks. If False, cancel pending
                  ones; a task already inside a transfer runs to completion.
        """
        if self._is_shutdown:
            return
        self._is_shutdown = True
        self.logger.info(f"Shutting down AsyncTaskManager (wait={wait})")

        if not wait:
            with self._futures_lock:
                pending = list(self._active_futures)
            # cancel() runs done-callbacks inline, which take the futures lock
            cancelled = sum(1 for f in pending if f.cancel())
            if cancelled:
                self.logger.info(f"Cancelled {cancelled} pending tasks")

        if self._io_executor is not None:
            self._io_executor.shutdown(wait=wait, cancel_futures=not wait)
            self._io_executor = None

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown


def submit_io(fn: Callable, *args, **kwargs) -> Optional[Future]:
    """Submit an I/O-bound task to the global task manager."""
    return AsyncTaskManager.get().submit_io(fn, *args, **kwargs)
