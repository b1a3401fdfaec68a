import threading

import pytest

from devfiles.core.tasks import AsyncTaskManager, submit_io


@pytest.fixture(autouse=True)
def fresh_manager():
    AsyncTaskManager.reset()
    yield
    AsyncTaskManager.reset()


class TestAsyncTaskManager:
    def test_is_a_singleton(self):
        assert AsyncTaskManager.get() is AsyncTaskManager.get()

    def test_submit_io_runs_on_pool_thread(self):
        future = submit_io(lambda: threading.current_thread().name)
        assert future.result(5).startswith("devfiles-io")

    def test_finished_tasks_are_not_pending(self):
        manager = AsyncTaskManager.get()
        manager.submit_io(lambda: None).result(5)
        assert manager.pending_tasks == 0

    def test_submit_after_shutdown_returns_none(self):
        manager = AsyncTaskManager.get()
        manager.shutdown(wait=True)
        assert manager.is_shutdown
        assert manager.submit_io(lambda: None) is None

    def test_shutdown_cancels_queued_work(self):
        manager = AsyncTaskManager.get()
        release = threading.Event()
        started = threading.Semaphore(0)

        def block():
            started.release()
            return release.wait(5)

        blockers = [manager.submit_io(block) for _ in range(AsyncTaskManager.IO_POOL_SIZE)]
        for _ in blockers:
            assert started.acquire(timeout=5)
        queued = manager.submit_io(lambda: "never")
        manager.shutdown(wait=False)
        release.set()
        assert queued.cancelled()
        for blocker in blockers:
            assert blocker.result(5) is True
