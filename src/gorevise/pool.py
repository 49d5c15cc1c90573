"""Bounded worker pool shared by directory walks."""
from __future__ import annotations

import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable


def default_pool_size() -> int:
    """Twice the number of available CPUs."""
    return (os.cpu_count() or 1) * 2


class WorkerPool:
    """Thread pool whose ``submit`` blocks while every worker is busy.

    Parameters
    ----------
    max_workers : int | None
        Number of worker threads; defaults to :func:`default_pool_size`.
    """

    def __init__(self, max_workers: int | None = None) -> None:
        self.max_workers = max_workers or default_pool_size()
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="gorevise")
        self._slots = threading.BoundedSemaphore(self.max_workers)

    def submit(self, task: Callable[[], None]) -> Future:
        self._slots.acquire()
        try:
            future = self._executor.submit(task)
        except BaseException:
            self._slots.release()
            raise
        future.add_done_callback(lambda _: self._slots.release())
        return future

    def stop_and_wait(self) -> None:
        """Finish queued tasks and stop the workers."""
        self._executor.shutdown(wait=True)
