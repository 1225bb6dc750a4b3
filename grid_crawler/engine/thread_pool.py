"""Thread pool abstraction handing out one bounded executor per batch."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Lock


class WorkerPool:
    """Issue per-batch executors capped at ``max_workers`` threads.

    A fresh executor per batch means a thread abandoned after a timeout never
    occupies a slot the next batch needs.
    """

    def __init__(self, max_workers: int, name: str = "grid") -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self.name = name
        self._executors: list[ThreadPoolExecutor] = []
        self._lock = Lock()

    def batch_executor(self, batch_index: int, size: int) -> ThreadPoolExecutor:
        if not 1 <= size <= self.max_workers:
            raise ValueError(f"Batch size {size} outside 1..{self.max_workers}")
        executor = ThreadPoolExecutor(
            max_workers=size, thread_name_prefix=f"{self.name}-batch{batch_index}"
        )
        with self._lock:
            self._executors.append(executor)
        return executor

    def release(self, executor: ThreadPoolExecutor) -> None:
        """Stop accepting work without waiting on threads that are still running."""

        executor.shutdown(wait=False)
        with self._lock:
            if executor in self._executors:
                self._executors.remove(executor)

    def shutdown(self) -> None:
        with self._lock:
            for executor in self._executors:
                executor.shutdown(wait=False)
            self._executors.clear()

    @property
    def open_executors(self) -> int:
        with self._lock:
            return len(self._executors)


__all__ = ["WorkerPool"]
