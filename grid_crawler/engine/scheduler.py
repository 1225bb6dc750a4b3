"""Batched dispatch of one fetch task per grid point."""

from __future__ import annotations

import math
import time
from concurrent.futures import FIRST_COMPLETED, Future, wait
from dataclasses import dataclass, field
from datetime import timedelta
from threading import Event, Lock
from typing import Callable, Generator, Iterator, Sequence

import structlog

from ..config import RunPlan
from ..errors import TaskError, TaskTimeout
from ..models import GeoPoint, Record, SearchTask
from .fetcher import BaseFetcher
from .thread_pool import WorkerPool


@dataclass(slots=True)
class TaskOutcome:
    """Terminal state of one dispatched task."""

    task: SearchTask
    status: str  # "success" | "timeout" | "error"
    batch_index: int
    record_count: int = 0
    error: Exception | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == "success"


class RecordCollector:
    """Order-independent sink for record batches, safe for concurrent appends."""

    def __init__(self) -> None:
        self._batches: list[list[Record]] = []
        self._lock = Lock()

    def append(self, records: Sequence[Record]) -> None:
        with self._lock:
            self._batches.append(list(records))

    def batches(self) -> list[list[Record]]:
        with self._lock:
            return [list(batch) for batch in self._batches]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(batch) for batch in self._batches)


@dataclass(slots=True)
class GridRunResult:
    collected: list[list[Record]]
    outcomes: list[TaskOutcome]
    batch_sizes: list[int] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "success")

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "error")

    @property
    def timed_out(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "timeout")

    @property
    def errors(self) -> list[TaskOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def record_count(self) -> int:
        return sum(len(batch) for batch in self.collected)


def partition(points: Sequence[GeoPoint], size: int) -> Iterator[Sequence[GeoPoint]]:
    for start in range(0, len(points), size):
        yield points[start : start + size]


class BatchScheduler:
    """Run grid tasks in sequential batches of at most ``max_workers``.

    Every task in a batch runs concurrently with its own deadline. A batch
    ends once each task has succeeded, failed or timed out; the scheduler
    then pauses for ``inter_batch_pause`` before dispatching the next one.
    Timed-out tasks are abandoned: their cancel event is set, their result
    is discarded and their thread is left to finish on its own. A failing
    ``on_task_done`` hook is logged and never stops the run.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        *,
        max_workers: int,
        per_task_timeout: timedelta,
        inter_batch_pause: timedelta,
        sleep: Callable[[float], None] = time.sleep,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.fetcher = fetcher
        self.max_workers = max_workers
        self.per_task_timeout = per_task_timeout
        self.inter_batch_pause = inter_batch_pause
        self._sleep = sleep
        self.logger = logger or structlog.get_logger("grid_crawler").bind(component="scheduler")

    @classmethod
    def from_plan(
        cls,
        fetcher: BaseFetcher,
        plan: RunPlan,
        *,
        sleep: Callable[[float], None] = time.sleep,
        logger: structlog.BoundLogger | None = None,
    ) -> "BatchScheduler":
        return cls(
            fetcher,
            max_workers=plan.max_workers,
            per_task_timeout=plan.per_task_timeout,
            inter_batch_pause=plan.inter_batch_pause,
            sleep=sleep,
            logger=logger,
        )

    def run_grid(
        self,
        points: Sequence[GeoPoint],
        query: str,
        *,
        radius_km: float = 1.0,
        on_task_done: Callable[[TaskOutcome], None] | None = None,
    ) -> GridRunResult:
        collector = RecordCollector()
        outcomes: list[TaskOutcome] = []
        batch_sizes: list[int] = []
        pool = WorkerPool(self.max_workers)
        batches = list(partition(points, self.max_workers))
        try:
            for index, batch in enumerate(batches):
                batch_sizes.append(len(batch))
                self.logger.info(
                    "batch_started", batch=index + 1, batches=len(batches), size=len(batch)
                )
                tasks = [SearchTask(center=point, query=query, radius_km=radius_km) for point in batch]
                batch_outcomes = self._run_batch(pool, index, tasks, collector)
                try:
                    for outcome in batch_outcomes:
                        outcomes.append(outcome)
                        self._notify(on_task_done, outcome)
                finally:
                    batch_outcomes.close()
                if index < len(batches) - 1 and self.inter_batch_pause > timedelta(0):
                    self._sleep(self.inter_batch_pause.total_seconds())
        finally:
            pool.shutdown()
        return GridRunResult(collected=collector.batches(), outcomes=outcomes, batch_sizes=batch_sizes)

    def _notify(self, hook: Callable[[TaskOutcome], None] | None, outcome: TaskOutcome) -> None:
        if hook is None:
            return
        try:
            hook(outcome)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning(
                "progress_hook_failed",
                batch=outcome.batch_index + 1,
                status=outcome.status,
                error=str(exc),
            )

    def _run_batch(
        self,
        pool: WorkerPool,
        batch_index: int,
        tasks: Sequence[SearchTask],
        collector: RecordCollector,
    ) -> Generator[TaskOutcome, None, None]:
        timeout = self.per_task_timeout.total_seconds()
        executor = pool.batch_executor(batch_index, len(tasks))
        futures: dict[Future[list[Record]], tuple[SearchTask, Event]] = {}
        finished_at: dict[Future[list[Record]], float] = {}

        def _stamp(future: Future[list[Record]]) -> None:
            finished_at[future] = time.monotonic()

        started = time.monotonic()
        # Every task in the batch is dispatched now, so this is each task's own deadline.
        deadline = started + timeout
        for task in tasks:
            cancel_event = Event()
            future = executor.submit(self.fetcher.fetch, task, cancel_event)
            future.add_done_callback(_stamp)
            futures[future] = (task, cancel_event)
        pool.release(executor)

        pending = set(futures)
        try:
            while pending and time.monotonic() < deadline:
                done, pending = wait(
                    pending, timeout=deadline - time.monotonic(), return_when=FIRST_COMPLETED
                )
                for future in done:
                    task, _ = futures[future]
                    yield self._resolve(future, task, batch_index, collector, time.monotonic() - started)

            # Tasks that finished before the deadline while outcomes were being handed out still count.
            on_time = [future for future in pending if finished_at.get(future, math.inf) <= deadline]
            for future in on_time:
                pending.discard(future)
                task, _ = futures[future]
                yield self._resolve(future, task, batch_index, collector, finished_at[future] - started)

            for future in list(pending):
                task, cancel_event = futures[future]
                cancel_event.set()
                future.cancel()
                self.logger.warning(
                    "task_timeout",
                    batch=batch_index + 1,
                    lat=task.center.lat,
                    lon=task.center.lon,
                    timeout=timeout,
                )
                yield TaskOutcome(
                    task=task,
                    status="timeout",
                    batch_index=batch_index,
                    error=TaskTimeout(task, timeout),
                    elapsed=time.monotonic() - started,
                )
        finally:
            # Abandoned work is always signalled, even when the consumer stops early.
            for future in pending:
                futures[future][1].set()

    def _resolve(
        self,
        future: Future[list[Record]],
        task: SearchTask,
        batch_index: int,
        collector: RecordCollector,
        elapsed: float,
    ) -> TaskOutcome:
        try:
            records = list(future.result())
        except Exception as exc:  # noqa: BLE001
            error = TaskError(task, exc)
            self.logger.warning(
                "task_failed",
                batch=batch_index + 1,
                lat=task.center.lat,
                lon=task.center.lon,
                error=str(exc),
            )
            return TaskOutcome(
                task=task, status="error", batch_index=batch_index, error=error, elapsed=elapsed
            )
        collector.append(records)
        self.logger.debug(
            "task_completed",
            batch=batch_index + 1,
            lat=task.center.lat,
            lon=task.center.lon,
            records=len(records),
        )
        return TaskOutcome(
            task=task,
            status="success",
            batch_index=batch_index,
            record_count=len(records),
            elapsed=elapsed,
        )


__all__ = ["BatchScheduler", "GridRunResult", "RecordCollector", "TaskOutcome", "partition"]
