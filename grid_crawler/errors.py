"""Error taxonomy for grid runs."""

from __future__ import annotations

from .models import SearchTask


class GridCrawlerError(Exception):
    """Base class for every error raised by grid-crawler."""


class ConfigurationError(GridCrawlerError, ValueError):
    """Run plan or grid arguments are invalid; raised before any dispatch."""


class TaskTimeout(GridCrawlerError, TimeoutError):
    """A single sub-search did not finish before its deadline."""

    def __init__(self, task: SearchTask, timeout: float) -> None:
        super().__init__(f"Search timed out after {timeout:.1f}s at {task.center}")
        self.task = task
        self.timeout = timeout


class TaskError(GridCrawlerError, RuntimeError):
    """The fetcher reported a failure for one sub-search."""

    def __init__(self, task: SearchTask, cause: BaseException) -> None:
        super().__init__(f"Search failed at {task.center}: {cause}")
        self.task = task
        self.cause = cause


class ExportError(GridCrawlerError, RuntimeError):
    """Persisting the final result set failed."""


__all__ = [
    "ConfigurationError",
    "ExportError",
    "GridCrawlerError",
    "TaskError",
    "TaskTimeout",
]
