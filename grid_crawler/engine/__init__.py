"""Engine components orchestrating grid → dispatch → dedup → export."""

from .dedup import DedupMerger, ResultSet
from .estimator import batch_count, estimate_duration
from .fetcher import BaseFetcher, FetchCancelled, MapsFetcher
from .grid import KM_PER_DEGREE, generate_grid
from .parser import ListingParser
from .scheduler import BatchScheduler, GridRunResult, RecordCollector, TaskOutcome
from .thread_pool import WorkerPool

__all__ = [
    "BaseFetcher",
    "BatchScheduler",
    "DedupMerger",
    "FetchCancelled",
    "GridRunResult",
    "KM_PER_DEGREE",
    "ListingParser",
    "MapsFetcher",
    "RecordCollector",
    "ResultSet",
    "TaskOutcome",
    "WorkerPool",
    "batch_count",
    "estimate_duration",
    "generate_grid",
]
