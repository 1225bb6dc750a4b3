"""Advisory run-duration estimate."""

from __future__ import annotations

import math
from datetime import timedelta


def batch_count(task_count: int, max_workers: int) -> int:
    if task_count <= 0:
        return 0
    return math.ceil(task_count / max_workers)


def estimate_duration(task_count: int, max_workers: int, per_task_duration: timedelta) -> timedelta:
    """Pessimistic estimate: every batch is assumed to take a full task duration.

    Only used for display; it never enforces a deadline.
    """

    if task_count <= 0:
        return timedelta(0)
    if task_count <= max_workers:
        return per_task_duration
    return batch_count(task_count, max_workers) * per_task_duration


__all__ = ["batch_count", "estimate_duration"]
