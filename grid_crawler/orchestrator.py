"""Run orchestrator wiring grid generation, dispatch, dedup, export and progress."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable

import structlog

from .config import ConfigRepository, GlobalConfig, RunPlan
from .engine import (
    BaseFetcher,
    BatchScheduler,
    DedupMerger,
    MapsFetcher,
    batch_count,
    estimate_duration,
    generate_grid,
)
from .engine.exporter import BaseExporter, FileExporter, SQLiteExporter
from .engine.exporter.file_exporter import RUN_TAG_FORMAT
from .errors import ConfigurationError, ExportError
from .logging_conf import configure_logging, run_logger
from .models import GeoPoint
from .ui import ProgressReporter

FetcherFactory = Callable[[GlobalConfig, structlog.BoundLogger], BaseFetcher]


def _default_fetcher_factory(global_config: GlobalConfig, logger: structlog.BoundLogger) -> BaseFetcher:
    return MapsFetcher(global_config, logger=logger)


@dataclass(slots=True)
class PlanPreview:
    """What a run would dispatch, computed without fetching anything."""

    plan: RunPlan
    points: list[GeoPoint]
    batches: int
    estimate: timedelta


@dataclass(slots=True)
class RunSummary:
    query: str
    status: str  # "exported" | "empty"
    grid_points: int
    batches: int
    succeeded: int
    failed: int
    timed_out: int
    collected: int
    unique: int
    duplicates: int
    output_path: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["output_path"] = str(self.output_path) if self.output_path else None
        return data


class Orchestrator:
    """Central coordinator for one grid run: validate → grid → dispatch → merge → export."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        fetcher_factory: FetcherFactory | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.fetcher_factory = fetcher_factory or _default_fetcher_factory
        self._sleep = sleep
        self.merger = DedupMerger()
        self.logger = configure_logging().bind(component="orchestrator")

    # ------------------------------------------------------------------
    def build_plan(
        self,
        *,
        lat: float,
        lon: float,
        query: str,
        radius_km: float | None = None,
        **overrides: Any,
    ) -> RunPlan:
        try:
            return RunPlan.build(
                self.global_config, lat=lat, lon=lon, query=query, radius_km=radius_km, **overrides
            )
        except ConfigurationError as exc:
            self.logger.error("plan_rejected", query=query, radius_km=radius_km, error=str(exc))
            raise

    def preview(self, plan: RunPlan) -> PlanPreview:
        points = generate_grid(plan.center, plan.radius_km, plan.grid_step_km)
        estimate = estimate_duration(
            len(points),
            plan.max_workers,
            timedelta(seconds=self.global_config.task_duration_estimate_s),
        )
        return PlanPreview(
            plan=plan,
            points=points,
            batches=batch_count(len(points), plan.max_workers),
            estimate=estimate,
        )

    def run(
        self,
        plan: RunPlan,
        *,
        output_format: str | None = None,
        output_dir: Path | None = None,
        progress_enabled: bool | None = None,
        progress: ProgressReporter | None = None,
        exporter: BaseExporter | None = None,
    ) -> RunSummary:
        """Execute the plan end to end.

        Per-task failures are absorbed into the summary counts. A run that
        collects nothing returns ``status == "empty"`` and exports nothing.

        Raises:
            ExportError: when the final write fails, after all fetching is done.
        """
        log = run_logger(plan.query)
        preview = self.preview(plan)
        log.info(
            "run_started",
            lat=plan.center.lat,
            lon=plan.center.lon,
            radius_km=plan.radius_km,
            grid_points=len(preview.points),
            batches=preview.batches,
            max_workers=plan.max_workers,
            estimate_s=preview.estimate.total_seconds(),
        )

        progress_flag = self.global_config.enable_progress_bar if progress_enabled is None else progress_enabled
        reporter = progress or ProgressReporter(enabled=progress_flag)
        reporter.set_label(plan.query)
        reporter.start(len(preview.points))
        fetcher = self.fetcher_factory(self.global_config, log)
        scheduler = BatchScheduler.from_plan(
            fetcher, plan, sleep=self._sleep, logger=log.bind(component="scheduler")
        )
        try:
            result = scheduler.run_grid(
                preview.points,
                plan.query,
                radius_km=plan.sub_search_radius_km,
                on_task_done=reporter.advance,
            )
        finally:
            reporter.close()
            fetcher.close()

        result_set = self.merger.merge(result.collected)
        summary = RunSummary(
            query=plan.query,
            status="empty",
            grid_points=len(preview.points),
            batches=len(result.batch_sizes),
            succeeded=result.succeeded,
            failed=result.failed,
            timed_out=result.timed_out,
            collected=result.record_count,
            unique=len(result_set),
            duplicates=result_set.duplicates,
        )
        if not result_set:
            log.warning("run_empty", **summary.as_dict())
            return summary

        target = exporter or self._create_exporter(output_format, output_dir)
        try:
            summary.output_path = target.export(result_set)
        except ExportError as exc:
            log.error("run_export_failed", error=str(exc), unique=len(result_set))
            raise
        finally:
            target.close()
        summary.status = "exported"
        log.info("run_exported", **summary.as_dict())
        return summary

    def _create_exporter(self, output_format: str | None, output_dir: Path | None) -> BaseExporter:
        fmt = output_format or self.global_config.output_format
        base_dir = output_dir or self.config_repository.outputs_dir()
        run_tag = datetime.now().strftime(RUN_TAG_FORMAT)
        slug = self.global_config.output_slug
        if fmt in {"csv", "json"}:
            return FileExporter(base_dir, slug, fmt, run_tag=run_tag)
        if fmt == "sqlite":
            return SQLiteExporter(base_dir / f"{slug}.db")
        raise ValueError(f"Unsupported output format: {fmt}")


__all__ = ["Orchestrator", "PlanPreview", "RunSummary"]
