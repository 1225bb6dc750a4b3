"""Typer CLI entrypoint for grid-crawler."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, RunPlan
from .errors import ConfigurationError, ExportError
from .logging_conf import available_run_logs, configure_logging, log_path_for, tail_log
from .orchestrator import Orchestrator, PlanPreview, RunSummary

app = typer.Typer(
    help="grid-crawler: collect places around a point by tiling it into a search grid.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(name="config", help="Inspect configuration.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Browse log files.", no_args_is_help=True)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator: Orchestrator


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    orchestrator = Orchestrator(config_repository=repository)
    return AppState(repository=repository, orchestrator=orchestrator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _format_duration(value: timedelta) -> str:
    seconds = int(value.total_seconds())
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{seconds:02d}s"
    if minutes:
        return f"{minutes}m{seconds:02d}s"
    return f"{seconds}s"


def _build_plan_or_exit(
    state: AppState, lat: float, lon: float, query: str, radius: Optional[float]
) -> RunPlan:
    try:
        return state.orchestrator.build_plan(lat=lat, lon=lon, query=query, radius_km=radius)
    except ConfigurationError as exc:
        console.print(f"Configuration error: {exc}", style="red")
        raise typer.Exit(code=2) from exc


def _render_preview(preview: PlanPreview) -> Table:
    plan = preview.plan
    table = Table(title=f"Search plan · {plan.query}", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Center", str(plan.center))
    table.add_row("Radius", f"{plan.radius_km:.1f} km")
    table.add_row("Grid step", f"{plan.grid_step_km:.1f} km")
    table.add_row("Grid points", str(len(preview.points)))
    table.add_row("Workers", str(plan.max_workers))
    table.add_row("Batches", str(preview.batches))
    table.add_row("Estimated time", _format_duration(preview.estimate))
    return table


def _render_summary(summary: RunSummary) -> Table:
    table = Table(title=f"{summary.query} · run result", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Grid points", str(summary.grid_points))
    table.add_row("Batches", str(summary.batches))
    table.add_row("Succeeded", str(summary.succeeded))
    table.add_row("Failed", str(summary.failed))
    table.add_row("Timed out", str(summary.timed_out))
    table.add_row("Collected", str(summary.collected))
    table.add_row("Unique places", str(summary.unique))
    return table


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Search every grid point around the center and export unique places.")
def run(
    ctx: typer.Context,
    lat: float = typer.Option(..., "--lat", "-a", help="Latitude of search center."),
    lon: float = typer.Option(..., "--lon", "-o", help="Longitude of search center."),
    query: str = typer.Option(..., "--query", "-q", help="Search query."),
    radius: Optional[float] = typer.Option(
        None, "--radius", "-r", help="Search radius in kilometers (default from config)."
    ),
    output_format: Optional[str] = typer.Option(
        None, "--format", "-f", help="Output format: csv, json or sqlite."
    ),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Directory for exported files."),
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line result only."),
) -> None:
    state = _get_state(ctx)
    if output_format is not None and output_format not in ("csv", "json", "sqlite"):
        console.print(f"Unsupported output format: {output_format}", style="red")
        raise typer.Exit(code=2)
    plan = _build_plan_or_exit(state, lat, lon, query, radius)
    if not quiet:
        preview = state.orchestrator.preview(plan)
        console.print(
            f"Searching {len(preview.points)} locations in a radius of {plan.radius_km:.1f} km "
            f"around {plan.center} for query '{plan.query}'. "
            f"Estimated time: {_format_duration(preview.estimate)}",
            style="dim",
        )

    progress_flag = (
        _progress_default_enabled()
        and not quiet
        and state.repository.load_global_config().enable_progress_bar
    )
    try:
        summary = state.orchestrator.run(
            plan,
            output_format=output_format,
            output_dir=output_dir,
            progress_enabled=progress_flag,
        )
    except ExportError as exc:
        console.print(f"Export failed: {exc}", style="red")
        raise typer.Exit(code=1) from exc

    if summary.status == "empty":
        console.print("0 results: no places found for the given search parameters.", style="yellow")
        return
    if quiet:
        console.print(f"{summary.unique} places saved to {summary.output_path}")
        return
    console.print(_render_summary(summary))
    console.print(f"{summary.unique} places saved to {summary.output_path}", style="green")


@app.command("plan", help="Show the grid and time estimate without fetching anything.")
def plan(
    ctx: typer.Context,
    lat: float = typer.Option(..., "--lat", "-a", help="Latitude of search center."),
    lon: float = typer.Option(..., "--lon", "-o", help="Longitude of search center."),
    query: str = typer.Option(..., "--query", "-q", help="Search query."),
    radius: Optional[float] = typer.Option(None, "--radius", "-r", help="Search radius in kilometers."),
) -> None:
    state = _get_state(ctx)
    run_plan = _build_plan_or_exit(state, lat, lon, query, radius)
    console.print(_render_preview(state.orchestrator.preview(run_plan)))


@config_app.command("show", help="Print the effective global configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    payload = state.repository.load_global_config().model_dump(mode="json")
    console.print(yaml.safe_dump(payload, allow_unicode=True, sort_keys=False))


@log_app.command("list", help="List per-query log files.")
def log_list() -> None:
    logs = list(available_run_logs())
    if not logs:
        console.print("No run logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    query: Optional[str] = typer.Option(None, "--run", help="Query whose log to show (global log if omitted)."),
    tail: int = typer.Option(100, "--tail", help="Number of trailing lines."),
) -> None:
    lines = tail_log(log_path_for(query), tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    header = f"{'Run log' if query else 'Global log'} · last {len(lines)} lines"
    console.print(header, style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
