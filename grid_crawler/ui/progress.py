"""Rich progress bar fed by the scheduler's per-task hook."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from ..engine.scheduler import TaskOutcome


@dataclass
class ProgressState:
    total: int
    success: int = 0
    failed: int = 0
    timed_out: int = 0
    records: int = 0
    current_point: str | None = None

    @property
    def completed(self) -> int:
        return self.success + self.failed + self.timed_out

    def record(self, outcome: TaskOutcome) -> None:
        self.current_point = str(outcome.task.center)
        if outcome.status == "success":
            self.success += 1
            self.records += outcome.record_count
        elif outcome.status == "timeout":
            self.timed_out += 1
        else:
            self.failed += 1


class RateColumn(ProgressColumn):
    """Grid points finished per second."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        text = "" if speed is None else f"{speed:.2f} pt/s"
        return Text(text, style="progress.percentage")


def _build_progress(console: Console) -> Progress:
    return Progress(
        SpinnerColumn(style="cyan"),
        TextColumn("[bold blue]{task.fields[label]:<18}"),
        BarColumn(bar_width=None, complete_style="green", finished_style="green"),
        TaskProgressColumn(show_speed=False),
        TimeElapsedColumn(),
        RateColumn(),
        TextColumn("[green]✓{task.fields[success]:>3}", justify="right"),
        TextColumn("[red]✗{task.fields[failed]:>3}", justify="right"),
        TextColumn("[yellow]⧗{task.fields[timed_out]:>3}", justify="right"),
        TextColumn("[dim]{task.fields[current_point]}"),
        console=console,
        expand=True,
        transient=True,
        refresh_per_second=8,
    )


class ProgressReporter:
    """Count task outcomes and, on a terminal, draw them as a progress bar.

    ``advance`` has the signature of ``BatchScheduler.run_grid``'s
    ``on_task_done`` hook. Counting works with rendering disabled.
    """

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self.state: ProgressState | None = None
        self._console = console
        self._label = "grid search"
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._lock = Lock()

    @property
    def rendering(self) -> bool:
        return self._progress is not None and self._task_id is not None

    def set_label(self, label: str) -> None:
        self._label = label
        if self.rendering:
            self._progress.update(self._task_id, label=label)

    def start(self, total: int, description: str | None = None) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        console = self._console = self._console or Console()
        if not console.is_terminal:
            self.enabled = False
            return
        if description:
            console.print(description, style="dim")
        progress = _build_progress(console)
        try:
            progress.start()
        except LiveError:
            # Another live display already owns the console.
            self.enabled = False
            return
        self._progress = progress
        self._task_id = progress.add_task(
            "grid",
            total=total,
            label=self._label,
            success=0,
            failed=0,
            timed_out=0,
            current_point="waiting…",
        )

    def advance(self, outcome: TaskOutcome) -> None:
        if self.state is None:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        with self._lock:
            self.state.record(outcome)
            if self.rendering:
                self._progress.update(
                    self._task_id,
                    advance=1,
                    success=self.state.success,
                    failed=self.state.failed,
                    timed_out=self.state.timed_out,
                    current_point=self.state.current_point,
                )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        state = self.state or ProgressState(total=0)
        return {
            "success": state.success,
            "failed": state.failed,
            "timed_out": state.timed_out,
            "records": state.records,
        }


__all__ = ["ProgressReporter", "ProgressState", "RateColumn"]
