"""ProgressEvaluationObserver — renders evaluator progress with Rich on stderr."""

from __future__ import annotations

import sys

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

_STATUS_STYLES: dict[str, str] = {
    "pending": "dim white",
    "running": "grey50",
    "passed": "bright_green",
    "failed": "red",
    "skipped": "yellow",
}


class _StatusColumn(ProgressColumn):
    """Renders the evaluator's current status word in its colour."""

    def render(self, task: Task) -> Text:
        status = str(task.fields.get("status", ""))
        return Text(status, style=_STATUS_STYLES.get(status, "default"))


def _make_progress(console: Console) -> Progress:
    return Progress(
        TextColumn("{task.description}"),
        BarColumn(bar_width=30, complete_style="bright_green"),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        _StatusColumn(),
        console=console,
        refresh_per_second=10,
        transient=False,
    )


class ProgressEvaluationObserver:
    """One row per evaluator plus an Overall row, drawn on stderr.

    Only the lifecycle events change the display; skipped/failed reasons are
    left to the structlog observer. Pass ``disabled=True`` to track state
    without drawing (useful in tests).

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._status: dict[str, str] = {}
        self._done = 0
        self._task_ids: dict[str, TaskID] = {}
        self._overall_task: TaskID | None = None
        self._progress: Progress | None = None
        self._live: Live | None = None

    @property
    def statuses(self) -> dict[str, str]:
        return dict(self._status)

    @property
    def done(self) -> int:
        return self._done

    def evaluation_started(
        self, run_key: str, evaluator_names: list[str], max_concurrent: int
    ) -> None:
        self._status = {name: "pending" for name in evaluator_names}
        self._done = 0
        self._task_ids = {}
        self._overall_task = None
        self._progress = None
        self._live = None

        if self._disabled:
            return

        console = Console(stderr=True)
        pad_width = max((len(n) for n in [*evaluator_names, "Overall"]), default=7)
        progress = _make_progress(console=console)
        self._overall_task = progress.add_task(
            description=f"[bold]{'Overall':<{pad_width}}[/bold]",
            total=float(len(evaluator_names)),
            status="",
        )
        use_color = sys.stderr.isatty()
        for name in evaluator_names:
            label = f"{name:<{pad_width}}"
            self._task_ids[name] = progress.add_task(
                description=f"[cyan]{label}[/cyan]" if use_color else label,
                total=1.0,
                status="pending",
            )
        self._progress = progress
        self._live = Live(Group(progress, Text("")), console=console, refresh_per_second=10)
        self._live.start()

    def evaluation_completed(
        self,
        run_key: str,
        passed: int,
        failed: int,
        skipped: int,
        elapsed_seconds: float,
    ) -> None:
        if self._live is not None:
            self._live.stop()
        self._live = None
        self._progress = None

    def evaluator_started(self, run_key: str, evaluator: str) -> None:
        self._status[evaluator] = "running"
        self._refresh(evaluator=evaluator)

    def evaluator_completed(
        self, run_key: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        self._status[evaluator] = status
        self._done += 1
        self._refresh(evaluator=evaluator, completed=True)

    def evaluator_skipped(self, run_key: str, evaluator: str, reason: str) -> None:
        pass

    def evaluator_failed(self, run_key: str, evaluator: str, reason: str) -> None:
        pass

    def _refresh(self, evaluator: str, completed: bool = False) -> None:
        if self._progress is None or evaluator not in self._task_ids:
            return
        self._progress.update(
            self._task_ids[evaluator],
            completed=1.0 if completed else 0.0,
            status=self._status[evaluator],
        )
        if self._overall_task is not None:
            self._progress.update(self._overall_task, completed=float(self._done))
