"""Rich rendering of a single ResultsBundle."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from agent_bench.run.domain.bundle import ResultsBundle

STATUS_STYLES: dict[str, str] = {
    "passed": "bright_green",
    "success": "bright_green",
    "partial": "yellow",
    "skipped": "yellow",
    "failed": "red",
    "timeout": "red",
}


def styled(status: str) -> str:
    style = STATUS_STYLES.get(status, "default")
    return f"[{style}]{status}[/{style}]"


def format_duration(duration_ms: float) -> str:
    """Format milliseconds as '1m 23.4s' or '5.2s'."""
    minutes, seconds = divmod(duration_ms / 1000, 60)
    if minutes >= 1:
        return f"{int(minutes)}m {seconds:.1f}s"
    return f"{seconds:.1f}s"


def _metadata_table(bundle: ResultsBundle) -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    test_case = bundle.test_case
    rows: list[tuple[str, str]] = [
        ("Run ID", bundle.run_id),
        ("Test case", test_case.name),
        ("Repository", test_case.repo),
        ("Commit", test_case.commit or "-"),
        ("Config hash", test_case.config_hash),
        ("Agent", f"{bundle.agent.type} ({bundle.agent.model or 'default model'})"),
        (
            "Agent status",
            f"{styled(bundle.agent.status)}  exit {bundle.agent.exit_code}  "
            f"{format_duration(bundle.agent.duration_ms)}",
        ),
        ("Started", bundle.execution.started_at.isoformat()),
        ("Duration", format_duration(bundle.execution.duration_ms)),
        ("Harness", bundle.execution.harness_version),
    ]
    for label, value in rows:
        table.add_row(label, value)
    return table


def _evaluators_table(bundle: ResultsBundle) -> Table:
    table = Table(title="Evaluators", title_justify="left", expand=True)
    table.add_column("Evaluator", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Message", overflow="fold")
    for result in bundle.evaluators:
        table.add_row(
            result.evaluator,
            styled(result.status),
            format_duration(result.duration_ms),
            result.message,
        )
    return table


def render_report(bundle: ResultsBundle, console: Console) -> None:
    summary = bundle.summary
    console.print(
        Panel(
            _metadata_table(bundle),
            title=f"agent-bench  ·  {styled(summary.overall_status)}",
            title_align="left",
        )
    )
    console.print(_evaluators_table(bundle))
    console.print(
        f"[bold]{summary.passed}[/bold] passed, [bold]{summary.failed}[/bold] failed, "
        f"[bold]{summary.skipped}[/bold] skipped of {summary.total_evaluators} evaluator(s)"
    )
    if bundle.error is not None:
        console.print(
            f"[red]Run failed during {bundle.error.stage.value}:[/red] {bundle.error.message}"
        )
