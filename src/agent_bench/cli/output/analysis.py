"""Rich and JSON rendering of an AnalysisResult."""

from rich.console import Console
from rich.table import Table

from agent_bench.analysis.domain.models import AnalysisResult
from agent_bench.cli.output.report import format_duration, styled

_SEVERITY_STYLES: dict[str, str] = {
    "critical": "bold red",
    "warning": "yellow",
    "info": "cyan",
}


def render_analysis_json(result: AnalysisResult) -> str:
    return result.model_dump_json(indent=2)


def _percent(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def _summary_table(result: AnalysisResult) -> Table:
    summary = result.summary
    metadata = result.metadata
    table = Table.grid(padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    earliest = metadata.date_range.earliest
    latest = metadata.date_range.latest
    rows: list[tuple[str, str]] = [
        ("Source", metadata.source),
        ("Records", f"{metadata.total_records} ({metadata.skipped_records} skipped)"),
        (
            "Date range",
            f"{earliest.isoformat()} → {latest.isoformat()}" if earliest and latest else "-",
        ),
        (
            "Runs",
            f"{summary.passed_runs} passed, {summary.partial_runs} partial, "
            f"{summary.failed_runs} failed",
        ),
        ("Pass rate", _percent(summary.pass_rate)),
        ("Avg duration", format_duration(summary.avg_duration_ms)),
        ("Evaluator pass rate", _percent(summary.evaluator_stats.pass_rate)),
        ("Agent success rate", _percent(summary.agent_stats.success_rate)),
    ]
    for key, value in metadata.filters_applied.items():
        rows.append((f"Filter {key}", value))
    for label, value in rows:
        table.add_row(label, value)
    return table


def _test_case_table(result: AnalysisResult) -> Table:
    table = Table(title="Test cases", title_justify="left")
    table.add_column("Test case", style="cyan")
    table.add_column("Runs", justify="right")
    table.add_column("Pass rate", justify="right")
    table.add_column("Avg duration", justify="right")
    table.add_column("Trend")
    table.add_column("Last run")
    for tc in result.by_test_case:
        table.add_row(
            tc.name,
            str(tc.run_count),
            _percent(tc.overall_pass_rate),
            format_duration(tc.avg_duration_ms),
            tc.recent_trend,
            styled(tc.last_run.status),
        )
    return table


def _agent_table(result: AnalysisResult) -> Table:
    table = Table(title="Agents", title_justify="left")
    table.add_column("Agent", style="cyan")
    table.add_column("Runs", justify="right")
    table.add_column("Success rate", justify="right")
    table.add_column("Timeouts", justify="right")
    table.add_column("Avg duration", justify="right")
    for agent in result.by_agent:
        table.add_row(
            agent.type,
            str(agent.run_count),
            _percent(agent.success_rate),
            str(agent.timeout_count),
            format_duration(agent.avg_duration_ms),
        )
    return table


def _evaluator_table(result: AnalysisResult) -> Table:
    table = Table(title="Evaluators", title_justify="left")
    table.add_column("Evaluator", style="cyan")
    table.add_column("Runs", justify="right")
    table.add_column("Pass rate", justify="right")
    table.add_column("Skip rate", justify="right")
    table.add_column("Top failure", overflow="fold")
    for ev in result.by_evaluator:
        top = ev.failure_patterns[0] if ev.failure_patterns else None
        table.add_row(
            ev.name,
            str(ev.run_count),
            _percent(ev.pass_rate),
            _percent(ev.skip_rate),
            f"{top.pattern} (×{top.count})" if top is not None else "-",
        )
    return table


def render_analysis(result: AnalysisResult, console: Console) -> None:
    console.print(_summary_table(result))
    if result.metadata.total_records == 0:
        console.print("[dim]No matching records.[/dim]")
        return
    console.print(_test_case_table(result))
    console.print(_agent_table(result))
    console.print(_evaluator_table(result))
    if result.insights:
        console.print("[bold]Insights[/bold]")
        for insight in result.insights:
            style = _SEVERITY_STYLES[insight.severity]
            console.print(
                f"  [{style}]{insight.severity:<8}[/{style}] {insight.title}  "
                f"[dim]{insight.description}[/dim]"
            )
