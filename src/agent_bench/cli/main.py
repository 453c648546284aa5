"""CLI entrypoint for agent-bench — typer app with `run`, `report` and `analyze`."""

import asyncio
import sys
from datetime import datetime
from pathlib import Path

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console

from agent_bench.agent.application.executor import AgentExecutor
from agent_bench.agent.infrastructure.errors import AgentTypeNotSupportedError
from agent_bench.agent.infrastructure.observer import StructlogAgentObserver
from agent_bench.agent.infrastructure.registry import create_default_agent_registry
from agent_bench.analysis.application.aggregator import analyze as analyze_history
from agent_bench.analysis.domain.filter import AnalysisFilter
from agent_bench.analysis.infrastructure.jsonl_reader import JsonlHistoryReader
from agent_bench.analysis.infrastructure.observer import StructlogAnalysisObserver
from agent_bench.cli.output.analysis import render_analysis, render_analysis_json
from agent_bench.cli.output.report import render_report
from agent_bench.config.domain.config import RunConfig
from agent_bench.config.infrastructure.observer import StructlogConfigObserver
from agent_bench.config.infrastructure.yaml_loader import YamlConfigLoader
from agent_bench.core.errors import BenchError
from agent_bench.evaluation.domain.observer import EvaluationObserver
from agent_bench.evaluation.infrastructure.composite_observer import (
    CompositeEvaluationObserver,
)
from agent_bench.evaluation.infrastructure.observer import StructlogEvaluationObserver
from agent_bench.evaluation.infrastructure.progress_observer import (
    ProgressEvaluationObserver,
)
from agent_bench.evaluation.infrastructure.registry import create_default_evaluator_registry
from agent_bench.run.application.orchestrator import Orchestrator
from agent_bench.run.domain.bundle import ResultsBundle
from agent_bench.run.infrastructure.history import HistoryWriter
from agent_bench.run.infrastructure.observer import StructlogRunObserver
from agent_bench.run.infrastructure.store import ResultsStore, load_bundle
from agent_bench.workspace.application.manager import WorkspaceManager
from agent_bench.workspace.infrastructure.git_cloner import GitCloner
from agent_bench.workspace.infrastructure.lock import FileRootLocker
from agent_bench.workspace.infrastructure.observer import StructlogWorkspaceObserver

app = typer.Typer(add_completion=False)

_OUTPUT_FORMATS = ("table", "json")


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format. Logs go to stderr."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _build_orchestrator(
    config: RunConfig, output_dir: Path, log_format: str
) -> Orchestrator:
    agent_registry = create_default_agent_registry()
    if config.agent.type not in agent_registry.types():
        raise AgentTypeNotSupportedError(
            agent_type=config.agent.type, known_types=agent_registry.types()
        )

    observers: list[EvaluationObserver] = [StructlogEvaluationObserver()]
    if log_format != "json":
        observers.append(ProgressEvaluationObserver())

    return Orchestrator(
        workspace_manager=WorkspaceManager(
            base_dir=config.execution.workspace_dir,
            cloner=GitCloner(),
            locker=FileRootLocker(),
            observer=StructlogWorkspaceObserver(),
        ),
        agent_provider=agent_registry,
        agent_executor=AgentExecutor(observer=StructlogAgentObserver()),
        evaluator_provider=create_default_evaluator_registry(),
        evaluation_observer=CompositeEvaluationObserver(observers=observers),
        observer=StructlogRunObserver(),
        store=ResultsStore(output_dir=output_dir),
    )


async def _run_and_record(
    orchestrator: Orchestrator,
    config: RunConfig,
    config_path: Path,
    keep_workspace: bool | None,
    history: Path | None,
) -> ResultsBundle:
    bundle = await orchestrator.run(
        config=config, config_file=config_path, keep_workspace=keep_workspace
    )
    if history is not None:
        await HistoryWriter(path=history).append(bundle)
        StructlogRunObserver().history_appended(run_id=bundle.run_id, path=str(history))
    return bundle


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to the run config YAML"),
    output_dir: Path = typer.Option(
        Path("./results"),
        "--output-dir",
        "-o",
        help="Directory that receives a durable copy of each run's results",
    ),
    history: Path | None = typer.Option(
        None,
        "--history",
        help="JSONL history file to append this run to",
    ),
    keep_workspace: bool | None = typer.Option(
        None,
        "--keep-workspace/--no-keep-workspace",
        help="Keep the workspace after the run (overrides the config)",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Run one evaluation from a YAML config file."""
    _configure_structlog(log_format=log_format)
    try:
        config = YamlConfigLoader(observer=StructlogConfigObserver()).load(path=config_path)
        orchestrator = _build_orchestrator(
            config=config, output_dir=output_dir, log_format=log_format
        )
        bundle = asyncio.run(
            _run_and_record(
                orchestrator=orchestrator,
                config=config,
                config_path=config_path,
                keep_workspace=keep_workspace,
                history=history,
            )
        )
    except KeyboardInterrupt:
        typer.echo("Run interrupted.")
        raise typer.Exit(code=1)
    except BenchError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    render_report(bundle=bundle, console=Console())
    if bundle.summary.overall_status == "failed":
        raise typer.Exit(code=1)


@app.command()
def report(
    results_path: Path = typer.Argument(..., help="Path to a results.json file"),
) -> None:
    """Render a results bundle as human-readable tables."""
    try:
        bundle = load_bundle(path=results_path)
    except BenchError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc
    render_report(bundle=bundle, console=Console())


@app.command()
def analyze(
    history_path: Path = typer.Argument(..., help="Path to a JSONL history file"),
    test_case: str | None = typer.Option(
        None, "--test-case", help="Test case name glob (case-insensitive, '*' wildcard)"
    ),
    agent: str | None = typer.Option(None, "--agent", help="Only runs of this agent type"),
    evaluator: str | None = typer.Option(
        None, "--evaluator", help="Only runs that include this evaluator"
    ),
    since: datetime | None = typer.Option(None, "--since", help="Earliest export time"),
    until: datetime | None = typer.Option(None, "--until", help="Latest export time"),
    status: list[str] | None = typer.Option(
        None, "--status", help="Overall status to keep (repeatable)"
    ),
    limit: int | None = typer.Option(None, "--limit", help="Keep only the last N runs"),
    output_format: str = typer.Option(
        "table", "--format", help="Output format: 'table' or 'json'"
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Analyse run history: breakdowns, trends and insights."""
    _configure_structlog(log_format=log_format)
    if output_format not in _OUTPUT_FORMATS:
        typer.echo(f"Invalid format: {output_format!r}. Must be 'table' or 'json'.")
        raise typer.Exit(code=1)

    try:
        history_filter = AnalysisFilter(
            test_case=test_case,
            agent=agent,
            evaluator=evaluator,
            since=since,
            until=until,
            status=status or [],
            limit=limit,
        )
    except ValidationError as exc:
        typer.echo(f"Invalid filter: {exc}")
        raise typer.Exit(code=1) from exc

    observer = StructlogAnalysisObserver()
    try:
        records, skipped = JsonlHistoryReader(observer=observer).read(
            path=history_path, history_filter=history_filter
        )
    except BenchError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    result = analyze_history(
        records=records,
        skipped_records=skipped,
        source=str(history_path),
        filters_applied=history_filter.describe(),
    )
    observer.analysis_completed(
        total_records=result.metadata.total_records, insights=len(result.insights)
    )

    if output_format == "json":
        typer.echo(render_analysis_json(result))
    else:
        render_analysis(result=result, console=Console())


if __name__ == "__main__":
    app()
