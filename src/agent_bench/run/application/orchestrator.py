"""Orchestrator — sequences workspace, agent, and evaluators into one ResultsBundle."""

import platform
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from agent_bench.agent.application.executor import (
    LOG_FILE,
    STDERR_FILE,
    STDOUT_FILE,
    AgentExecutor,
)
from agent_bench.agent.domain.adapter import AgentAdapterProvider, AgentContext
from agent_bench.agent.domain.result import AgentExecutionResult
from agent_bench.config.domain.config import RunConfig
from agent_bench.core.clock import elapsed_ms, utc_now
from agent_bench.core.version import harness_version
from agent_bench.evaluation.application.runner import EvaluatorRunner, not_run_results
from agent_bench.evaluation.domain.evaluator import EvaluatorProvider
from agent_bench.evaluation.domain.observer import EvaluationObserver
from agent_bench.evaluation.domain.result import EvaluationResult
from agent_bench.evaluation.domain.summary import summarize
from agent_bench.run.domain.bundle import (
    AgentRecord,
    ArtifactsManifest,
    EnvironmentRecord,
    ExecutionRecord,
    ResultsBundle,
    RunFailure,
    TestCaseRecord,
)
from agent_bench.run.domain.observer import RunObserver
from agent_bench.run.domain.state import RunState, can_transition
from agent_bench.run.domain.store import BundleStore
from agent_bench.workspace.application.manager import WorkspaceManager, make_run_key
from agent_bench.workspace.domain.handle import WorkspaceHandle


@dataclass
class _RunProgress:
    """Mutable per-run bookkeeping; lives only for one ``run`` call."""

    run_id: str
    observer: RunObserver
    state: RunState = RunState.IDLE
    handle: WorkspaceHandle | None = None
    agent: AgentExecutionResult | None = None
    evaluations: list[EvaluationResult] | None = None
    failure: RunFailure | None = None

    def advance(self, target: RunState) -> None:
        if not can_transition(self.state, target):
            raise RuntimeError(f"illegal run transition {self.state} -> {target}")
        self.observer.run_state_changed(
            run_id=self.run_id, from_state=self.state.value, to_state=target.value
        )
        self.state = target

    def fail(self, exc: Exception) -> None:
        if self.failure is None:
            self.failure = RunFailure(stage=self.state, message=str(exc))
        self.observer.run_failed(run_id=self.run_id, stage=self.state.value, reason=str(exc))
        if not self.state.is_terminal:
            self.advance(RunState.FAILED)


class Orchestrator:
    """Runs one evaluation end to end.

    ``run`` always returns exactly one ResultsBundle for any ``Exception``
    raised along the way; the workspace is cleaned up (or retained on request)
    and its lock released on every exit path, including cancellation.
    """

    def __init__(
        self,
        workspace_manager: WorkspaceManager,
        agent_provider: AgentAdapterProvider,
        agent_executor: AgentExecutor,
        evaluator_provider: EvaluatorProvider,
        evaluation_observer: EvaluationObserver,
        observer: RunObserver,
        store: BundleStore | None = None,
    ) -> None:
        self._workspace_manager = workspace_manager
        self._agent_provider = agent_provider
        self._agent_executor = agent_executor
        self._evaluator_provider = evaluator_provider
        self._evaluation_observer = evaluation_observer
        self._observer = observer
        self._store = store

    async def run(
        self,
        config: RunConfig,
        config_file: Path | None = None,
        run_key: str | None = None,
        keep_workspace: bool | None = None,
    ) -> ResultsBundle:
        run_key = run_key or make_run_key(config=config)
        keep = config.execution.keep_workspace if keep_workspace is None else keep_workspace
        progress = _RunProgress(run_id=str(uuid.uuid4()), observer=self._observer)
        started_at = utc_now()
        started_mono = time.monotonic()
        self._observer.run_started(run_id=progress.run_id, name=config.name)

        try:
            try:
                await self._execute_pipeline(config=config, run_key=run_key, progress=progress)
            except Exception as exc:
                progress.fail(exc)

            bundle = self._assemble(
                config=config,
                config_file=config_file,
                progress=progress,
                started_at=started_at,
                duration_ms=elapsed_ms(started_mono),
            )
            bundle = await self._persist(bundle=bundle, run_key=run_key, progress=progress)
            if not progress.state.is_terminal:
                progress.advance(RunState.DONE)
        finally:
            if progress.handle is not None:
                if keep:
                    self._workspace_manager.retain(progress.handle)
                else:
                    await self._workspace_manager.cleanup(progress.handle)

        self._observer.run_completed(
            run_id=progress.run_id,
            overall_status=bundle.summary.overall_status,
            duration_ms=bundle.execution.duration_ms,
        )
        return bundle

    async def _execute_pipeline(
        self, config: RunConfig, run_key: str, progress: _RunProgress
    ) -> None:
        progress.advance(RunState.PREPARING)
        progress.handle = await self._workspace_manager.create_workspace(
            config=config, run_key=run_key
        )
        handle = progress.handle

        progress.advance(RunState.EXECUTING_AGENT)
        adapter = self._agent_provider.create(config.agent)
        progress.agent = await self._agent_executor.run(
            adapter=adapter,
            context=AgentContext(
                workspace_dir=handle.modified_dir,
                artifacts_dir=handle.artifacts_dir,
                config=config.agent,
                timeout_seconds=config.execution.timeout_seconds,
            ),
        )

        progress.advance(RunState.EVALUATING)
        runner = EvaluatorRunner(
            provider=self._evaluator_provider,
            observer=self._evaluation_observer,
            max_concurrent=config.execution.max_concurrent_evaluators,
            timeout_seconds=config.execution.evaluator_timeout_seconds,
        )
        progress.evaluations = await runner.run(
            run_key=run_key,
            configs=config.evaluators,
            workspace=handle.snapshot(),
            agent=progress.agent,
        )
        progress.advance(RunState.AGGREGATING)

    def _assemble(
        self,
        config: RunConfig,
        config_file: Path | None,
        progress: _RunProgress,
        started_at: datetime,
        duration_ms: int,
    ) -> ResultsBundle:
        failure = progress.failure
        evaluations = progress.evaluations
        if evaluations is None:
            reason = failure.message if failure is not None else "run did not reach evaluation"
            evaluations = not_run_results(configs=config.evaluators, reason=reason)

        summary = summarize(evaluations)
        if failure is not None:
            summary = summary.model_copy(update={"overall_status": "failed"})

        handle = progress.handle
        return ResultsBundle(
            run_id=progress.run_id,
            test_case=TestCaseRecord(
                name=config.name,
                description=config.description,
                config_file=str(config_file) if config_file is not None else None,
                config_hash=config.content_hash(),
                repo=config.repo,
                branch=config.branch,
                commit=handle.source_commit if handle is not None else config.commit,
                expected=config.expected,
            ),
            execution=ExecutionRecord(
                started_at=started_at,
                completed_at=utc_now(),
                duration_ms=duration_ms,
                harness_version=harness_version(),
                environment=EnvironmentRecord(
                    os=platform.system(),
                    python_version=platform.python_version(),
                    workspace_dir=str(
                        handle.root if handle is not None else config.execution.workspace_dir
                    ),
                ),
            ),
            agent=_agent_record(config=config, agent=progress.agent, handle=handle),
            evaluators=evaluations,
            summary=summary,
            artifacts=_artifacts_manifest(handle=handle),
            error=failure,
        )

    async def _persist(
        self, bundle: ResultsBundle, run_key: str, progress: _RunProgress
    ) -> ResultsBundle:
        if self._store is None:
            return bundle
        try:
            if progress.handle is not None:
                path = await self._store.save(
                    bundle=bundle,
                    artifacts_dir=progress.handle.artifacts_dir,
                    run_key=run_key,
                )
            else:
                path = await self._store.save_detached(bundle=bundle, run_key=run_key)
        except Exception as exc:
            progress.fail(exc)
            return bundle.model_copy(
                update={
                    "error": bundle.error or progress.failure,
                    "summary": bundle.summary.model_copy(update={"overall_status": "failed"}),
                }
            )
        if path is not None:
            self._observer.results_written(run_id=progress.run_id, path=str(path))
        return bundle


def _agent_record(
    config: RunConfig, agent: AgentExecutionResult | None, handle: WorkspaceHandle | None
) -> AgentRecord:
    if agent is None:
        return AgentRecord(
            type=config.agent.type,
            model=config.agent.model,
            status="failed",
            exit_code=-1,
            error="agent was not run",
        )
    return AgentRecord(
        type=agent.agent_type,
        model=agent.log.model,
        status=agent.status,
        exit_code=agent.exit_code,
        duration_ms=agent.duration_ms,
        log_path=_relative(agent.log_path, handle),
        error=agent.error,
    )


def _relative(path: Path | None, handle: WorkspaceHandle | None) -> str | None:
    if path is None:
        return None
    if handle is not None and path.is_relative_to(handle.artifacts_dir):
        return str(path.relative_to(handle.artifacts_dir))
    return str(path)


def _artifacts_manifest(handle: WorkspaceHandle | None) -> ArtifactsManifest:
    if handle is None:
        return ArtifactsManifest()
    artifacts_dir = handle.artifacts_dir
    evaluators_dir = handle.paths.evaluator_artifacts_dir
    evaluator_files = (
        sorted(
            str(p.relative_to(artifacts_dir)) for p in evaluators_dir.rglob("*") if p.is_file()
        )
        if evaluators_dir.exists()
        else []
    )

    def present(name: str) -> str | None:
        return name if (artifacts_dir / name).exists() else None

    return ArtifactsManifest(
        agent_log=present(LOG_FILE),
        agent_stdout=present(STDOUT_FILE),
        agent_stderr=present(STDERR_FILE),
        evaluator_artifacts=evaluator_files,
    )
