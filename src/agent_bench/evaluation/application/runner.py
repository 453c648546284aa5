"""EvaluatorRunner — runs every configured evaluator concurrently, isolating failures."""

import asyncio
import re
import time
import traceback
from typing import Any

from pydantic import ValidationError

from agent_bench.agent.domain.result import AgentExecutionResult
from agent_bench.config.domain.evaluator import EvaluatorConfig
from agent_bench.core.clock import elapsed_ms, utc_now
from agent_bench.evaluation.domain.evaluator import (
    EvaluationContext,
    EvaluatorProvider,
)
from agent_bench.evaluation.domain.observer import EvaluationObserver
from agent_bench.evaluation.domain.result import (
    EvaluationError,
    EvaluationResult,
    EvaluatorVerdict,
)
from agent_bench.evaluation.infrastructure.errors import (
    EvaluatorOutputError,
    EvaluatorTimeoutError,
)
from agent_bench.workspace.domain.handle import WorkspaceSnapshot

_UNSAFE_DIR_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def artifacts_dirname(evaluator_name: str) -> str:
    """Filesystem-safe directory name for an evaluator's private artifacts."""
    safe = _UNSAFE_DIR_CHARS.sub("_", evaluator_name).strip(".")
    return safe or "evaluator"


def not_run_results(configs: list[EvaluatorConfig], reason: str) -> list[EvaluationResult]:
    """One ``skipped`` result per config, for runs that never reached evaluation."""
    timestamp = utc_now()
    return [
        EvaluationResult(
            evaluator=config.name,
            status="skipped",
            message=f"Not run: {reason}",
            duration_ms=0,
            timestamp=timestamp,
        )
        for config in configs
    ]


class EvaluatorRunner:
    """Fans out to all evaluators and joins with settle-all semantics.

    N configs always produce N results in config order. Each task converts its
    own exceptions, timeouts and malformed output into a ``failed`` result, so
    one evaluator can never abort or starve the others. Only cancellation
    propagates.
    """

    def __init__(
        self,
        provider: EvaluatorProvider,
        observer: EvaluationObserver,
        max_concurrent: int,
        timeout_seconds: float,
    ) -> None:
        self._provider = provider
        self._observer = observer
        self._max_concurrent = max_concurrent
        self._timeout_seconds = timeout_seconds

    async def run(
        self,
        run_key: str,
        configs: list[EvaluatorConfig],
        workspace: WorkspaceSnapshot,
        agent: AgentExecutionResult | None = None,
    ) -> list[EvaluationResult]:
        self._observer.evaluation_started(
            run_key=run_key,
            evaluator_names=[c.name for c in configs],
            max_concurrent=self._max_concurrent,
        )
        started_at = time.monotonic()
        slots: list[EvaluationResult | None] = [None] * len(configs)
        sem = asyncio.Semaphore(self._max_concurrent)

        async with asyncio.TaskGroup() as tg:
            for index, config in enumerate(configs):
                tg.create_task(
                    self._run_one(
                        sem=sem,
                        run_key=run_key,
                        index=index,
                        config=config,
                        workspace=workspace,
                        agent=agent,
                        slots=slots,
                    )
                )

        results = [slot for slot in slots if slot is not None]
        assert len(results) == len(configs)

        self._observer.evaluation_completed(
            run_key=run_key,
            passed=sum(1 for r in results if r.status == "passed"),
            failed=sum(1 for r in results if r.status == "failed"),
            skipped=sum(1 for r in results if r.status == "skipped"),
            elapsed_seconds=time.monotonic() - started_at,
        )
        return results

    async def _run_one(
        self,
        sem: asyncio.Semaphore,
        run_key: str,
        index: int,
        config: EvaluatorConfig,
        workspace: WorkspaceSnapshot,
        agent: AgentExecutionResult | None,
        slots: list[EvaluationResult | None],
    ) -> None:
        async with sem:
            self._observer.evaluator_started(run_key=run_key, evaluator=config.name)
            started_at = time.monotonic()
            try:
                result = await self._evaluate(
                    config=config, workspace=workspace, agent=agent, started_at=started_at
                )
            except TimeoutError:
                error = EvaluatorTimeoutError(
                    evaluator=config.name, timeout_seconds=self._timeout_seconds
                )
                result = _failed(config=config, exc=error, started_at=started_at)
            except Exception as exc:
                result = _failed(config=config, exc=exc, started_at=started_at)

            if result.status == "failed" and result.error is not None:
                self._observer.evaluator_failed(
                    run_key=run_key, evaluator=config.name, reason=result.error.message
                )
            elif result.status == "skipped":
                self._observer.evaluator_skipped(
                    run_key=run_key, evaluator=config.name, reason=result.message
                )
            self._observer.evaluator_completed(
                run_key=run_key,
                evaluator=config.name,
                status=result.status,
                duration_ms=result.duration_ms,
            )
            slots[index] = result

    async def _evaluate(
        self,
        config: EvaluatorConfig,
        workspace: WorkspaceSnapshot,
        agent: AgentExecutionResult | None,
        started_at: float,
    ) -> EvaluationResult:
        evaluator = self._provider.create(config)
        artifacts_dir = workspace.evaluator_artifacts_dir / artifacts_dirname(config.name)
        await asyncio.to_thread(artifacts_dir.mkdir, parents=True, exist_ok=True)
        context = EvaluationContext(
            workspace=workspace,
            artifacts_dir=artifacts_dir,
            config=config.config,
            agent=agent,
        )

        async with asyncio.timeout(self._timeout_seconds):
            if not await evaluator.check_preconditions(context):
                return EvaluationResult(
                    evaluator=config.name,
                    status="skipped",
                    message=f"Preconditions not met: {evaluator.description}",
                    duration_ms=elapsed_ms(started_at),
                    timestamp=utc_now(),
                )
            raw = await evaluator.evaluate(context)

        verdict = _coerce_verdict(evaluator_name=config.name, raw=raw)
        return EvaluationResult(
            evaluator=config.name,
            status=verdict.status,
            metrics=verdict.metrics,
            message=verdict.message,
            duration_ms=elapsed_ms(started_at),
            timestamp=utc_now(),
            assertions=verdict.assertions,
            artifacts=verdict.artifacts,
        )


def _coerce_verdict(evaluator_name: str, raw: Any) -> EvaluatorVerdict:
    """Accept a verdict or a mapping with the verdict's shape; reject anything else.

    Raises:
        EvaluatorOutputError: if ``raw`` is not a valid verdict.
    """
    if isinstance(raw, EvaluatorVerdict):
        return raw
    if isinstance(raw, dict):
        try:
            return EvaluatorVerdict.model_validate(raw)
        except ValidationError as exc:
            raise EvaluatorOutputError(evaluator=evaluator_name, reason=str(exc)) from exc
    raise EvaluatorOutputError(
        evaluator=evaluator_name,
        reason=f"expected EvaluatorVerdict, got {type(raw).__name__}",
    )


def _failed(config: EvaluatorConfig, exc: BaseException, started_at: float) -> EvaluationResult:
    return EvaluationResult(
        evaluator=config.name,
        status="failed",
        message=f"Evaluator error: {exc}",
        duration_ms=elapsed_ms(started_at),
        timestamp=utc_now(),
        error=EvaluationError(
            message=str(exc),
            stack_trace="".join(traceback.format_exception(exc)),
        ),
    )
