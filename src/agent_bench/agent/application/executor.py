"""AgentExecutor — runs exactly one adapter and records its outcome, never raising."""

import asyncio
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from agent_bench.agent.domain.adapter import AgentAdapter, AgentContext
from agent_bench.agent.domain.log import NormalizedLog
from agent_bench.agent.domain.observer import AgentObserver
from agent_bench.agent.domain.result import (
    AgentExecutionResult,
    AgentProcessResult,
    AgentStatus,
)
from agent_bench.core.clock import elapsed_ms, utc_now

STDOUT_FILE = "agent-stdout.log"
STDERR_FILE = "agent-stderr.log"
LOG_FILE = "agent-log.json"


@dataclass(frozen=True)
class _AgentArtifacts:
    stdout_path: Path
    stderr_path: Path
    log_path: Path


class AgentExecutor:
    """Turns every adapter outcome into an AgentExecutionResult.

    Unavailability, adapter exceptions, non-zero exits and timeouts all become
    ``failed`` or ``timeout`` records so that evaluation can still run against
    whatever the agent left in the workspace.
    """

    def __init__(self, observer: AgentObserver) -> None:
        self._observer = observer

    async def run(self, adapter: AgentAdapter, context: AgentContext) -> AgentExecutionResult:
        agent_type = adapter.agent_type
        self._observer.agent_invocation_started(
            agent_type=agent_type,
            model=context.config.model,
            workspace_dir=str(context.workspace_dir),
        )
        started_at = time.monotonic()
        raw, status, error = await self._invoke(
            adapter=adapter, context=context, started_at=started_at
        )

        try:
            log = adapter.normalize_log(raw=raw, context=context, status=status)
        except Exception as exc:
            error = error or f"log normalization failed: {exc}"
            log = _fallback_log(agent_type=agent_type, raw=raw, context=context, status=status)

        artifacts: _AgentArtifacts | None = None
        try:
            artifacts = await asyncio.to_thread(
                _write_artifacts, context.artifacts_dir, raw, log
            )
        except OSError as exc:
            reason = f"agent artifacts not written: {exc}"
            self._observer.agent_invocation_failed(agent_type=agent_type, reason=reason)
            error = error or reason
        self._observer.agent_invocation_completed(
            agent_type=agent_type,
            status=status,
            exit_code=raw.exit_code,
            duration_ms=raw.duration_ms,
        )
        return AgentExecutionResult(
            agent_type=agent_type,
            status=status,
            exit_code=raw.exit_code,
            duration_ms=raw.duration_ms,
            stdout_path=artifacts.stdout_path if artifacts else None,
            stderr_path=artifacts.stderr_path if artifacts else None,
            log_path=artifacts.log_path if artifacts else None,
            log=log,
            error=error,
        )

    async def _invoke(
        self, adapter: AgentAdapter, context: AgentContext, started_at: float
    ) -> tuple[AgentProcessResult, AgentStatus, str | None]:
        agent_type = adapter.agent_type
        try:
            available = await adapter.check_availability()
        except Exception as exc:
            available = False
            self._observer.agent_invocation_failed(agent_type=agent_type, reason=str(exc))

        if not available:
            self._observer.agent_unavailable(agent_type=agent_type)
            reason = f"agent '{agent_type}' is not available"
            return _failure(started_at=started_at, reason=reason), "failed", reason

        try:
            async with asyncio.timeout(context.timeout_seconds):
                raw = await adapter.execute(context)
        except TimeoutError:
            reason = f"agent timed out after {context.timeout_seconds}s"
            self._observer.agent_invocation_failed(agent_type=agent_type, reason=reason)
            return _failure(started_at=started_at, reason=reason), "timeout", reason
        except Exception as exc:
            self._observer.agent_invocation_failed(agent_type=agent_type, reason=str(exc))
            return _failure(started_at=started_at, reason=str(exc)), "failed", str(exc)

        if raw.exit_code != 0:
            return raw, "failed", f"agent exited with code {raw.exit_code}"
        return raw, "success", None


def _failure(started_at: float, reason: str) -> AgentProcessResult:
    return AgentProcessResult(exit_code=-1, duration_ms=elapsed_ms(started_at), errors=[reason])


def _fallback_log(
    agent_type: str,
    raw: AgentProcessResult,
    context: AgentContext,
    status: AgentStatus,
) -> NormalizedLog:
    completed_at = utc_now()
    return NormalizedLog(
        agent_type=agent_type,
        model=context.config.model,
        started_at=completed_at - timedelta(milliseconds=raw.duration_ms),
        completed_at=completed_at,
        duration_ms=raw.duration_ms,
        status=status,
        exit_code=raw.exit_code,
        errors=raw.errors,
    )


def _write_artifacts(
    artifacts_dir: Path, raw: AgentProcessResult, log: NormalizedLog
) -> _AgentArtifacts:
    artifacts_dir.mkdir(parents=True, exist_ok=True)
    artifacts = _AgentArtifacts(
        stdout_path=artifacts_dir / STDOUT_FILE,
        stderr_path=artifacts_dir / STDERR_FILE,
        log_path=artifacts_dir / LOG_FILE,
    )
    artifacts.stdout_path.write_text(raw.stdout, encoding="utf-8")
    artifacts.stderr_path.write_text(raw.stderr, encoding="utf-8")
    artifacts.log_path.write_text(log.model_dump_json(indent=2), encoding="utf-8")
    return artifacts
