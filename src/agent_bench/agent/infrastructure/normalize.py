"""Shared NormalizedLog construction for adapters."""

import platform
from datetime import timedelta

from agent_bench.agent.domain.adapter import AgentContext
from agent_bench.agent.domain.log import NormalizedLog
from agent_bench.agent.domain.result import AgentProcessResult, AgentStatus
from agent_bench.core.clock import utc_now


def build_normalized_log(
    agent_type: str,
    raw: AgentProcessResult,
    context: AgentContext,
    status: AgentStatus,
) -> NormalizedLog:
    completed_at = utc_now()
    return NormalizedLog(
        agent_type=agent_type,
        model=raw.model or context.config.model,
        started_at=completed_at - timedelta(milliseconds=raw.duration_ms),
        completed_at=completed_at,
        duration_ms=raw.duration_ms,
        status=status,
        exit_code=raw.exit_code,
        num_turns=raw.num_turns or len(raw.turns),
        usage=raw.usage,
        cost_usd=raw.cost_usd,
        turns=raw.turns,
        errors=raw.errors,
        environment={
            "os": platform.system(),
            "python_version": platform.python_version(),
            "workspace_dir": str(context.workspace_dir),
        },
    )
