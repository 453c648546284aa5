"""Agent execution results — the raw adapter output and the recorded outcome."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from agent_bench.agent.domain.log import AgentTurn, NormalizedLog, UsageMetrics

type AgentStatus = Literal["success", "failed", "timeout"]


class AgentProcessResult(BaseModel, frozen=True):
    """What an adapter observed while running its agent, before normalization."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    model: str | None = None
    num_turns: int = 0
    usage: UsageMetrics | None = None
    cost_usd: float | None = None
    turns: list[AgentTurn] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class AgentExecutionResult(BaseModel, frozen=True):
    """Immutable record of the single agent execution in a run."""

    agent_type: str
    status: AgentStatus
    exit_code: int
    duration_ms: int
    stdout_path: Path | None
    stderr_path: Path | None
    log_path: Path | None
    log: NormalizedLog
    error: str | None = None
