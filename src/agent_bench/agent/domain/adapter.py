"""AgentAdapter port — runs one coding agent against a workspace."""

from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from agent_bench.agent.domain.log import NormalizedLog
from agent_bench.agent.domain.result import AgentProcessResult, AgentStatus
from agent_bench.config.domain.agent import AgentConfig


class AgentContext(BaseModel, frozen=True):
    """Everything an adapter may use: the directory it edits and its own config."""

    workspace_dir: Path
    artifacts_dir: Path
    config: AgentConfig
    timeout_seconds: float

    @property
    def prompt(self) -> str:
        value = self.config.config.get("prompt", "")
        return str(value) if value is not None else ""


class AgentAdapter(Protocol):
    """Runs an agent and normalizes what it did.

    ``execute`` may raise; the caller converts errors and timeouts into an
    AgentExecutionResult. Implementations must kill any child process when
    cancelled.
    """

    @property
    def agent_type(self) -> str: ...

    async def check_availability(self) -> bool: ...

    async def execute(self, context: AgentContext) -> AgentProcessResult: ...

    def normalize_log(
        self,
        raw: AgentProcessResult,
        context: AgentContext,
        status: AgentStatus,
    ) -> NormalizedLog: ...


class AgentAdapterProvider(Protocol):
    """Builds the adapter for an agent config; raises BenchError for unknown types."""

    def create(self, config: AgentConfig) -> AgentAdapter: ...
