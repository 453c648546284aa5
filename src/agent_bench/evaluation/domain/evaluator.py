"""Evaluator port and the context every evaluator receives."""

from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel

from agent_bench.agent.domain.result import AgentExecutionResult
from agent_bench.config.domain.evaluator import EvaluatorConfig
from agent_bench.evaluation.domain.result import EvaluatorVerdict
from agent_bench.workspace.domain.handle import WorkspaceSnapshot


class EvaluationContext(BaseModel, frozen=True):
    """Read-only inputs for one evaluator.

    ``artifacts_dir`` is private to the evaluator; everything else is shared
    and must not be modified.
    """

    workspace: WorkspaceSnapshot
    artifacts_dir: Path
    config: dict[str, Any]
    agent: AgentExecutionResult | None = None

    @property
    def modified_dir(self) -> Path:
        return self.workspace.modified_dir

    @property
    def expected_dir(self) -> Path | None:
        return self.workspace.expected_dir


class Evaluator(Protocol):
    @property
    def description(self) -> str: ...

    async def check_preconditions(self, context: EvaluationContext) -> bool: ...

    async def evaluate(self, context: EvaluationContext) -> EvaluatorVerdict: ...


class EvaluatorProvider(Protocol):
    """Builds an Evaluator for a config entry; raises BenchError for unknown types."""

    def create(self, config: EvaluatorConfig) -> Evaluator: ...
