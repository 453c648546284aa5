"""Top-level RunConfig — the immutable description of one evaluation run."""

import hashlib

from pydantic import BaseModel, Field, model_validator

from agent_bench.config.domain.agent import AgentConfig
from agent_bench.config.domain.evaluator import EvaluatorConfig
from agent_bench.config.domain.execution import ExecutionConfig
from agent_bench.config.domain.expected import ExpectedReference


class RunConfig(BaseModel, frozen=True):
    name: str = Field(min_length=1)
    description: str = ""
    repo: str = Field(min_length=1)
    branch: str | None = None
    commit: str | None = None
    expected: ExpectedReference | None = None
    agent: AgentConfig
    evaluators: list[EvaluatorConfig] = Field(min_length=1)
    execution: ExecutionConfig = ExecutionConfig()

    @model_validator(mode="after")
    def _evaluator_names_are_unique(self) -> "RunConfig":
        seen: set[str] = set()
        for evaluator in self.evaluators:
            if evaluator.name in seen:
                raise ValueError(f"duplicate evaluator name '{evaluator.name}'")
            seen.add(evaluator.name)
        return self

    def content_hash(self, length: int = 16) -> str:
        """Return a stable hex digest of the config content."""
        payload = self.model_dump_json().encode("utf-8")
        return hashlib.sha256(payload).hexdigest()[:length]
