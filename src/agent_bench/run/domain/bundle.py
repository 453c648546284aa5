"""ResultsBundle — the durable record of one run, and its history-line form."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from agent_bench.agent.domain.result import AgentStatus
from agent_bench.config.domain.expected import ExpectedReference
from agent_bench.evaluation.domain.result import EvaluationResult
from agent_bench.evaluation.domain.summary import Summary
from agent_bench.run.domain.state import RunState

BUNDLE_VERSION = "1.0.0"


class TestCaseRecord(BaseModel, frozen=True):
    __test__ = False  # not a pytest test class

    name: str
    description: str = ""
    config_file: str | None = None
    config_hash: str
    repo: str
    branch: str | None = None
    commit: str | None = None
    expected: ExpectedReference | None = None


class EnvironmentRecord(BaseModel, frozen=True):
    os: str
    python_version: str
    workspace_dir: str


class ExecutionRecord(BaseModel, frozen=True):
    started_at: datetime
    completed_at: datetime
    duration_ms: int = Field(ge=0)
    harness_version: str
    environment: EnvironmentRecord


class AgentRecord(BaseModel, frozen=True):
    type: str
    model: str | None = None
    status: AgentStatus
    exit_code: int
    duration_ms: int = Field(default=0, ge=0)
    log_path: str | None = None
    error: str | None = None


class ArtifactsManifest(BaseModel, frozen=True):
    agent_log: str | None = None
    agent_stdout: str | None = None
    agent_stderr: str | None = None
    evaluator_artifacts: list[str] = Field(default_factory=list)


class RunFailure(BaseModel, frozen=True):
    stage: RunState
    message: str


class ResultsBundle(BaseModel, frozen=True):
    version: Literal["1.0.0"] = BUNDLE_VERSION
    run_id: str
    test_case: TestCaseRecord
    execution: ExecutionRecord
    agent: AgentRecord
    evaluators: list[EvaluationResult]
    summary: Summary
    artifacts: ArtifactsManifest = ArtifactsManifest()
    error: RunFailure | None = None


class ExportedResultsBundle(ResultsBundle, frozen=True):
    """A bundle as written to the history log, stamped with its export time."""

    exported_at: datetime

    @field_validator("exported_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    @classmethod
    def from_bundle(cls, bundle: ResultsBundle, exported_at: datetime) -> "ExportedResultsBundle":
        return cls.model_validate({**bundle.model_dump(), "exported_at": exported_at})
