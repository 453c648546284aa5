"""EvaluationResult value objects — one per configured evaluator per run."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

type EvaluationStatus = Literal["passed", "failed", "skipped"]


class EvaluationArtifact(BaseModel, frozen=True):
    type: str
    path: str
    description: str = ""


class EvaluationError(BaseModel, frozen=True):
    message: str
    stack_trace: str | None = None


class EvaluatorVerdict(BaseModel, frozen=True):
    """What an evaluator returns; the runner stamps name, timing, and timestamp."""

    status: EvaluationStatus
    metrics: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    assertions: dict[str, Any] | None = None
    artifacts: list[EvaluationArtifact] = Field(default_factory=list)


class EvaluationResult(BaseModel, frozen=True):
    evaluator: str
    status: EvaluationStatus
    metrics: dict[str, Any] = Field(default_factory=dict)
    message: str
    duration_ms: int = Field(ge=0)
    timestamp: datetime
    assertions: dict[str, Any] | None = None
    artifacts: list[EvaluationArtifact] = Field(default_factory=list)
    error: EvaluationError | None = None
