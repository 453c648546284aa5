"""Execution configuration models."""

from pathlib import Path

from pydantic import BaseModel, Field


class ExecutionConfig(BaseModel, frozen=True):
    timeout_seconds: float = Field(default=300.0, gt=0)
    clone_timeout_seconds: float = Field(default=300.0, gt=0)
    evaluator_timeout_seconds: float = Field(default=300.0, gt=0)
    max_concurrent_evaluators: int = Field(default=4, ge=1)
    workspace_dir: Path = Path(".agent-bench-workspace")
    keep_workspace: bool = False
