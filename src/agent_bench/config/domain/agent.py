"""Agent configuration model."""

from typing import Any

from pydantic import BaseModel, Field


class AgentConfig(BaseModel, frozen=True):
    type: str = Field(min_length=1)
    model: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)
