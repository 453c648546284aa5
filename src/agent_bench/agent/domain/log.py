"""NormalizedLog and its parts — one agent-agnostic record of what an agent did."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class UsageMetrics(BaseModel, frozen=True):
    input_tokens: int | None = None
    output_tokens: int | None = None


class ToolCall(BaseModel, frozen=True):
    """One tool invocation and its result, captured from the agent stream."""

    tool_use_id: str
    tool_name: str
    tool_input: dict[str, object]
    tool_result: str | None  # None if errored or never answered
    tool_error: bool
    duration_ms: float | None = None  # None for unresolved calls


class AgentTurn(BaseModel, frozen=True):
    """One conversational turn.

    For role="assistant": text holds the reply and tool_calls is [].
    For role="tool_use": tool_calls holds the resolved invocations and text is None.
    """

    turn_idx: int
    role: Literal["assistant", "tool_use"]
    text: str | None
    tool_calls: list[ToolCall] = Field(default_factory=list)


class NormalizedLog(BaseModel, frozen=True):
    agent_type: str
    model: str | None
    started_at: datetime
    completed_at: datetime
    duration_ms: int
    status: Literal["success", "failed", "timeout"]
    exit_code: int
    num_turns: int = 0
    usage: UsageMetrics | None = None
    cost_usd: float | None = None
    turns: list[AgentTurn] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    environment: dict[str, str] = Field(default_factory=dict)
