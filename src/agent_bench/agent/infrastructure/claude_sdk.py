"""ClaudeAgentSDKAdapter — runs Claude Code through the Claude Agent SDK."""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from claude_agent_sdk import ClaudeSDKError, query
from claude_agent_sdk.types import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

from agent_bench.agent.domain.adapter import AgentContext
from agent_bench.agent.domain.log import AgentTurn, NormalizedLog, ToolCall, UsageMetrics
from agent_bench.agent.domain.result import AgentProcessResult, AgentStatus
from agent_bench.agent.infrastructure.errors import AgentInvocationError
from agent_bench.agent.infrastructure.normalize import build_normalized_log
from agent_bench.config.domain.agent import AgentConfig

_DEFAULT_PERMISSION_MODE = "acceptEdits"


@dataclass(frozen=True)
class _PendingToolCall:
    tool_call: ToolCall
    start_time: float


class ClaudeAgentSDKAdapter:
    """Adapter that lets Claude Code edit the workspace via the Agent SDK.

    Config keys (under ``agent.config``): ``prompt``, ``system_prompt``,
    ``permission_mode`` (default ``acceptEdits``), ``allowed_tools``,
    ``disallowed_tools``, ``max_turns`` and ``cli_path``.
    """

    agent_type = "claude_code_sdk"

    def __init__(self, config: AgentConfig) -> None:
        self._config = config

    async def check_availability(self) -> bool:
        cli_path = self._config.config.get("cli_path")
        if cli_path is None:
            return True
        return Path(str(cli_path)).is_file()

    async def execute(self, context: AgentContext) -> AgentProcessResult:
        """Run one SDK session rooted at the workspace and collect its turns.

        Raises:
            AgentInvocationError: if the SDK raises or never yields a ResultMessage.
        """
        if not context.prompt:
            raise AgentInvocationError(reason="agent.config.prompt is empty")

        started_at = time.monotonic()
        result_message, turns = await self._collect_result(
            prompt=context.prompt, options=self._build_options(context=context)
        )
        errors: list[str] = []
        if result_message.is_error:
            errors.append(f"agent returned error response: {result_message.result}")

        return AgentProcessResult(
            exit_code=1 if result_message.is_error else 0,
            stdout=result_message.result or "",
            duration_ms=result_message.duration_ms
            or int((time.monotonic() - started_at) * 1000),
            model=self._config.model,
            num_turns=result_message.num_turns,
            usage=self._map_usage(raw=result_message.usage),
            cost_usd=result_message.total_cost_usd,
            turns=turns,
            errors=errors,
        )

    def normalize_log(
        self,
        raw: AgentProcessResult,
        context: AgentContext,
        status: AgentStatus,
    ) -> NormalizedLog:
        return build_normalized_log(
            agent_type=self.agent_type, raw=raw, context=context, status=status
        )

    def _build_options(self, context: AgentContext) -> ClaudeAgentOptions:
        settings = self._config.config
        options: dict[str, Any] = {
            "cwd": str(context.workspace_dir),
            "permission_mode": settings.get("permission_mode", _DEFAULT_PERMISSION_MODE),
            "setting_sources": [],
        }
        if self._config.model is not None:
            options["model"] = self._config.model
        for key in ("system_prompt", "allowed_tools", "disallowed_tools", "max_turns", "cli_path"):
            if settings.get(key) is not None:
                options[key] = settings[key]
        return ClaudeAgentOptions(**options)

    async def _collect_result(
        self, prompt: str, options: ClaudeAgentOptions
    ) -> tuple[ResultMessage, list[AgentTurn]]:
        """Iterate the SDK stream, pairing tool uses with their results.

        Tool calls that never receive a result are emitted at the end with
        tool_error=True.
        """
        result_message: ResultMessage | None = None
        turns: list[AgentTurn] = []
        pending: dict[str, _PendingToolCall] = {}

        try:
            async for message in query(prompt=prompt, options=options):
                if isinstance(message, ResultMessage):
                    result_message = message
                elif isinstance(message, AssistantMessage):
                    text_parts: list[str] = []
                    for block in message.content:
                        if isinstance(block, TextBlock):
                            text_parts.append(block.text)
                        elif isinstance(block, ToolUseBlock):
                            pending[block.id] = _PendingToolCall(
                                tool_call=ToolCall(
                                    tool_use_id=block.id,
                                    tool_name=block.name,
                                    tool_input=block.input,
                                    tool_result=None,
                                    tool_error=False,
                                ),
                                start_time=time.monotonic(),
                            )
                    if text_parts:
                        turns.append(
                            AgentTurn(
                                turn_idx=len(turns),
                                role="assistant",
                                text="".join(text_parts),
                            )
                        )
                elif isinstance(message, UserMessage):
                    resolved = _resolve_tool_results(message=message, pending=pending)
                    if resolved:
                        turns.append(
                            AgentTurn(
                                turn_idx=len(turns),
                                role="tool_use",
                                text=None,
                                tool_calls=resolved,
                            )
                        )
        except ClaudeSDKError as exc:
            raise AgentInvocationError(reason=str(exc), retriable=True) from exc
        except Exception as exc:
            # The SDK reader surfaces subprocess death as a bare Exception.
            raise AgentInvocationError(reason=str(exc), retriable=True) from exc

        if pending:
            turns.append(
                AgentTurn(
                    turn_idx=len(turns),
                    role="tool_use",
                    text=None,
                    tool_calls=[
                        p.tool_call.model_copy(update={"tool_error": True})
                        for p in pending.values()
                    ],
                )
            )

        if result_message is None:
            raise AgentInvocationError(reason="no ResultMessage in response stream")
        return result_message, turns

    def _map_usage(self, raw: dict[str, Any] | None) -> UsageMetrics | None:
        if raw is None:
            return None
        return UsageMetrics(
            input_tokens=raw.get("input_tokens"),
            output_tokens=raw.get("output_tokens"),
        )


def _resolve_tool_results(
    message: UserMessage, pending: dict[str, _PendingToolCall]
) -> list[ToolCall]:
    content = message.content
    if not isinstance(content, list):
        return []

    resolved: list[ToolCall] = []
    for block in content:
        if not isinstance(block, ToolResultBlock):
            continue
        entry = pending.pop(block.tool_use_id, None)
        if entry is None:
            continue

        raw_result = block.content
        if isinstance(raw_result, str):
            tool_result: str | None = raw_result
        elif isinstance(raw_result, list):
            tool_result = " ".join(
                str(item.get("text", "")) for item in raw_result if isinstance(item, dict)
            )
        else:
            tool_result = None

        resolved.append(
            entry.tool_call.model_copy(
                update={
                    "tool_result": tool_result,
                    "tool_error": bool(block.is_error),
                    "duration_ms": (time.monotonic() - entry.start_time) * 1000.0,
                }
            )
        )
    return resolved
