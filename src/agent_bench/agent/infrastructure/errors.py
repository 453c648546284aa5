"""Error types raised by agent infrastructure."""

from agent_bench.core.errors import BenchError


class AgentInvocationError(BenchError):
    """Raised when the agent cannot be invoked or returns an error response."""

    def __init__(self, reason: str, retriable: bool = False) -> None:
        super().__init__(f"Failed to invoke agent: {reason}", retriable=retriable)


class AgentTypeNotSupportedError(BenchError):
    """Raised when the agent type in config has no registered adapter."""

    def __init__(self, agent_type: str, known_types: list[str] | None = None) -> None:
        known = f" (known: {', '.join(known_types)})" if known_types else ""
        super().__init__(
            f"Failed to create agent adapter: unsupported agent type '{agent_type}'{known}"
        )
