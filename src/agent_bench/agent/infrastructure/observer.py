"""Structlog implementation of the AgentObserver port."""

import structlog


class StructlogAgentObserver:
    """Logs agent domain events to structlog.

    Satisfies the AgentObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def agent_invocation_started(
        self, agent_type: str, model: str | None, workspace_dir: str
    ) -> None:
        self._log.info(
            "agent.invocation.started",
            agent_type=agent_type,
            model=model,
            workspace_dir=workspace_dir,
        )

    def agent_invocation_completed(
        self,
        agent_type: str,
        status: str,
        exit_code: int,
        duration_ms: int,
    ) -> None:
        self._log.info(
            "agent.invocation.completed",
            agent_type=agent_type,
            status=status,
            exit_code=exit_code,
            duration_ms=duration_ms,
        )

    def agent_invocation_failed(self, agent_type: str, reason: str) -> None:
        self._log.error("agent.invocation.failed", agent_type=agent_type, reason=reason)

    def agent_unavailable(self, agent_type: str) -> None:
        self._log.error("agent.unavailable", agent_type=agent_type)
