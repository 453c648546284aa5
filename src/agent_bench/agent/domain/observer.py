"""Observer port for the agent domain — defines events in domain language."""

from typing import Protocol


class AgentObserver(Protocol):
    def agent_invocation_started(
        self, agent_type: str, model: str | None, workspace_dir: str
    ) -> None: ...

    def agent_invocation_completed(
        self,
        agent_type: str,
        status: str,
        exit_code: int,
        duration_ms: int,
    ) -> None: ...

    def agent_invocation_failed(self, agent_type: str, reason: str) -> None: ...

    def agent_unavailable(self, agent_type: str) -> None: ...
