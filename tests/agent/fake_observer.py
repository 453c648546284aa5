"""FakeAgentObserver — records agent domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class InvocationStartedEvent:
    agent_type: str
    model: str | None
    workspace_dir: str


@dataclass(frozen=True)
class InvocationCompletedEvent:
    agent_type: str
    status: str
    exit_code: int
    duration_ms: int


@dataclass(frozen=True)
class InvocationFailedEvent:
    agent_type: str
    reason: str


class FakeAgentObserver:
    """Records all emitted agent events as typed frozen dataclasses.

    Use in tests to assert which events were emitted and with what data,
    without mocking or patching.
    """

    def __init__(self) -> None:
        self.invocation_started: list[InvocationStartedEvent] = []
        self.invocation_completed: list[InvocationCompletedEvent] = []
        self.invocation_failed: list[InvocationFailedEvent] = []
        self.unavailable: list[str] = []

    def agent_invocation_started(
        self, agent_type: str, model: str | None, workspace_dir: str
    ) -> None:
        self.invocation_started.append(
            InvocationStartedEvent(
                agent_type=agent_type, model=model, workspace_dir=workspace_dir
            )
        )

    def agent_invocation_completed(
        self,
        agent_type: str,
        status: str,
        exit_code: int,
        duration_ms: int,
    ) -> None:
        self.invocation_completed.append(
            InvocationCompletedEvent(
                agent_type=agent_type,
                status=status,
                exit_code=exit_code,
                duration_ms=duration_ms,
            )
        )

    def agent_invocation_failed(self, agent_type: str, reason: str) -> None:
        self.invocation_failed.append(
            InvocationFailedEvent(agent_type=agent_type, reason=reason)
        )

    def agent_unavailable(self, agent_type: str) -> None:
        self.unavailable.append(agent_type)
