"""Run lifecycle states and the transitions allowed between them."""

from enum import StrEnum


class RunState(StrEnum):
    IDLE = "idle"
    PREPARING = "preparing"
    EXECUTING_AGENT = "executing_agent"
    EVALUATING = "evaluating"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.DONE, RunState.FAILED)


# FAILED is reachable from every non-terminal state and is handled separately.
_FORWARD: dict[RunState, RunState] = {
    RunState.IDLE: RunState.PREPARING,
    RunState.PREPARING: RunState.EXECUTING_AGENT,
    RunState.EXECUTING_AGENT: RunState.EVALUATING,
    RunState.EVALUATING: RunState.AGGREGATING,
    RunState.AGGREGATING: RunState.DONE,
}


def can_transition(current: RunState, target: RunState) -> bool:
    if current.is_terminal:
        return False
    if target is RunState.FAILED:
        return True
    return _FORWARD.get(current) is target
