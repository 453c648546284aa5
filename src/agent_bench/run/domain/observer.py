"""Observer port for the run domain — lifecycle events of the orchestrator."""

from typing import Protocol


class RunObserver(Protocol):
    def run_started(self, run_id: str, name: str) -> None: ...

    def run_state_changed(self, run_id: str, from_state: str, to_state: str) -> None: ...

    def run_failed(self, run_id: str, stage: str, reason: str) -> None: ...

    def run_completed(
        self, run_id: str, overall_status: str, duration_ms: int
    ) -> None: ...

    def results_written(self, run_id: str, path: str) -> None: ...

    def history_appended(self, run_id: str, path: str) -> None: ...
