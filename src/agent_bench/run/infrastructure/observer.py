"""Structlog implementation of the RunObserver port."""

import structlog


class StructlogRunObserver:
    """Logs orchestrator lifecycle events to structlog.

    Satisfies the RunObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def run_started(self, run_id: str, name: str) -> None:
        self._log.info("run.started", run_id=run_id, name=name)

    def run_state_changed(self, run_id: str, from_state: str, to_state: str) -> None:
        self._log.debug(
            "run.state_changed", run_id=run_id, from_state=from_state, to_state=to_state
        )

    def run_failed(self, run_id: str, stage: str, reason: str) -> None:
        self._log.error("run.failed", run_id=run_id, stage=stage, reason=reason)

    def run_completed(self, run_id: str, overall_status: str, duration_ms: int) -> None:
        self._log.info(
            "run.completed",
            run_id=run_id,
            overall_status=overall_status,
            duration_ms=duration_ms,
        )

    def results_written(self, run_id: str, path: str) -> None:
        self._log.info("run.results_written", run_id=run_id, path=path)

    def history_appended(self, run_id: str, path: str) -> None:
        self._log.info("run.history_appended", run_id=run_id, path=path)
