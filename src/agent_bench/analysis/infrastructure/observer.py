"""Structlog implementation of the AnalysisObserver port."""

import structlog


class StructlogAnalysisObserver:
    """Delegates analysis domain events to structlog.

    Satisfies the AnalysisObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def history_read_started(self, path: str) -> None:
        self._log.info("analysis.history_read_started", path=path)

    def history_line_skipped(self, path: str, line_number: int, reason: str) -> None:
        self._log.warning(
            "analysis.history_line_skipped",
            path=path,
            line_number=line_number,
            reason=reason,
        )

    def history_read_completed(self, path: str, records: int, skipped: int) -> None:
        self._log.info(
            "analysis.history_read_completed", path=path, records=records, skipped=skipped
        )

    def analysis_completed(self, total_records: int, insights: int) -> None:
        self._log.info(
            "analysis.completed", total_records=total_records, insights=insights
        )
