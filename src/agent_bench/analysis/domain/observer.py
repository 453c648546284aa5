"""Observer port for the analysis domain — defines events in domain language."""

from typing import Protocol


class AnalysisObserver(Protocol):
    def history_read_started(self, path: str) -> None: ...

    def history_line_skipped(self, path: str, line_number: int, reason: str) -> None: ...

    def history_read_completed(self, path: str, records: int, skipped: int) -> None: ...

    def analysis_completed(self, total_records: int, insights: int) -> None: ...
