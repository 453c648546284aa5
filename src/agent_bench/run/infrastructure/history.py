"""HistoryWriter — appends exported bundles to the JSONL history log."""

import asyncio
import os
from pathlib import Path

from agent_bench.core.clock import utc_now
from agent_bench.run.domain.bundle import ExportedResultsBundle, ResultsBundle
from agent_bench.run.infrastructure.errors import ResultsWriteError


class HistoryWriter:
    """Append-only writer: one JSON object per line, never rewritten.

    Each append is a single ``write`` on an ``O_APPEND`` descriptor followed by
    fsync, so a crash can at worst leave a truncated final line, which readers
    skip.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    async def append(self, bundle: ResultsBundle) -> ExportedResultsBundle:
        exported = ExportedResultsBundle.from_bundle(bundle, exported_at=utc_now())
        line = exported.model_dump_json() + "\n"
        try:
            await asyncio.to_thread(self._append_line, line)
        except OSError as exc:
            raise ResultsWriteError(path=self._path, reason=str(exc)) from exc
        return exported

    def _append_line(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        try:
            os.write(fd, line.encode("utf-8"))
            os.fsync(fd)
        finally:
            os.close(fd)
