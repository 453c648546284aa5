"""BundleStore port — durable persistence of a finished run."""

from pathlib import Path
from typing import Protocol

from agent_bench.run.domain.bundle import ResultsBundle


class BundleStore(Protocol):
    async def save(self, bundle: ResultsBundle, artifacts_dir: Path, run_key: str) -> Path: ...

    async def save_detached(self, bundle: ResultsBundle, run_key: str) -> Path | None: ...
