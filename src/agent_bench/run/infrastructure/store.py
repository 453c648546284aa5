"""ResultsStore — persists a run's bundle and artifacts outside the workspace."""

import asyncio
import os
import shutil
import tempfile
from pathlib import Path

from pydantic import ValidationError

from agent_bench.run.domain.bundle import ResultsBundle
from agent_bench.run.infrastructure.errors import ResultsReadError, ResultsWriteError

RESULTS_FILE = "results.json"


def write_json_atomic(path: Path, payload: str) -> None:
    """Write ``payload`` to ``path`` via a same-directory temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_bundle(path: Path) -> ResultsBundle:
    """Read a results.json file.

    Raises:
        ResultsReadError: if the file is missing or is not a valid bundle.
    """
    try:
        return ResultsBundle.model_validate_json(path.read_bytes())
    except OSError as exc:
        raise ResultsReadError(path=path, reason=str(exc)) from exc
    except ValidationError as exc:
        raise ResultsReadError(path=path, reason=str(exc)) from exc


class ResultsStore:
    """Writes ``results.json`` into the run's artifacts directory and, when an
    output directory is configured, copies the whole artifacts tree to
    ``<output_dir>/<run key>/`` so it survives workspace cleanup.
    """

    def __init__(self, output_dir: Path | None = None) -> None:
        self._output_dir = output_dir

    async def save(
        self, bundle: ResultsBundle, artifacts_dir: Path, run_key: str
    ) -> Path:
        """Persist ``bundle`` and return the path of its durable copy.

        Raises:
            ResultsWriteError: if any file cannot be written.
        """
        return await asyncio.to_thread(self._save_sync, bundle, artifacts_dir, run_key)

    def _save_sync(self, bundle: ResultsBundle, artifacts_dir: Path, run_key: str) -> Path:
        payload = bundle.model_dump_json(indent=2)
        local_path = artifacts_dir / RESULTS_FILE
        try:
            write_json_atomic(local_path, payload)
            if self._output_dir is None:
                return local_path
            durable_dir = self._output_dir / run_key
            shutil.copytree(artifacts_dir, durable_dir, dirs_exist_ok=True)
            durable_path = durable_dir / RESULTS_FILE
            write_json_atomic(durable_path, payload)
            return durable_path
        except OSError as exc:
            raise ResultsWriteError(path=local_path, reason=str(exc)) from exc

    async def save_detached(self, bundle: ResultsBundle, run_key: str) -> Path | None:
        """Persist a bundle for a run that never got a workspace."""
        if self._output_dir is None:
            return None
        path = self._output_dir / run_key / RESULTS_FILE
        try:
            await asyncio.to_thread(write_json_atomic, path, bundle.model_dump_json(indent=2))
        except OSError as exc:
            raise ResultsWriteError(path=path, reason=str(exc)) from exc
        return path
