"""Workspace value objects — the paths and ownership record of one run's directory tree."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

from agent_bench.workspace.domain.lock import RootLock


@dataclass(frozen=True)
class WorkspacePaths:
    """Fixed layout of a run root."""

    root: Path
    modified_dir: Path
    expected_dir: Path
    artifacts_dir: Path
    evaluator_artifacts_dir: Path
    lock_file: Path

    @classmethod
    def for_root(cls, root: Path) -> "WorkspacePaths":
        artifacts_dir = root / "artifacts"
        return cls(
            root=root,
            modified_dir=root / "src-modified",
            expected_dir=root / "src-expected",
            artifacts_dir=artifacts_dir,
            evaluator_artifacts_dir=artifacts_dir / "evaluators",
            lock_file=root / ".lock",
        )

    def run_directories(self) -> list[Path]:
        """Directories whose presence marks a root as already used by a run."""
        return [self.modified_dir, self.expected_dir, self.artifacts_dir]


class WorkspaceSnapshot(BaseModel, frozen=True):
    """Read-only view of a workspace handed to evaluators.

    Carries paths only: no lock, no way to clean up or re-clone.
    """

    run_key: str
    modified_dir: Path
    expected_dir: Path | None
    artifacts_dir: Path
    evaluator_artifacts_dir: Path


@dataclass(frozen=True)
class WorkspaceHandle:
    """Exclusive ownership record for one run's workspace.

    Created by WorkspaceManager.create_workspace and released by cleanup; the
    held ``lock`` is what keeps a concurrent run off the same root.
    """

    run_key: str
    paths: WorkspacePaths
    has_expected: bool
    source_commit: str | None
    expected_commit: str | None
    created_at: datetime
    lock: RootLock

    @property
    def root(self) -> Path:
        return self.paths.root

    @property
    def modified_dir(self) -> Path:
        return self.paths.modified_dir

    @property
    def expected_dir(self) -> Path | None:
        return self.paths.expected_dir if self.has_expected else None

    @property
    def artifacts_dir(self) -> Path:
        return self.paths.artifacts_dir

    def snapshot(self) -> WorkspaceSnapshot:
        return WorkspaceSnapshot(
            run_key=self.run_key,
            modified_dir=self.paths.modified_dir,
            expected_dir=self.expected_dir,
            artifacts_dir=self.paths.artifacts_dir,
            evaluator_artifacts_dir=self.paths.evaluator_artifacts_dir,
        )
