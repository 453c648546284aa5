"""GitDiffEvaluator — measures the scope of the agent's changes with git."""

import asyncio
import math
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from agent_bench.config.domain.evaluator import EvaluatorConfig
from agent_bench.evaluation.domain.evaluator import EvaluationContext
from agent_bench.evaluation.domain.result import EvaluationArtifact, EvaluatorVerdict
from agent_bench.evaluation.infrastructure.errors import (
    EvaluatorCommandError,
    EvaluatorOutputError,
)

PATCH_FILE = "git-diff.patch"


class GitDiffAssertions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_files_changed: int | None = None
    max_lines_added: int | None = None
    max_lines_removed: int | None = None
    max_total_changes: int | None = None
    min_change_entropy: float | None = None
    max_change_entropy: float | None = None


class GitDiffSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_commit: str = "HEAD"
    assertions: GitDiffAssertions = GitDiffAssertions()


@dataclass(frozen=True)
class FileChange:
    path: str
    additions: int
    deletions: int

    @property
    def changes(self) -> int:
        return self.additions + self.deletions


def change_entropy(files: list[FileChange]) -> float:
    """Shannon entropy (bits) of how changed lines are spread across files."""
    total = sum(f.changes for f in files)
    if total == 0:
        return 0.0
    entropy = 0.0
    for f in files:
        if f.changes > 0:
            share = f.changes / total
            entropy -= share * math.log2(share)
    return entropy


def check_assertions(
    files_changed: int,
    lines_added: int,
    lines_removed: int,
    entropy: float,
    assertions: GitDiffAssertions,
) -> dict[str, str | None]:
    """Return assertion name -> violation message (None when satisfied)."""
    total = lines_added + lines_removed
    checks: dict[str, tuple[int | float | None, bool, str]] = {
        "max_files_changed": (
            assertions.max_files_changed,
            assertions.max_files_changed is not None
            and files_changed > assertions.max_files_changed,
            f"files_changed ({files_changed}) exceeds max_files_changed",
        ),
        "max_lines_added": (
            assertions.max_lines_added,
            assertions.max_lines_added is not None and lines_added > assertions.max_lines_added,
            f"lines_added ({lines_added}) exceeds max_lines_added",
        ),
        "max_lines_removed": (
            assertions.max_lines_removed,
            assertions.max_lines_removed is not None
            and lines_removed > assertions.max_lines_removed,
            f"lines_removed ({lines_removed}) exceeds max_lines_removed",
        ),
        "max_total_changes": (
            assertions.max_total_changes,
            assertions.max_total_changes is not None and total > assertions.max_total_changes,
            f"total_changes ({total}) exceeds max_total_changes",
        ),
        "min_change_entropy": (
            assertions.min_change_entropy,
            assertions.min_change_entropy is not None
            and entropy < assertions.min_change_entropy,
            f"change_entropy ({entropy:.2f}) below min_change_entropy",
        ),
        "max_change_entropy": (
            assertions.max_change_entropy,
            assertions.max_change_entropy is not None
            and entropy > assertions.max_change_entropy,
            f"change_entropy ({entropy:.2f}) exceeds max_change_entropy",
        ),
    }
    return {
        name: (f"{message} ({limit})" if violated else None)
        for name, (limit, violated, message) in checks.items()
        if limit is not None
    }


class GitDiffEvaluator:
    """Counts files and lines changed in ``src-modified`` relative to a base commit.

    Untracked files count as fully added. The working tree is only read; no
    git command here writes to the index or refs.
    """

    evaluator_type = "git-diff"
    description = (
        "Measures the scope of changes: files modified, lines added/removed, and "
        "how changes are distributed across files."
    )

    def __init__(self, config: EvaluatorConfig) -> None:
        self._config = config

    async def check_preconditions(self, context: EvaluationContext) -> bool:
        return (context.modified_dir / ".git").exists()

    async def evaluate(self, context: EvaluationContext) -> EvaluatorVerdict:
        try:
            settings = GitDiffSettings.model_validate(context.config)
        except ValidationError as exc:
            raise EvaluatorOutputError(evaluator=self._config.name, reason=str(exc)) from exc

        cwd = context.modified_dir
        base = settings.base_commit
        numstat = await _git(cwd, "diff", "--numstat", base)
        files = _parse_numstat(numstat)
        untracked = (await _git(cwd, "ls-files", "--others", "--exclude-standard")).splitlines()
        files += [
            FileChange(path=path, additions=_count_lines(cwd / path), deletions=0)
            for path in untracked
            if path
        ]
        patch = await _git(cwd, "diff", base)
        current_commit = await _git(cwd, "rev-parse", "HEAD")

        lines_added = sum(f.additions for f in files)
        lines_removed = sum(f.deletions for f in files)
        entropy = change_entropy(files)
        outcomes = check_assertions(
            files_changed=len(files),
            lines_added=lines_added,
            lines_removed=lines_removed,
            entropy=entropy,
            assertions=settings.assertions,
        )
        violations = [v for v in outcomes.values() if v is not None]

        patch_path = context.artifacts_dir / PATCH_FILE
        await asyncio.to_thread(
            _write_patch, patch_path, patch, [path for path in untracked if path]
        )

        metrics: dict[str, Any] = {
            "files_changed": len(files),
            "lines_added": lines_added,
            "lines_removed": lines_removed,
            "total_changes": lines_added + lines_removed,
            "change_entropy": entropy,
            "changed_files": [
                {
                    "path": f.path,
                    "additions": f.additions,
                    "deletions": f.deletions,
                    "changes": f.changes,
                }
                for f in files
            ],
            "base_commit": base,
            "current_commit": current_commit.strip(),
        }
        if violations:
            metrics["violations"] = violations

        summary = (
            f"{len(files)} file(s) changed, +{lines_added}/-{lines_removed} lines"
        )
        return EvaluatorVerdict(
            status="failed" if violations else "passed",
            metrics=metrics,
            message="; ".join([summary, *violations]),
            assertions={name: 0.0 if v else 1.0 for name, v in outcomes.items()} or None,
            artifacts=[
                EvaluationArtifact(
                    type="patch",
                    path=str(patch_path),
                    description="Unified diff of the agent's changes",
                )
            ],
        )


async def _git(cwd: Path, *args: str) -> str:
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        process.kill()
        await process.wait()
        raise
    if process.returncode != 0:
        raise EvaluatorCommandError(
            command=f"git {args[0]}",
            reason=f"exited {process.returncode}: "
            f"{stderr.decode('utf-8', errors='replace').strip()}",
        )
    return stdout.decode("utf-8", errors="replace")


def _parse_numstat(output: str) -> list[FileChange]:
    files: list[FileChange] = []
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) != 3:
            continue
        added, removed, path = parts
        # Binary files report "-" for both counts.
        files.append(
            FileChange(
                path=path,
                additions=int(added) if added.isdigit() else 0,
                deletions=int(removed) if removed.isdigit() else 0,
            )
        )
    return files


def _count_lines(path: Path) -> int:
    try:
        with path.open("rb") as fh:
            return sum(1 for _ in fh)
    except OSError:
        return 0


def _write_patch(patch_path: Path, patch: str, untracked: list[str]) -> None:
    patch_path.parent.mkdir(parents=True, exist_ok=True)
    body = patch
    if untracked:
        body += "".join(f"# untracked: {path}\n" for path in untracked)
    patch_path.write_text(body, encoding="utf-8")
