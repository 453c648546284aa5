"""WorkspaceManager — creates, locks, and tears down isolated per-run directories."""

import asyncio
import shutil
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from agent_bench.config.domain.config import RunConfig
from agent_bench.core.clock import elapsed_ms, utc_now
from agent_bench.workspace.domain.cloner import RepositoryCloner
from agent_bench.workspace.domain.handle import WorkspaceHandle, WorkspacePaths
from agent_bench.workspace.domain.lock import RootLocker
from agent_bench.workspace.domain.observer import WorkspaceObserver
from agent_bench.workspace.infrastructure.errors import (
    CloneTimeoutError,
    ExpectedReferenceError,
    WorkspaceExistsError,
)


def make_run_key(config: RunConfig, now: datetime | None = None) -> str:
    """Build a run key: ``run-<UTC timestamp>-<config hash>``."""
    stamp = (now or utc_now()).strftime("%Y%m%dT%H%M%S%fZ")
    return f"run-{stamp}-{config.content_hash(length=12)}"


class WorkspaceManager:
    """Owns the filesystem side of a run.

    Each run gets ``<base_dir>/<run key>/`` with ``src-modified``, an optional
    ``src-expected``, and ``artifacts/evaluators``. The root is locked from
    creation until cleanup, so two runs can never share a root, while runs on
    different roots never wait on each other.
    """

    def __init__(
        self,
        base_dir: Path,
        cloner: RepositoryCloner,
        locker: RootLocker,
        observer: WorkspaceObserver,
    ) -> None:
        self._base_dir = base_dir
        self._cloner = cloner
        self._locker = locker
        self._observer = observer

    async def create_workspace(
        self, config: RunConfig, run_key: str | None = None
    ) -> WorkspaceHandle:
        """Lock a fresh run root and materialize the source and expected trees.

        On any failure the directories created here are removed and the lock is
        released before the error propagates.

        Raises:
            WorkspaceBusyError: if the root is locked by another run.
            WorkspaceExistsError: if the root already holds run directories.
            CloneError, CloneTimeoutError: if the source cannot be cloned.
            ExpectedReferenceError: if a local expected reference is unusable.
        """
        run_key = run_key or make_run_key(config=config)
        root = (self._base_dir / run_key).absolute()
        paths = WorkspacePaths.for_root(root)
        root_preexisted = root.exists()
        started_at = time.monotonic()

        self._observer.workspace_creating(run_key=run_key, root=str(root), repo=config.repo)
        try:
            lock = self._locker.acquire(root)
        except Exception as exc:
            self._observer.workspace_failed(run_key=run_key, reason=str(exc))
            raise

        owns_tree = False
        try:
            if any(directory.exists() for directory in paths.run_directories()):
                raise WorkspaceExistsError(root=root)
            owns_tree = True
            paths.evaluator_artifacts_dir.mkdir(parents=True)

            timeout = config.execution.clone_timeout_seconds
            source_commit = await self._cloner.clone(
                repo=config.repo,
                destination=paths.modified_dir,
                branch=config.branch,
                commit=config.commit,
                timeout_seconds=timeout,
            )
            expected_commit = await self._materialize_expected(config=config, paths=paths)
        except BaseException as exc:
            if isinstance(exc, Exception):
                self._observer.workspace_failed(run_key=run_key, reason=str(exc))
            if owns_tree:
                _discard(paths=paths, remove_root=not root_preexisted)
            lock.release()
            raise

        self._observer.workspace_created(
            run_key=run_key,
            root=str(root),
            source_commit=source_commit,
            has_expected=config.expected is not None,
            duration_ms=elapsed_ms(started_at),
        )
        return WorkspaceHandle(
            run_key=run_key,
            paths=paths,
            has_expected=config.expected is not None,
            source_commit=source_commit,
            expected_commit=expected_commit,
            created_at=utc_now(),
            lock=lock,
        )

    async def cleanup(self, handle: WorkspaceHandle) -> None:
        """Remove the run root, then release its lock.

        A removal failure is reported to the observer; the lock is released
        regardless.
        """
        try:
            await asyncio.to_thread(shutil.rmtree, handle.root)
        except OSError as exc:
            self._observer.workspace_cleanup_failed(run_key=handle.run_key, reason=str(exc))
        else:
            self._observer.workspace_cleaned(run_key=handle.run_key, root=str(handle.root))
        finally:
            handle.lock.release()

    def retain(self, handle: WorkspaceHandle) -> None:
        """Release the lock but leave the directory tree on disk for inspection."""
        handle.lock.release()
        self._observer.workspace_retained(run_key=handle.run_key, root=str(handle.root))

    @asynccontextmanager
    async def workspace(
        self, config: RunConfig, run_key: str | None = None, keep: bool = False
    ) -> AsyncIterator[WorkspaceHandle]:
        """Yield a workspace that is cleaned up (or retained) on every exit path."""
        handle = await self.create_workspace(config=config, run_key=run_key)
        try:
            yield handle
        finally:
            if keep:
                self.retain(handle)
            else:
                await self.cleanup(handle)

    async def _materialize_expected(
        self, config: RunConfig, paths: WorkspacePaths
    ) -> str | None:
        reference = config.expected
        if reference is None:
            return None

        timeout = config.execution.clone_timeout_seconds
        if reference.kind == "branch":
            return await self._cloner.clone(
                repo=config.repo,
                destination=paths.expected_dir,
                branch=reference.identifier,
                commit=None,
                timeout_seconds=timeout,
            )

        source = Path(reference.identifier).expanduser()
        if not source.exists():
            raise ExpectedReferenceError(
                kind=reference.kind,
                identifier=reference.identifier,
                reason="path does not exist",
            )
        if reference.kind == "path" and not source.is_dir():
            raise ExpectedReferenceError(
                kind=reference.kind,
                identifier=reference.identifier,
                reason="path is not a directory",
            )

        try:
            async with asyncio.timeout(timeout):
                await asyncio.to_thread(_copy_reference, source, paths.expected_dir)
        except TimeoutError as exc:
            raise CloneTimeoutError(
                source=reference.identifier, timeout_seconds=timeout
            ) from exc
        return None


def _copy_reference(source: Path, destination: Path) -> None:
    if source.is_dir():
        shutil.copytree(source, destination, symlinks=True)
        return
    destination.mkdir(parents=True)
    shutil.copy2(source, destination / source.name)


def _discard(paths: WorkspacePaths, remove_root: bool) -> None:
    """Synchronously remove a half-built tree; runs on the failure path only."""
    if remove_root:
        shutil.rmtree(paths.root, ignore_errors=True)
        return
    for directory in paths.run_directories():
        shutil.rmtree(directory, ignore_errors=True)
