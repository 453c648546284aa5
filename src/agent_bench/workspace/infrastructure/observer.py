"""Structlog implementation of the WorkspaceObserver port."""

import structlog


class StructlogWorkspaceObserver:
    """Logs workspace lifecycle events to structlog.

    Does NOT inherit from WorkspaceObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def workspace_creating(self, run_key: str, root: str, repo: str) -> None:
        self._log.info("workspace.creating", run_key=run_key, root=root, repo=repo)

    def workspace_created(
        self,
        run_key: str,
        root: str,
        source_commit: str | None,
        has_expected: bool,
        duration_ms: int,
    ) -> None:
        self._log.info(
            "workspace.created",
            run_key=run_key,
            root=root,
            source_commit=source_commit,
            has_expected=has_expected,
            duration_ms=duration_ms,
        )

    def workspace_failed(self, run_key: str, reason: str) -> None:
        self._log.error("workspace.failed", run_key=run_key, reason=reason)

    def workspace_cleaned(self, run_key: str, root: str) -> None:
        self._log.info("workspace.cleaned", run_key=run_key, root=root)

    def workspace_cleanup_failed(self, run_key: str, reason: str) -> None:
        self._log.warning("workspace.cleanup_failed", run_key=run_key, reason=reason)

    def workspace_retained(self, run_key: str, root: str) -> None:
        self._log.info("workspace.retained", run_key=run_key, root=root)
