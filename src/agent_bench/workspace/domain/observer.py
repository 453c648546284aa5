"""Observer port for the workspace domain — defines events in domain language."""

from typing import Protocol


class WorkspaceObserver(Protocol):
    def workspace_creating(self, run_key: str, root: str, repo: str) -> None: ...

    def workspace_created(
        self,
        run_key: str,
        root: str,
        source_commit: str | None,
        has_expected: bool,
        duration_ms: int,
    ) -> None: ...

    def workspace_failed(self, run_key: str, reason: str) -> None: ...

    def workspace_cleaned(self, run_key: str, root: str) -> None: ...

    def workspace_cleanup_failed(self, run_key: str, reason: str) -> None: ...

    def workspace_retained(self, run_key: str, root: str) -> None: ...
