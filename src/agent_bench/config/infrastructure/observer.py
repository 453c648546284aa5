"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, agent_type: str, num_evaluators: int) -> None:
        self._log.info(
            "config.loaded",
            name=name,
            agent_type=agent_type,
            num_evaluators=num_evaluators,
        )

    def config_workspace_retained_warning(self, workspace_dir: str) -> None:
        self._log.warning(
            "config.workspace_retained_warning",
            workspace_dir=workspace_dir,
            message="keep_workspace is set; run directories will accumulate on disk",
        )
