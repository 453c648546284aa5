"""Observer port for the config domain — defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, name: str, agent_type: str, num_evaluators: int) -> None: ...

    def config_workspace_retained_warning(self, workspace_dir: str) -> None: ...
