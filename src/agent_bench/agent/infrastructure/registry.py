"""AgentAdapterRegistry — maps AgentConfig.type to an adapter factory."""

from collections.abc import Callable

from agent_bench.agent.domain.adapter import AgentAdapter
from agent_bench.agent.infrastructure.claude_sdk import ClaudeAgentSDKAdapter
from agent_bench.agent.infrastructure.command import CommandAgentAdapter
from agent_bench.agent.infrastructure.errors import AgentTypeNotSupportedError
from agent_bench.config.domain.agent import AgentConfig

type AgentAdapterFactory = Callable[[AgentConfig], AgentAdapter]


class AgentAdapterRegistry:
    """Name-keyed adapter factories, populated once at startup."""

    def __init__(self, factories: dict[str, AgentAdapterFactory] | None = None) -> None:
        self._factories: dict[str, AgentAdapterFactory] = dict(factories or {})

    def register(self, agent_type: str, factory: AgentAdapterFactory) -> None:
        self._factories[agent_type] = factory

    def types(self) -> list[str]:
        return sorted(self._factories)

    def create(self, config: AgentConfig) -> AgentAdapter:
        """Build the adapter for ``config.type``.

        Raises:
            AgentTypeNotSupportedError: if no factory is registered for the type.
        """
        factory = self._factories.get(config.type)
        if factory is None:
            raise AgentTypeNotSupportedError(agent_type=config.type, known_types=self.types())
        return factory(config)


def create_default_agent_registry() -> AgentAdapterRegistry:
    return AgentAdapterRegistry(
        factories={
            CommandAgentAdapter.agent_type: CommandAgentAdapter,
            ClaudeAgentSDKAdapter.agent_type: ClaudeAgentSDKAdapter,
        }
    )
