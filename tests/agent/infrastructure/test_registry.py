"""Tests for AgentAdapterRegistry."""

import pytest

from agent_bench.agent.infrastructure.claude_sdk import ClaudeAgentSDKAdapter
from agent_bench.agent.infrastructure.command import CommandAgentAdapter
from agent_bench.agent.infrastructure.errors import AgentTypeNotSupportedError
from agent_bench.agent.infrastructure.registry import (
    AgentAdapterRegistry,
    create_default_agent_registry,
)
from agent_bench.config.domain.agent import AgentConfig
from tests.agent.fake_adapter import FakeAgentAdapter


class TestDefaultRegistry:
    """The default registry knows the built-in adapters."""

    def test_lists_builtin_types(self) -> None:
        assert create_default_agent_registry().types() == ["claude_code_sdk", "command"]

    def test_creates_command_adapter(self) -> None:
        adapter = create_default_agent_registry().create(AgentConfig(type="command"))
        assert isinstance(adapter, CommandAgentAdapter)

    def test_creates_sdk_adapter(self) -> None:
        adapter = create_default_agent_registry().create(
            AgentConfig(type="claude_code_sdk", model="claude-sonnet-4-5")
        )
        assert isinstance(adapter, ClaudeAgentSDKAdapter)

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(AgentTypeNotSupportedError) as exc_info:
            create_default_agent_registry().create(AgentConfig(type="mystery"))
        assert "'mystery'" in str(exc_info.value)
        assert "claude_code_sdk, command" in str(exc_info.value)


class TestRegister:
    """Adapters registered at runtime are created like the built-ins."""

    def test_registered_factory_is_used(self) -> None:
        fake = FakeAgentAdapter()
        registry = AgentAdapterRegistry()
        registry.register("fake", lambda config: fake)

        assert registry.create(AgentConfig(type="fake")) is fake
        assert registry.types() == ["fake"]

    def test_empty_registry_has_no_types(self) -> None:
        with pytest.raises(AgentTypeNotSupportedError):
            AgentAdapterRegistry().create(AgentConfig(type="command"))
