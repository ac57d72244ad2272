"""Tests for wiring the agent services."""

import pytest

from agentcore.agent.loop import ReActLoop
from agentcore.agent.models import AgentMode, AgentOptions
from agentcore.llm import ModelInvoker
from agentcore.memory import MemoryStore
from agentcore.runtime import build_runtime
from agentcore.tools import SearchProvider


class EchoInvoker(ModelInvoker):
    """Invoker that always answers with a fixed final answer."""

    async def invoke(self, messages, model, tools=None, options=None):
        return "Final Answer: done"


class StaticSearch(SearchProvider):
    async def search(self, query):
        return ["hit"]


class TestBuildRuntime:
    """Test the composition root."""

    def test_wiring(self, test_settings):
        """Test that the parts share one memory store and settings."""
        runtime = build_runtime(EchoInvoker(), settings=test_settings)

        assert runtime.settings is test_settings
        assert isinstance(runtime.loop, ReActLoop)
        assert runtime.orchestrator.memory is runtime.memory
        assert runtime.orchestrator.dispatcher is runtime.dispatcher
        assert runtime.orchestrator.get_mode() == AgentMode(test_settings.agent_default_mode)
        assert runtime.memory.long_term_limit == test_settings.memory_long_term_limit

    def test_explicit_parts(self, test_settings):
        memory = MemoryStore()

        runtime = build_runtime(EchoInvoker(), settings=test_settings, memory=memory)

        assert runtime.memory is memory

    @pytest.mark.asyncio
    async def test_builtin_providers(self, test_settings):
        """Test that providers reach the built-in tools."""
        runtime = build_runtime(EchoInvoker(), settings=test_settings, search_provider=StaticSearch())

        result = await runtime.dispatcher.dispatch("web_search", {"query": "q"})

        assert result["results"] == ["hit"]

    def test_should_use_agent(self, test_settings):
        """Test that the feature flag gates the admission heuristic."""
        enabled = build_runtime(EchoInvoker(), settings=test_settings.model_copy(update={"agent_enabled": True}))
        disabled = build_runtime(EchoInvoker(), settings=test_settings.model_copy(update={"agent_enabled": False}))

        assert enabled.should_use_agent("複数のファイルを分析して") is True
        assert disabled.should_use_agent("複数のファイルを分析して") is False


class TestLifecycle:
    """Test start, run and shutdown."""

    @pytest.mark.asyncio
    async def test_start_run_shutdown(self, test_settings):
        """Test a full run against persisted memory."""
        runtime = build_runtime(EchoInvoker(), settings=test_settings)

        await runtime.start()
        assert runtime.memory.initialized is True

        result = await runtime.orchestrator.run_agent(
            "research X",
            AgentOptions(mode=AgentMode.REACT, max_iterations=3),
        )
        assert result.success is True

        await runtime.shutdown()

        reopened = MemoryStore.from_settings(test_settings)
        await reopened.initialize()
        try:
            assert [task.goal for task in reopened.get_task_history()] == ["research X"]
        finally:
            await reopened.close()
