"""Pytest fixtures for agent tests."""

from typing import Any

import pytest

from agentcore.agent.loop import ReActLoop
from agentcore.agent.orchestrator import Orchestrator
from agentcore.llm.invoker import InvokeOptions, ModelInvoker
from agentcore.llm.models import ChatMessage, ModelResponse
from agentcore.memory import MemoryStore
from agentcore.tools.base import ToolSpec
from agentcore.tools.dispatcher import ToolDispatcher


class ScriptedInvoker(ModelInvoker):
    """Model invoker replaying a script of replies.

    Each reply is a string, a ModelResponse, an exception to raise, or a
    callable receiving (messages, options) and returning one of those. The
    last reply repeats once the script runs out.
    """

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    async def invoke(
        self,
        messages: list[ChatMessage],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        options: InvokeOptions | None = None,
    ) -> str | ModelResponse:
        self.calls.append({"messages": list(messages), "model": model, "tools": tools, "options": options})

        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if callable(reply):
            reply = reply(messages, options)
        if isinstance(reply, Exception):
            raise reply

        if options is not None and options.stream and options.on_chunk and isinstance(reply, str):
            middle = len(reply) // 2
            options.on_chunk(reply[:middle])
            options.on_chunk(reply[middle:])
        return reply


@pytest.fixture
def web_search_tool() -> ToolSpec:
    """A web_search tool that always returns hits."""

    async def search(params):
        return {"success": True, "results": [f"result for {params.get('query')}"]}

    return ToolSpec(
        name="web_search",
        description="Search the web",
        parameters={"type": "object", "properties": {"query": {"type": "string"}}, "required": ["query"]},
        execute=search,
    )


@pytest.fixture
def make_orchestrator(test_settings):
    """Factory building an orchestrator that replays the given model replies.

    The scripted invoker is reachable as ``orchestrator.invoker`` (its
    ``calls`` list records every invocation).
    """

    def factory(
        *replies: Any,
        invoker: ModelInvoker | None = None,
        loop=None,
        memory: MemoryStore | None = None,
    ) -> Orchestrator:
        memory = memory or MemoryStore()
        return Orchestrator(
            invoker=invoker or ScriptedInvoker(*replies),
            memory=memory,
            loop=loop or ReActLoop(memory),
            dispatcher=ToolDispatcher(),
            settings=test_settings,
        )

    return factory
