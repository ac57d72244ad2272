"""Tests for the ReAct reasoning loop."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from agentcore.agent import AgentError, EventKind, LoopPhase, ReActLoop, parse_action
from agentcore.memory import MemoryStore, MemoryType


def scripted_api_call(*replies: str):
    """api_call replaying replies (the last one repeats)."""
    remaining = list(replies)
    seen = []

    async def api_call(messages, signal=None):
        seen.append(messages)
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    api_call.seen = seen
    return api_call


@pytest.fixture
def loop() -> ReActLoop:
    """Loop over an in-memory store."""
    return ReActLoop(MemoryStore())


class TestParseAction:
    """Test parsing free-text model replies."""

    def test_final_answer(self):
        """Test that a Final Answer completes the run."""
        action = parse_action("Thought: I know it\nFinal Answer: Tokyo is sunny")

        assert action["type"] == "complete"
        assert action["response"] == "Tokyo is sunny"

    def test_final_answer_multiline(self):
        """Test that everything after Final Answer is the response."""
        action = parse_action("Final Answer: line one\nline two")

        assert action["response"] == "line one\nline two"

    def test_action_with_json_brackets(self):
        """Test Action: tool[json]."""
        action = parse_action('Thought: search\nAction: web_search[{"query": "weather Tokyo"}]')

        assert action["type"] == "tool_call"
        assert action["tool_name"] == "web_search"
        assert action["parameters"] == {"query": "weather Tokyo"}

    def test_action_input_line(self):
        """Test Action plus an Action Input line."""
        action = parse_action('Action: rag_search\nAction Input: {"query": "refund policy"}')

        assert action["tool_name"] == "rag_search"
        assert action["parameters"] == {"query": "refund policy"}

    def test_non_json_parameters(self):
        """Test that non-JSON parameters are wrapped as input."""
        action = parse_action("Action: calculator[2 + 2]")

        assert action["parameters"] == {"input": "2 + 2"}

    def test_tool_line(self):
        """Test the Tool: name shorthand."""
        action = parse_action("I will use a tool.\nTool: ask_user")

        assert action["type"] == "tool_call"
        assert action["tool_name"] == "ask_user"
        assert action["parameters"] == {}

    def test_plain_text_is_a_response(self):
        """Test that anything else is a direct response."""
        action = parse_action("Tools are not needed here, the answer is 4.")

        assert action["type"] == "respond"
        assert action["response"].startswith("Tools are")

    def test_final_answer_wins_over_action(self):
        """Test precedence of Final Answer."""
        action = parse_action("Action: web_search[{}]\nFinal Answer: done")

        assert action["type"] == "complete"


class TestReActLoop:
    """Test the observe/think/act/result cycle."""

    @pytest.mark.asyncio
    async def test_tool_then_answer(self, loop):
        """Test a tool call followed by a final answer."""
        api_call = scripted_api_call('Action: web_search[{"query": "X"}]', "Final Answer: X is big")
        tool_executor = AsyncMock(return_value={"success": True, "results": ["hit"]})

        result = await loop.execute_loop("research X", {}, [], 5, api_call, tool_executor)

        assert result.success is True
        assert len(result.iterations) == 2
        assert result.result == {"success": True, "response": "X is big"}
        tool_executor.assert_awaited_once_with("web_search", {"query": "X"})
        assert result.iterations[0].result["output"] == {"success": True, "results": ["hit"]}
        assert result.iterations[1].is_complete is True

    @pytest.mark.asyncio
    async def test_plain_response_ends_loop(self, loop):
        """Test that a direct response ends the run."""
        result = await loop.execute_loop("hi", {}, [], 5, scripted_api_call("Hello there"), AsyncMock())

        assert result.success is True
        assert len(result.iterations) == 1
        assert result.result == {"success": True, "response": "Hello there"}

    @pytest.mark.asyncio
    async def test_max_iterations(self, loop):
        """Test that a model that never answers stops at the ceiling."""
        tool_executor = AsyncMock(return_value={"success": True})

        result = await loop.execute_loop(
            "g", {}, [], 3, scripted_api_call("Action: web_search[{}]"), tool_executor
        )

        assert result.success is False
        assert len(result.iterations) == 3
        assert result.result["success"] is False
        assert tool_executor.await_count == 3

    @pytest.mark.asyncio
    async def test_tool_failure_is_recorded(self, loop):
        """Test that a raising tool executor becomes a failed result."""
        tool_executor = AsyncMock(side_effect=RuntimeError("network down"))

        result = await loop.execute_loop(
            "g", {}, [], 5, scripted_api_call("Action: web_search[{}]", "Final Answer: gave up"), tool_executor
        )

        assert result.success is True
        assert result.iterations[0].result == {
            "success": False,
            "tool_name": "web_search",
            "error": "network down",
        }

    @pytest.mark.asyncio
    async def test_model_failure_fails_the_run(self, loop):
        """Test that a model error ends the run with a failed result."""

        async def api_call(messages, signal=None):
            raise RuntimeError("model offline")

        errors = []
        loop.events.on(EventKind.ERROR, errors.append)

        result = await loop.execute_loop("g", {}, [], 5, api_call, AsyncMock())

        assert result.success is False
        assert result.error == "model offline"
        assert errors == [{"error": "model offline"}]
        assert loop.is_running is False

    @pytest.mark.asyncio
    async def test_observation_includes_context_and_results(self, loop):
        """Test what the model is shown each turn."""
        api_call = scripted_api_call("Action: web_search[{}]", "Final Answer: ok")
        tool_executor = AsyncMock(return_value={"success": True, "results": ["hit"]})

        result = await loop.execute_loop("g", {"user": "alice"}, [], 5, api_call, tool_executor)

        second_observation = result.iterations[1].observation
        assert second_observation["current_state"] == {"user": "alice"}
        assert second_observation["iteration"] == 2
        assert second_observation["previous_results"][0]["tool_name"] == "web_search"

        # replayed history and the think prompt follow the system prompt
        messages = api_call.seen[1]
        assert messages[0].role == "system"
        assert messages[-1].role == "user"
        assert messages[-1].content.startswith("Task: g")

    @pytest.mark.asyncio
    async def test_results_are_important(self, loop):
        """Test that results are flagged for promotion."""
        await loop.execute_loop("g", {}, [], 5, scripted_api_call("Final Answer: ok"), AsyncMock())

        results = loop.memory.get_short_term_context(10, MemoryType.RESULT)
        assert results[0].metadata == {"important": True}

    @pytest.mark.asyncio
    async def test_events(self, loop):
        """Test the event sequence of a one-iteration run."""
        kinds = []
        for kind in EventKind:
            loop.events.on(kind, lambda data, kind=kind: kinds.append(kind))

        await loop.execute_loop("g", {}, [], 5, scripted_api_call("Final Answer: ok"), AsyncMock())

        assert kinds == [
            EventKind.START,
            EventKind.OBSERVE,
            EventKind.THINK,
            EventKind.ACT,
            EventKind.RESULT,
            EventKind.ITERATION,
            EventKind.COMPLETE,
        ]

    @pytest.mark.asyncio
    async def test_abort_stops_before_next_iteration(self, loop):
        """Test that abort() takes effect at the next checkpoint."""
        signals = []

        async def api_call(messages, signal=None):
            signals.append(signal)
            loop.abort()
            return "Action: web_search[{}]"

        result = await loop.execute_loop("g", {}, [], 5, api_call, AsyncMock(return_value={"success": True}))

        assert result.success is False
        assert result.error == "Loop was aborted"
        assert len(result.iterations) == 1
        assert signals[0].is_cancelled is True

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, loop):
        """Test that a paused loop waits until resumed."""
        events = []
        loop.events.on(EventKind.PAUSE, lambda data: events.append("pause"))
        loop.events.on(EventKind.RESUME, lambda data: events.append("resume"))

        calls = {"count": 0}

        async def api_call(messages, signal=None):
            calls["count"] += 1
            if calls["count"] == 1:
                loop.pause()
                asyncio.get_running_loop().call_later(0.01, loop.resume)
                return "Action: web_search[{}]"
            return "Final Answer: resumed"

        result = await loop.execute_loop("g", {}, [], 5, api_call, AsyncMock(return_value={"success": True}))

        assert result.success is True
        assert events == ["pause", "resume"]
        assert loop.is_paused is False

    @pytest.mark.asyncio
    async def test_rejects_concurrent_runs(self, loop):
        """Test that a loop runs one task at a time."""
        release = asyncio.Event()

        async def slow_call(messages, signal=None):
            await release.wait()
            return "Final Answer: ok"

        first = asyncio.create_task(loop.execute_loop("a", {}, [], 5, slow_call, AsyncMock()))
        await asyncio.sleep(0)

        with pytest.raises(AgentError):
            await loop.execute_loop("b", {}, [], 5, slow_call, AsyncMock())

        release.set()
        assert (await first).success is True

    @pytest.mark.asyncio
    async def test_state_after_run(self, loop):
        """Test that the loop is idle after a run."""
        await loop.execute_loop("g", {}, [], 5, scripted_api_call("Final Answer: ok"), AsyncMock())

        state = loop.get_current_state()
        assert state.phase == LoopPhase.IDLE
        assert state.is_running is False
        assert state.iteration == 1
        assert len(loop.get_iteration_history()) == 1

    def test_control_when_idle(self, loop):
        """Test that pause/resume/abort are no-ops when idle."""
        loop.pause()
        loop.resume()
        loop.abort()

        assert loop.is_paused is False
        assert loop.is_running is False
