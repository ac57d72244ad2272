"""Tests for model invocation messages and responses."""

import json

from agentcore.llm import ChatMessage, ModelResponse, ToolCall, ToolFunction, to_model_response


class TestToolCall:
    """Test tool calls requested by the model."""

    def test_generated_id(self):
        """Test that a call without an id gets a generated one."""
        call = ToolCall(function=ToolFunction(name="web_search", arguments={"query": "X"}))

        assert call.id.startswith("call_")
        assert call.name == "web_search"
        assert call.arguments == {"query": "X"}
        assert call.type == "function"

    def test_explicit_id(self):
        assert ToolCall(id="call_abc", function={"name": "t"}).id == "call_abc"

    def test_json_string_arguments(self):
        """Test OpenAI-style JSON encoded arguments."""
        function = ToolFunction(name="t", arguments='{"a": 1}')

        assert function.arguments == {"a": 1}

    def test_invalid_argument_strings(self):
        """Test that non-object arguments are wrapped."""
        assert ToolFunction(name="t", arguments="not json").arguments == {"input": "not json"}
        assert ToolFunction(name="t", arguments="[1, 2]").arguments == {"input": [1, 2]}
        assert ToolFunction(name="t", arguments="").arguments == {}


class TestChatMessage:
    """Test chat messages."""

    def test_factories(self):
        assert ChatMessage.system("s").role == "system"
        assert ChatMessage.user("u").role == "user"
        assert ChatMessage.assistant("a").role == "assistant"

        tool_message = ChatMessage.tool("{}", tool_call_id="call_1")
        assert tool_message.role == "tool"
        assert tool_message.tool_call_id == "call_1"

    def test_to_wire(self):
        """Test the chat-completions wire format."""
        call = ToolCall(id="call_1", function={"name": "web_search", "arguments": {"query": "東京"}})
        message = ChatMessage.assistant("", tool_calls=[call])

        wire = message.to_wire()

        assert wire["role"] == "assistant"
        assert wire["tool_calls"][0]["id"] == "call_1"
        assert json.loads(wire["tool_calls"][0]["function"]["arguments"]) == {"query": "東京"}
        assert "tool_call_id" not in wire

    def test_single_tool_call_is_listed(self):
        call = ToolCall(function={"name": "t"})

        assert ChatMessage(role="assistant", tool_calls=call).tool_calls == [call]


class TestModelResponse:
    """Test normalizing invoker output."""

    def test_plain_text(self):
        response = to_model_response("hello")

        assert response.content == "hello"
        assert response.has_tool_calls is False

    def test_none(self):
        assert to_model_response(None).content == ""

    def test_dict_form(self):
        """Test a raw provider-like dictionary."""
        response = to_model_response(
            {
                "content": None,
                "tool_calls": [{"id": "call_9", "function": {"name": "web_search", "arguments": '{"query": "X"}'}}],
            }
        )

        assert response.content == ""
        assert response.has_tool_calls is True
        assert response.tool_calls[0].arguments == {"query": "X"}

    def test_passthrough(self):
        response = ModelResponse(content="x")

        assert to_model_response(response) is response
