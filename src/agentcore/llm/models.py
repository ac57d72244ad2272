"""Pydantic models for the model invocation contract.

These models describe what the agent core exchanges with a language model
backend: chat messages, tool calls requested by the model, tool definitions
sent to it, and the structured response of one invocation.
"""

import json
import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Tool-related models
# =============================================================================


class ToolFunction(BaseModel):
    """Function specification for a tool call.

    Represents the function name and arguments when the LLM decides to call a tool.
    """

    name: str = Field(..., description="Name of the function to call")
    arguments: dict[str, Any] = Field(
        default_factory=dict,
        description="Arguments to pass to the function",
    )

    @field_validator("arguments", mode="before")
    @classmethod
    def parse_arguments(cls, v: Any) -> dict[str, Any]:
        """Accept JSON-encoded argument strings (OpenAI style)."""
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except json.JSONDecodeError:
                return {"input": v}
            return parsed if isinstance(parsed, dict) else {"input": parsed}
        return v


class ToolCall(BaseModel):
    """A tool call made by the LLM."""

    id: str = Field(
        default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}",
        description="Identifier pairing the call with its tool message",
    )
    function: ToolFunction = Field(..., description="Function to call")
    type: Literal["function"] = Field(default="function", description="Type of tool call")

    @property
    def name(self) -> str:
        """Name of the requested tool."""
        return self.function.name

    @property
    def arguments(self) -> dict[str, Any]:
        """Arguments of the requested tool."""
        return self.function.arguments


class ToolDefinition(BaseModel):
    """Provider-neutral definition of a tool offered to the LLM."""

    name: str = Field(..., description="Name of the tool")
    description: str = Field(default="", description="Human-readable description")
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema for the parameters",
    )


# =============================================================================
# Message models
# =============================================================================


class ChatMessage(BaseModel):
    """A message in a chat conversation."""

    role: Literal["system", "user", "assistant", "tool"] = Field(
        ...,
        description="Role of the message sender",
    )
    content: str = Field(default="", description="Text content of the message")
    tool_calls: list[ToolCall] = Field(
        default_factory=list,
        description="Tool calls made by the assistant (only for assistant messages)",
    )
    tool_call_id: str | None = Field(
        default=None,
        description="ID of the tool call a tool message responds to",
    )

    @field_validator("tool_calls", mode="before")
    @classmethod
    def validate_tool_calls(cls, v: Any) -> list[ToolCall]:
        """Ensure tool_calls is always a list."""
        if v is None:
            return []
        if isinstance(v, list):
            return v
        return [v]

    def to_wire(self) -> dict[str, Any]:
        """Dump the message in chat-completions wire format.

        Returns:
            dict: Message with JSON-encoded tool call arguments
        """
        result: dict[str, Any] = {
            "role": self.role,
            "content": self.content,
        }

        if self.tool_calls:
            result["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": tc.type,
                    "function": {
                        "name": tc.function.name,
                        "arguments": json.dumps(tc.function.arguments, ensure_ascii=False),
                    },
                }
                for tc in self.tool_calls
            ]

        if self.tool_call_id is not None:
            result["tool_call_id"] = self.tool_call_id

        return result

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        """Create a system message."""
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        """Create a user message."""
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls,
        content: str,
        tool_calls: list[ToolCall] | None = None,
    ) -> "ChatMessage":
        """Create an assistant message.

        Args:
            content: Assistant message content
            tool_calls: Optional tool calls made by the assistant

        Returns:
            ChatMessage: Assistant message
        """
        return cls(role="assistant", content=content, tool_calls=tool_calls or [])

    @classmethod
    def tool(cls, content: str, tool_call_id: str | None = None) -> "ChatMessage":
        """Create a tool response message.

        Args:
            content: Tool response content
            tool_call_id: ID of the tool call this responds to

        Returns:
            ChatMessage: Tool message
        """
        return cls(role="tool", content=content, tool_call_id=tool_call_id)


# =============================================================================
# Response models
# =============================================================================


class ModelResponse(BaseModel):
    """Structured result of one model invocation."""

    content: str = Field(default="", description="Text content of the reply")
    tool_calls: list[ToolCall] = Field(
        default_factory=list,
        description="Tool calls requested by the model",
    )

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: Any) -> str:
        """Treat a missing content as empty text."""
        return "" if v is None else v

    @field_validator("tool_calls", mode="before")
    @classmethod
    def validate_tool_calls(cls, v: Any) -> list[Any]:
        """Ensure tool_calls is always a list."""
        if v is None:
            return []
        return v if isinstance(v, list) else [v]

    @property
    def has_tool_calls(self) -> bool:
        """Check if the response contains tool calls."""
        return len(self.tool_calls) > 0
