"""Model invocation contract and tool schema conversion.

This module defines the messages and tool calls exchanged with a language
model, the injected ``ModelInvoker`` interface, and the conversion of tool
definitions to each supported provider's schema format.
"""

from agentcore.llm.invoker import (
    InvokeOptions,
    ModelInvoker,
    to_model_response,
)
from agentcore.llm.models import (
    ChatMessage,
    ModelResponse,
    ToolCall,
    ToolDefinition,
    ToolFunction,
)
from agentcore.llm.tools import (
    SUPPORTED_PROVIDERS,
    convert_tools,
    ensure_valid_schema,
    to_gemini_schema,
)

__all__ = [
    # Invoker
    "InvokeOptions",
    "ModelInvoker",
    "to_model_response",
    # Models
    "ChatMessage",
    "ModelResponse",
    "ToolCall",
    "ToolDefinition",
    "ToolFunction",
    # Tools
    "SUPPORTED_PROVIDERS",
    "convert_tools",
    "ensure_valid_schema",
    "to_gemini_schema",
]
