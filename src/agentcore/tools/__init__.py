"""Tool specifications and dispatch for agent runs.

This module provides the tool specification handed to a run, the built-in
fallback tools, and the dispatcher that resolves tool names and contains
tool failures.
"""

from agentcore.tools.base import (
    ToolExecutionError,
    ToolResult,
    ToolSpec,
    normalize_tool_result,
)
from agentcore.tools.builtin import (
    BUILTIN_TOOL_NAMES,
    BuiltinTools,
    CodeRunner,
    RagProvider,
    SearchProvider,
)
from agentcore.tools.dispatcher import (
    BuiltinResolver,
    ExternalResolver,
    ExternalToolExecutor,
    RegistryResolver,
    ToolDispatcher,
    ToolResolver,
)

__all__ = [
    # Base
    "ToolSpec",
    "ToolResult",
    "ToolExecutionError",
    "normalize_tool_result",
    # Built-ins
    "BUILTIN_TOOL_NAMES",
    "BuiltinTools",
    "SearchProvider",
    "RagProvider",
    "CodeRunner",
    # Dispatch
    "ToolDispatcher",
    "ToolResolver",
    "RegistryResolver",
    "BuiltinResolver",
    "ExternalResolver",
    "ExternalToolExecutor",
]
