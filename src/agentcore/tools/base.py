"""Base infrastructure for agent tools.

This module provides the tool specification handed to an agent run, the
result model tools may return, and the normalization that gives every tool
invocation the same ``{"success": ...}`` result shape.
"""

import inspect
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentcore.llm.models import ToolDefinition
from agentcore.logging import get_logger

logger = get_logger("agentcore.tools.base")


class ToolExecutionError(Exception):
    """Exception raised when a tool implementation fails."""

    def __init__(self, tool_name: str, message: str):
        """Initialize with tool name.

        Args:
            tool_name: Name of the failing tool
            message: Description of the failure
        """
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' failed: {message}")


class ToolResult(BaseModel):
    """Result from tool execution.

    Contains the execution result, success status, error information,
    and metadata about the execution.
    """

    success: bool = Field(..., description="Whether the tool executed successfully")
    data: Any = Field(default=None, description="The actual result data")
    error: str | None = Field(default=None, description="Error message if failed")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Execution metadata (time, etc.)",
    )

    @classmethod
    def success_result(cls, data: Any, **metadata: Any) -> "ToolResult":
        """Create a successful result.

        Args:
            data: The result data
            **metadata: Additional metadata

        Returns:
            ToolResult: Successful tool result
        """
        return cls(success=True, data=data, error=None, metadata=metadata)

    @classmethod
    def error_result(cls, error: str, **metadata: Any) -> "ToolResult":
        """Create an error result.

        Args:
            error: Error message
            **metadata: Additional metadata

        Returns:
            ToolResult: Error tool result
        """
        return cls(success=False, data=None, error=error, metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        """Uniform dictionary form: ``{"success": True, "result": ...}`` or
        ``{"success": False, "error": ...}``."""
        if self.success:
            return {"success": True, "result": self.data}
        return {"success": False, "error": self.error or "Unknown error"}

    def __str__(self) -> str:
        """String representation of the result."""
        if self.success:
            return f"Success: {self.data}"
        else:
            return f"Error: {self.error}"


def normalize_tool_result(value: Any) -> dict[str, Any]:
    """Bring any tool return value into the uniform result shape.

    Dictionaries that already carry a ``success`` key pass through unchanged;
    ToolResult instances are converted; anything else is wrapped as
    ``{"success": True, "result": value}``.

    Args:
        value: Raw value returned by a tool

    Returns:
        dict: Result with a boolean ``success`` key
    """
    if isinstance(value, ToolResult):
        return value.to_dict()
    if isinstance(value, dict) and "success" in value:
        return value
    return {"success": True, "result": value}


class ToolSpec(BaseModel):
    """A tool offered to an agent run.

    The execute callable receives the parameter dictionary and may be a
    plain function or a coroutine function. It may raise; failures are
    contained by run().

    Example:
        >>> async def search(params):
        ...     return {"success": True, "hits": ["..."]}
        >>> spec = ToolSpec(
        ...     name="web_search",
        ...     description="Search the web",
        ...     parameters={"type": "object", "properties": {"query": {"type": "string"}}},
        ...     execute=search,
        ... )
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str = Field(..., description="Tool name the model refers to")
    description: str = Field(default="", description="What the tool does")
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema for the parameters",
    )
    execute: Callable[[dict[str, Any]], Any] | None = Field(
        default=None,
        description="Implementation called with the parameter dictionary",
    )

    def to_definition(self) -> ToolDefinition:
        """Provider-neutral definition sent to the model."""
        return ToolDefinition(name=self.name, description=self.description, parameters=self.parameters)

    async def call(self, params: dict[str, Any]) -> Any:
        """Invoke the implementation and return its raw value.

        Raises:
            ToolExecutionError: If the tool has no implementation or it raises
        """
        if self.execute is None:
            raise ToolExecutionError(self.name, "tool has no implementation")

        try:
            value = self.execute(params)
            if inspect.isawaitable(value):
                value = await value
            return value
        except ToolExecutionError:
            raise
        except Exception as e:
            raise ToolExecutionError(self.name, f"{type(e).__name__}: {e}") from e

    async def run(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run the tool with error containment.

        Args:
            params: Parameters from the model

        Returns:
            dict: Uniform result; failures become ``{"success": False, "error": ...}``
        """
        start_time = time.perf_counter()

        try:
            result = normalize_tool_result(await self.call(params))
        except ToolExecutionError as e:
            logger.warning("Tool execution failed", tool_name=self.name, error=str(e))
            return {"success": False, "error": str(e)}

        logger.debug(
            "Tool executed",
            tool_name=self.name,
            success=result.get("success"),
            execution_time_s=f"{time.perf_counter() - start_time:.3f}",
        )
        return result

    def __repr__(self) -> str:
        """String representation of the tool."""
        return f"<ToolSpec name='{self.name}'>"
