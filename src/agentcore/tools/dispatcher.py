"""Tool dispatch through an ordered resolver chain.

A tool name is resolved by asking each resolver in turn:

1. the run's own tool list (a snapshot taken when the run starts)
2. the built-in tools
3. the external tool collaborator

The first resolver returning a ToolSpec wins. Whatever path is taken, the
caller receives a ``{"success": ...}`` dictionary; exceptions raised by tool
implementations never escape dispatch().
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from agentcore.logging import AsyncTimer, get_logger
from agentcore.tools.base import ToolSpec
from agentcore.tools.builtin import BuiltinTools

logger = get_logger("agentcore.tools.dispatcher")


class ExternalToolExecutor(ABC):
    """Executes tools owned by the host application."""

    @abstractmethod
    async def execute_tool(self, name: str, parameters: dict[str, Any]) -> Any:
        """Execute the named tool and return its raw result."""
        pass


# ============================================================================
# Resolvers
# ============================================================================


class ToolResolver(ABC):
    """One step of the resolver chain."""

    name: str

    @abstractmethod
    def resolve(self, tool_name: str) -> ToolSpec | None:
        """Return the tool for tool_name, or None if this step cannot."""
        pass


class RegistryResolver(ToolResolver):
    """Resolves tools from the run's tool list."""

    name = "registry"

    def __init__(self, tools: Sequence[ToolSpec]):
        self.tools = tuple(tools)

    def resolve(self, tool_name: str) -> ToolSpec | None:
        for tool in self.tools:
            if tool.name == tool_name and tool.execute is not None:
                return tool
        return None


class BuiltinResolver(ToolResolver):
    """Resolves the built-in fallback tools."""

    name = "builtin"

    def __init__(self, builtins: BuiltinTools):
        self.builtins = builtins

    def resolve(self, tool_name: str) -> ToolSpec | None:
        return self.builtins.get(tool_name)


class ExternalResolver(ToolResolver):
    """Resolves any remaining name to the external tool collaborator."""

    name = "external"

    def __init__(self, executor: ExternalToolExecutor | None):
        self.executor = executor

    def resolve(self, tool_name: str) -> ToolSpec | None:
        if self.executor is None:
            return None

        executor = self.executor

        async def execute(params: dict[str, Any]) -> dict[str, Any]:
            try:
                result = await executor.execute_tool(tool_name, params)
            except Exception as e:
                logger.error("External tool failed", tool_name=tool_name, error=str(e))
                return _unavailable(tool_name)
            return {"success": True, "result": result}

        return ToolSpec(name=tool_name, execute=execute)


def _unavailable(tool_name: str) -> dict[str, Any]:
    return {"success": False, "error": f'Tool "{tool_name}" is not available'}


# ============================================================================
# Dispatcher
# ============================================================================


class ToolDispatcher:
    """Resolves and runs tools with uniform results.

    Usage:
        dispatcher = ToolDispatcher(builtins=BuiltinTools()).with_tools(run_tools)
        result = await dispatcher.dispatch("web_search", {"query": "..."})
    """

    def __init__(
        self,
        builtins: BuiltinTools | None = None,
        external: ExternalToolExecutor | None = None,
        tools: Sequence[ToolSpec] = (),
    ):
        """Initialize the dispatcher.

        Args:
            builtins: Built-in tool set (a collaborator-less one if None)
            external: External tool collaborator (optional)
            tools: Tools of the current run
        """
        self.builtins = builtins or BuiltinTools()
        self.external = external
        self.tools: tuple[ToolSpec, ...] = tuple(tools)

        self.resolvers: list[ToolResolver] = [
            RegistryResolver(self.tools),
            BuiltinResolver(self.builtins),
            ExternalResolver(self.external),
        ]

    def with_tools(self, tools: Sequence[ToolSpec]) -> "ToolDispatcher":
        """Dispatcher for one run, holding a snapshot of its tool list."""
        return ToolDispatcher(builtins=self.builtins, external=self.external, tools=tools)

    def resolve(self, tool_name: str) -> ToolSpec | None:
        """Resolve a tool name through the resolver chain.

        Args:
            tool_name: Name requested by the model

        Returns:
            ToolSpec | None: The resolved tool, or None if no step knows it
        """
        for resolver in self.resolvers:
            tool = resolver.resolve(tool_name)
            if tool is not None:
                logger.debug("Tool resolved", tool_name=tool_name, resolver=resolver.name)
                return tool
        return None

    async def dispatch(self, tool_name: str, parameters: dict[str, Any] | None = None) -> dict[str, Any]:
        """Resolve and execute a tool.

        Args:
            tool_name: Name requested by the model
            parameters: Tool parameters

        Returns:
            dict: ``{"success": True, ...}`` or ``{"success": False, "error": ...}``
        """
        params = parameters or {}
        logger.info("Dispatching tool", tool_name=tool_name, arg_count=len(params))

        tool = self.resolve(tool_name)
        if tool is None:
            logger.warning("Tool not available", tool_name=tool_name)
            return _unavailable(tool_name)

        try:
            async with AsyncTimer(f"Tool.run({tool_name})", logger):
                return await tool.run(params)
        except Exception as e:
            logger.exception("Unexpected error executing tool", tool_name=tool_name)
            return {"success": False, "error": f"Unexpected error executing tool '{tool_name}': {e}"}

    def __call__(self, tool_name: str, parameters: dict[str, Any] | None = None):
        """Dispatch as a plain callable (the reasoning loop's tool executor)."""
        return self.dispatch(tool_name, parameters)
