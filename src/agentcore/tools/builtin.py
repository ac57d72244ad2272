"""Built-in fallback tools.

Four tools are always resolvable, even when the run's tool list does not
contain them: ``web_search``, ``rag_search``, ``code_execute`` and
``ask_user``. The first three delegate to optional collaborators injected
by the application; when a collaborator is missing the tool reports itself
as unavailable instead of failing.
"""

from abc import ABC, abstractmethod
from typing import Any

from agentcore.logging import get_logger
from agentcore.tools.base import ToolSpec

logger = get_logger("agentcore.tools.builtin")

WEB_SEARCH = "web_search"
RAG_SEARCH = "rag_search"
CODE_EXECUTE = "code_execute"
ASK_USER = "ask_user"

BUILTIN_TOOL_NAMES: tuple[str, ...] = (WEB_SEARCH, RAG_SEARCH, CODE_EXECUTE, ASK_USER)


# ============================================================================
# Collaborator interfaces
# ============================================================================


class SearchProvider(ABC):
    """Answers web search queries."""

    @abstractmethod
    async def search(self, query: str) -> Any:
        """Search the web for query."""
        pass


class RagProvider(ABC):
    """Retrieves context from a document index."""

    @abstractmethod
    async def search(self, query: str) -> dict[str, Any]:
        """Search the index.

        Returns:
            dict: With ``sources`` and ``context`` keys
        """
        pass


class CodeRunner(ABC):
    """Executes code snippets in a sandbox."""

    @abstractmethod
    async def run(self, code: str, language: str) -> Any:
        """Execute code and return its output."""
        pass


# ============================================================================
# Built-in tools
# ============================================================================


class BuiltinTools:
    """The built-in tool set bound to its collaborators.

    Usage:
        builtins = BuiltinTools(search_provider=MySearch())
        spec = builtins.get("web_search")
        result = await spec.run({"query": "python 3.13 release"})
    """

    def __init__(
        self,
        search_provider: SearchProvider | None = None,
        rag_provider: RagProvider | None = None,
        code_runner: CodeRunner | None = None,
    ):
        """Initialize the built-in tools.

        Args:
            search_provider: Backend for web_search
            rag_provider: Backend for rag_search
            code_runner: Backend for code_execute
        """
        self.search_provider = search_provider
        self.rag_provider = rag_provider
        self.code_runner = code_runner

        self._specs = {
            WEB_SEARCH: ToolSpec(
                name=WEB_SEARCH,
                description="Search the web for up-to-date information. Provide a question or topic.",
                parameters={
                    "type": "object",
                    "properties": {"query": {"type": "string", "description": "Search query"}},
                    "required": ["query"],
                },
                execute=self.web_search,
            ),
            RAG_SEARCH: ToolSpec(
                name=RAG_SEARCH,
                description="Search the local document index for relevant context.",
                parameters={
                    "type": "object",
                    "properties": {"query": {"type": "string", "description": "Search query"}},
                    "required": ["query"],
                },
                execute=self.rag_search,
            ),
            CODE_EXECUTE: ToolSpec(
                name=CODE_EXECUTE,
                description="Execute a code snippet and return its output.",
                parameters={
                    "type": "object",
                    "properties": {
                        "language": {"type": "string", "description": "Programming language"},
                        "code": {"type": "string", "description": "Code to execute"},
                    },
                    "required": ["code"],
                },
                execute=self.code_execute,
            ),
            ASK_USER: ToolSpec(
                name=ASK_USER,
                description="Ask the user a question or request confirmation.",
                parameters={
                    "type": "object",
                    "properties": {
                        "question": {"type": "string", "description": "Question for the user"}
                    },
                    "required": ["question"],
                },
                execute=self.ask_user,
            ),
        }

    def get(self, name: str) -> ToolSpec | None:
        """Get a built-in tool by name."""
        return self._specs.get(name)

    def list_tools(self) -> list[ToolSpec]:
        """All built-in tools."""
        return list(self._specs.values())

    def default_tools(self) -> list[ToolSpec]:
        """Tools offered to the model when a run supplies none."""
        return [self._specs[WEB_SEARCH], self._specs[ASK_USER]]

    async def web_search(self, params: dict[str, Any]) -> dict[str, Any]:
        query = params.get("query", "")
        if self.search_provider is None:
            return {"success": False, "error": "Web search is not available"}

        try:
            results = await self.search_provider.search(query)
        except Exception as e:
            logger.warning("Web search failed", query=query, error=str(e))
            return {"success": False, "error": str(e)}

        return {"success": True, "query": query, "results": results}

    async def rag_search(self, params: dict[str, Any]) -> dict[str, Any]:
        query = params.get("query", "")
        if self.rag_provider is None:
            return {"success": False, "error": "RAG search is not available"}

        try:
            found = await self.rag_provider.search(query)
        except Exception as e:
            logger.warning("RAG search failed", query=query, error=str(e))
            return {"success": False, "error": str(e)}

        return {
            "success": True,
            "query": query,
            "sources": found.get("sources", []),
            "context": found.get("context", ""),
        }

    async def code_execute(self, params: dict[str, Any]) -> dict[str, Any]:
        language = params.get("language", "python")
        code = params.get("code", "")
        if self.code_runner is None:
            return {"success": False, "error": "Code execution is not available"}

        try:
            output = await self.code_runner.run(code, language)
        except Exception as e:
            logger.warning("Code execution failed", language=language, error=str(e))
            return {"success": False, "error": str(e)}

        return {"success": True, "language": language, "output": output}

    async def ask_user(self, params: dict[str, Any]) -> dict[str, Any]:
        """Hand the question back to the caller; the answer arrives as a new turn."""
        return {"success": True, "needs_user_input": True, "question": params.get("question", "")}
