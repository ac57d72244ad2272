"""Tests for the built-in fallback tools."""

import pytest

from agentcore.tools import BUILTIN_TOOL_NAMES, BuiltinTools, CodeRunner, RagProvider, SearchProvider


class FakeSearch(SearchProvider):
    async def search(self, query):
        return [{"title": "Result", "query": query}]


class FailingSearch(SearchProvider):
    async def search(self, query):
        raise ConnectionError("search backend down")


class FakeRag(RagProvider):
    async def search(self, query):
        return {"sources": ["handbook.pdf"], "context": "Refunds take 5 days."}


class FakeRunner(CodeRunner):
    async def run(self, code, language):
        return f"{language}: ran {len(code)} chars"


class TestBuiltinTools:
    """Test the four always-available tools."""

    def test_all_builtins_resolvable(self):
        """Test that every built-in name resolves."""
        builtins = BuiltinTools()

        assert [tool.name for tool in builtins.list_tools()] == list(BUILTIN_TOOL_NAMES)
        assert builtins.get("unknown") is None

    def test_default_tools(self):
        """Test the tools offered when a run supplies none."""
        assert [tool.name for tool in BuiltinTools().default_tools()] == ["web_search", "ask_user"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name,params",
        [
            ("web_search", {"query": "q"}),
            ("rag_search", {"query": "q"}),
            ("code_execute", {"code": "print(1)"}),
        ],
    )
    async def test_missing_collaborator(self, name, params):
        """Test that tools without a backend report themselves unavailable."""
        result = await BuiltinTools().get(name).run(params)

        assert result["success"] is False
        assert "not available" in result["error"]

    @pytest.mark.asyncio
    async def test_web_search(self):
        result = await BuiltinTools(search_provider=FakeSearch()).web_search({"query": "python"})

        assert result == {"success": True, "query": "python", "results": [{"title": "Result", "query": "python"}]}

    @pytest.mark.asyncio
    async def test_web_search_failure(self):
        result = await BuiltinTools(search_provider=FailingSearch()).web_search({"query": "python"})

        assert result == {"success": False, "error": "search backend down"}

    @pytest.mark.asyncio
    async def test_rag_search(self):
        result = await BuiltinTools(rag_provider=FakeRag()).rag_search({"query": "refund"})

        assert result["sources"] == ["handbook.pdf"]
        assert result["context"] == "Refunds take 5 days."

    @pytest.mark.asyncio
    async def test_code_execute_defaults_to_python(self):
        result = await BuiltinTools(code_runner=FakeRunner()).code_execute({"code": "print(1)"})

        assert result == {"success": True, "language": "python", "output": "python: ran 8 chars"}

    @pytest.mark.asyncio
    async def test_ask_user(self):
        """Test that ask_user hands the question back to the caller."""
        result = await BuiltinTools().ask_user({"question": "Which city?"})

        assert result == {"success": True, "needs_user_input": True, "question": "Which city?"}
