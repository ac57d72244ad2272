"""Conversion of tool definitions to provider-specific schemas.

Tools are defined once in a provider-neutral form (name, description and a
JSON Schema for the parameters). Before a model invocation they are
converted to the format the configured backend expects:

- ``openai``: Chat Completions ``{"type": "function", "function": {...}}``
- ``openai-responses``: Responses API ``{"type": "function", "name": ...}``
- ``claude``: ``{"name", "description", "input_schema"}``
- ``gemini``: one ``{"functionDeclarations": [...]}`` entry with
  upper-case Gemini types
"""

from typing import Any, Literal

from agentcore.llm.models import ToolDefinition
from agentcore.logging import get_logger

logger = get_logger("agentcore.llm.tools")

Provider = Literal["openai", "openai-responses", "claude", "gemini"]

SUPPORTED_PROVIDERS: tuple[str, ...] = ("openai", "openai-responses", "claude", "gemini")

_GEMINI_TYPES = {
    "string": "STRING",
    "number": "NUMBER",
    "integer": "INTEGER",
    "boolean": "BOOLEAN",
    "array": "ARRAY",
    "object": "OBJECT",
}


def ensure_valid_schema(schema: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a parameter schema to an object schema.

    Args:
        schema: JSON Schema (may be None or partial)

    Returns:
        dict: Schema with type, properties and required set
    """
    if not isinstance(schema, dict):
        return {"type": "object", "properties": {}, "required": []}

    result = {
        "type": schema.get("type") or "object",
        "properties": schema.get("properties") or {},
        "required": schema.get("required") or [],
    }
    if "additionalProperties" in schema:
        result["additionalProperties"] = schema["additionalProperties"]
    return result


def to_gemini_schema(schema: dict[str, Any] | None) -> dict[str, Any]:
    """Convert a JSON Schema to the subset Gemini accepts."""
    if not isinstance(schema, dict):
        return {"type": "OBJECT", "properties": {}}

    result: dict[str, Any] = {
        "type": _GEMINI_TYPES.get(schema.get("type") or "object", "STRING"),
        "properties": {
            key: _gemini_property(value) for key, value in (schema.get("properties") or {}).items()
        },
    }
    if schema.get("required"):
        result["required"] = schema["required"]
    return result


def _gemini_property(prop: dict[str, Any]) -> dict[str, Any]:
    prop_type = prop.get("type")
    result: dict[str, Any] = {"type": _GEMINI_TYPES.get(prop_type, "STRING")}

    if prop.get("description"):
        result["description"] = prop["description"]
    if prop.get("enum"):
        result["enum"] = prop["enum"]
    if prop_type == "array" and prop.get("items"):
        result["items"] = _gemini_property(prop["items"])
    if prop_type == "object" and prop.get("properties"):
        result["properties"] = {
            key: _gemini_property(value) for key, value in prop["properties"].items()
        }
        if prop.get("required"):
            result["required"] = prop["required"]

    return result


def convert_tools(tools: list[ToolDefinition], provider: str) -> list[dict[str, Any]]:
    """Convert tool definitions to a provider's tool schema list.

    Args:
        tools: Provider-neutral tool definitions
        provider: One of SUPPORTED_PROVIDERS

    Returns:
        list[dict]: Tool schemas (empty for no tools or an unknown provider)
    """
    if not tools:
        return []

    if provider == "openai":
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": ensure_valid_schema(tool.parameters),
                },
            }
            for tool in tools
        ]

    if provider == "openai-responses":
        return [
            {
                "type": "function",
                "name": tool.name,
                "description": tool.description,
                "parameters": ensure_valid_schema(tool.parameters),
            }
            for tool in tools
        ]

    if provider == "claude":
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": ensure_valid_schema(tool.parameters),
            }
            for tool in tools
        ]

    if provider == "gemini":
        return [
            {
                "functionDeclarations": [
                    {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": to_gemini_schema(tool.parameters),
                    }
                    for tool in tools
                ]
            }
        ]

    logger.warning("Unsupported tool schema provider", provider=provider)
    return []
