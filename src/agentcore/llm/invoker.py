"""Model invocation contract.

The agent core never talks to a language model provider directly. Callers
inject a ``ModelInvoker``: an object with an async ``invoke`` method that
sends a transcript (plus provider tool schemas) to whichever backend is
configured. Network timeouts and retries are the invoker's responsibility.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentcore.llm.models import ChatMessage, ModelResponse


class InvokeOptions(BaseModel):
    """Per-call options passed to a model invoker."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stream: bool = Field(default=False, description="Request a streamed reply")
    signal: Any = Field(default=None, description="Cancellation token to honor promptly")
    on_chunk: Callable[[str], None] | None = Field(
        default=None,
        description="Callback receiving streamed text chunks",
    )


class ModelInvoker(ABC):
    """Sends a message transcript to a language model backend."""

    @abstractmethod
    async def invoke(
        self,
        messages: list[ChatMessage],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        options: InvokeOptions | None = None,
    ) -> str | ModelResponse:
        """Invoke the model.

        Args:
            messages: Conversation transcript
            model: Model name
            tools: Tool schemas in the provider's format
            options: Streaming and cancellation options

        Returns:
            Plain text, or a ModelResponse carrying tool calls
        """
        pass


def to_model_response(raw: str | ModelResponse | dict[str, Any] | None) -> ModelResponse:
    """Normalize whatever an invoker returned into a ModelResponse.

    Args:
        raw: Plain text, a ModelResponse, or its dictionary form

    Returns:
        ModelResponse: Normalized response
    """
    if isinstance(raw, ModelResponse):
        return raw
    if raw is None:
        return ModelResponse()
    if isinstance(raw, str):
        return ModelResponse(content=raw)
    return ModelResponse.model_validate(raw)
