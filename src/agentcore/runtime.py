"""Composition root for the agent execution core.

Everything is wired explicitly here; components never look each other up
through globals. An application builds one Runtime at startup and passes
its parts to whoever needs them.
"""

from pydantic import BaseModel, ConfigDict

from agentcore.agent.admission import should_use_agent
from agentcore.agent.loop import ReActLoop, ReasoningLoop
from agentcore.agent.orchestrator import Orchestrator
from agentcore.config import Settings, get_settings
from agentcore.llm.invoker import ModelInvoker
from agentcore.logging import get_logger
from agentcore.memory.store import MemoryStore
from agentcore.tools.builtin import BuiltinTools, CodeRunner, RagProvider, SearchProvider
from agentcore.tools.dispatcher import ExternalToolExecutor, ToolDispatcher

logger = get_logger("agentcore.runtime")


class Runtime(BaseModel):
    """The wired services of one process."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: Settings
    memory: MemoryStore
    loop: ReasoningLoop
    dispatcher: ToolDispatcher
    orchestrator: Orchestrator

    def should_use_agent(self, message: str) -> bool:
        """Admission heuristic gated by the configured feature flag."""
        return should_use_agent(message, enabled=self.settings.agent_enabled)

    async def start(self) -> None:
        """Initialize persisted memory."""
        await self.memory.initialize()

    async def shutdown(self) -> None:
        """Stop any active run and flush memory."""
        self.orchestrator.stop_agent()
        await self.memory.close()


def build_runtime(
    invoker: ModelInvoker,
    settings: Settings | None = None,
    memory: MemoryStore | None = None,
    loop: ReasoningLoop | None = None,
    search_provider: SearchProvider | None = None,
    rag_provider: RagProvider | None = None,
    code_runner: CodeRunner | None = None,
    external_tools: ExternalToolExecutor | None = None,
) -> Runtime:
    """Build the agent services.

    Args:
        invoker: Model invocation collaborator
        settings: Settings (global settings if None)
        memory: Memory store (built from settings if None)
        loop: Reasoning loop (a ReActLoop over the memory store if None)
        search_provider: Backend of the web_search built-in
        rag_provider: Backend of the rag_search built-in
        code_runner: Backend of the code_execute built-in
        external_tools: Collaborator for tools not known to the core

    Returns:
        Runtime: Wired services (memory not yet initialized; call start())
    """
    settings = settings or get_settings()
    memory = memory or MemoryStore.from_settings(settings)
    loop = loop or ReActLoop(memory)

    dispatcher = ToolDispatcher(
        builtins=BuiltinTools(
            search_provider=search_provider,
            rag_provider=rag_provider,
            code_runner=code_runner,
        ),
        external=external_tools,
    )

    orchestrator = Orchestrator(
        invoker=invoker,
        memory=memory,
        loop=loop,
        dispatcher=dispatcher,
        settings=settings,
    )

    logger.debug(
        "Runtime built",
        mode=settings.agent_default_mode,
        provider=settings.model_provider,
    )

    return Runtime(
        settings=settings,
        memory=memory,
        loop=loop,
        dispatcher=dispatcher,
        orchestrator=orchestrator,
    )
