"""Top-level controller of agent runs.

The Orchestrator owns the single-active-run rule, the cancellation token of
the current run and the choice between the two run modes:

- ReAct: the run is delegated to a ReasoningLoop; the orchestrator supplies
  model invocation and tool dispatch and relays the loop's events
- Function calling: the orchestrator drives model <-> tool iterations itself

Every run ends with an AgentResult and a TaskHistory record in memory.
"""

import json
from collections.abc import Callable
from datetime import datetime
from typing import Any

from agentcore.agent.cancellation import CancellationToken
from agentcore.agent.events import EventKind
from agentcore.agent.exceptions import ConcurrencyError, ModelInvocationError
from agentcore.agent.loop import ReasoningLoop
from agentcore.agent.models import (
    AgentMode,
    AgentOptions,
    AgentResult,
    AgentState,
    IterationRecord,
    RunState,
    clamp_iterations,
)
from agentcore.agent.prompts import build_fc_system_prompt
from agentcore.config import Settings
from agentcore.llm.invoker import InvokeOptions, ModelInvoker, to_model_response
from agentcore.llm.models import ChatMessage, ModelResponse
from agentcore.llm.tools import convert_tools
from agentcore.logging import AsyncTimer, bind_run_context, clear_run_context, get_logger
from agentcore.memory.models import MemoryType, TaskHistory, utc_now
from agentcore.memory.store import MemoryStore
from agentcore.tools.base import ToolSpec
from agentcore.tools.dispatcher import ToolDispatcher

logger = get_logger("agentcore.agent.orchestrator")


class Orchestrator:
    """Runs agent tasks in ReAct or function-calling mode.

    Usage:
        orchestrator = Orchestrator(invoker, memory, loop, dispatcher, settings)
        result = await orchestrator.run_agent(
            "research X",
            AgentOptions(mode=AgentMode.FUNCTION_CALLING, max_iterations=5),
        )
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        memory: MemoryStore,
        loop: ReasoningLoop,
        dispatcher: ToolDispatcher,
        settings: Settings,
    ):
        """Initialize the orchestrator.

        Args:
            invoker: Model invocation collaborator
            memory: Memory store shared with the reasoning loop
            loop: Reasoning loop for ReAct-mode runs
            dispatcher: Tool dispatcher (built-ins and external tools)
            settings: Settings providing defaults and the model configuration
        """
        self.invoker = invoker
        self.memory = memory
        self.loop = loop
        self.dispatcher = dispatcher
        self.settings = settings

        self._mode = AgentMode(settings.agent_default_mode)
        self._max_iterations = clamp_iterations(settings.agent_max_iterations)
        self._available_tools: list[ToolSpec] = dispatcher.builtins.default_tools()

        self._is_running = False
        self._run_state = RunState.IDLE
        self._last_outcome: RunState | None = None
        self._token: CancellationToken | None = None

    # ========================================================================
    # Running
    # ========================================================================

    async def run_agent(self, goal: str, options: AgentOptions | None = None) -> AgentResult:
        """Run an agent task to completion.

        Mid-run model and tool errors never raise: they are recorded as
        iterations, and an unrecoverable error is reported through
        options.on_error and a failed AgentResult.

        Args:
            goal: The task to accomplish
            options: Mode, iteration ceiling, tools, context and callbacks

        Returns:
            AgentResult: Terminal result of the run

        Raises:
            ConcurrencyError: If another run is active
        """
        if self._is_running:
            raise ConcurrencyError("An agent run is already in progress")

        # Claimed before the first await
        self._is_running = True
        self._run_state = RunState.RUNNING
        self._token = CancellationToken()
        token = self._token

        options = options or AgentOptions()
        subscriptions: list[tuple[EventKind, Callable]] = []
        start_time = utc_now()
        result: AgentResult | None = None

        try:
            mode = AgentMode(options.mode or self._mode)
            max_iterations = clamp_iterations(
                options.max_iterations if options.max_iterations is not None else self._max_iterations
            )
            tools = tuple(options.tools if options.tools is not None else self._available_tools)
            dispatcher = self.dispatcher.with_tools(tools)

            if mode == AgentMode.REACT:
                subscriptions = self._subscribe(options)

            bind_run_context(mode=str(mode))
            logger.info(
                "Agent run started",
                goal_preview=goal[:50],
                max_iterations=max_iterations,
                tool_count=len(tools),
            )

            if mode == AgentMode.REACT:
                result = await self._run_react(goal, options.context, list(tools), max_iterations, dispatcher, token)
            else:
                result = await self._run_function_calling(
                    goal, options.context, list(tools), max_iterations, dispatcher, token
                )

            if token.is_cancelled and not result.success:
                self._last_outcome = RunState.ABORTED
            else:
                self._last_outcome = RunState.COMPLETED if result.success else RunState.FAILED

            _call_safely(options.on_complete, result)
            logger.info(
                "Agent run finished",
                success=result.success,
                outcome=str(self._last_outcome),
                iterations=len(result.iterations),
            )
            return result

        except Exception as e:
            self._last_outcome = RunState.FAILED
            logger.exception("Agent run failed")
            _call_safely(options.on_error, e)

            result = AgentResult.failure(str(e), summary=self.memory.get_execution_summary())
            return result

        finally:
            self._record_task_history(goal, start_time, result)
            for kind, callback in subscriptions:
                self.loop.events.off(kind, callback)
            self._token = None
            self._is_running = False
            self._run_state = RunState.IDLE
            clear_run_context()

    def _subscribe(self, options: AgentOptions) -> list[tuple[EventKind, Callable]]:
        wiring = [
            (EventKind.OBSERVE, options.on_observe),
            (EventKind.THINK, options.on_think),
            (EventKind.ACT, options.on_act),
            (EventKind.RESULT, options.on_result),
        ]
        subscriptions = [(kind, callback) for kind, callback in wiring if callback is not None]
        for kind, callback in subscriptions:
            self.loop.events.on(kind, callback)
        return subscriptions

    async def _run_react(
        self,
        goal: str,
        context: dict[str, Any],
        tools: list[ToolSpec],
        max_iterations: int,
        dispatcher: ToolDispatcher,
        token: CancellationToken,
    ) -> AgentResult:
        async def api_call(messages: list[ChatMessage], signal: CancellationToken | None = None) -> str:
            return await self._call_model_streaming(messages, signal or token)

        return await self.loop.execute_loop(
            task=goal,
            context=context,
            tools=tools,
            max_iterations=max_iterations,
            api_call=api_call,
            tool_executor=dispatcher.dispatch,
        )

    async def _run_function_calling(
        self,
        goal: str,
        context: dict[str, Any],
        tools: list[ToolSpec],
        max_iterations: int,
        dispatcher: ToolDispatcher,
        token: CancellationToken,
    ) -> AgentResult:
        self.memory.initialize_working_memory(goal=goal)

        iterations: list[IterationRecord] = []
        is_complete = False
        final_result: dict[str, Any] | None = None

        tool_schemas = convert_tools([tool.to_definition() for tool in tools], self.settings.model_provider)
        messages = [ChatMessage.system(build_fc_system_prompt(tools))]
        if context:
            messages.append(
                ChatMessage.system(f"Context:\n{json.dumps(context, ensure_ascii=False, default=str)}")
            )
        messages.append(ChatMessage.user(goal))

        while not is_complete and self.memory.get_current_iteration() < max_iterations:
            if token.is_cancelled:
                logger.info("Function-calling run cancelled", iterations=len(iterations))
                return AgentResult(
                    success=False,
                    result=final_result,
                    error=token.reason,
                    iterations=iterations,
                    summary=self.memory.get_execution_summary(),
                )

            iteration = self.memory.increment_iteration()
            logger.debug("Function-calling iteration", iteration=iteration, max_iterations=max_iterations)

            try:
                response = await self._call_model_with_tools(messages, tool_schemas, token, iteration)

                if response.has_tool_calls:
                    for tool_call in response.tool_calls:
                        action = {
                            "type": "tool_call",
                            "tool_name": tool_call.name,
                            "parameters": tool_call.arguments,
                        }
                        self.memory.add_to_short_term(MemoryType.ACTION, action)

                        result = await dispatcher.dispatch(tool_call.name, tool_call.arguments)

                        self.memory.add_to_short_term(MemoryType.RESULT, result)
                        messages.append(ChatMessage.assistant("", tool_calls=[tool_call]))
                        messages.append(
                            ChatMessage.tool(
                                json.dumps(result, ensure_ascii=False, default=str),
                                tool_call_id=tool_call.id,
                            )
                        )
                        iterations.append(IterationRecord(index=iteration, action=action, result=result))
                else:
                    is_complete = True
                    final_result = {"success": True, "response": response.content}
                    iterations.append(
                        IterationRecord(
                            index=iteration,
                            action={"type": "complete"},
                            result=final_result,
                            is_complete=True,
                        )
                    )

            except Exception as e:
                logger.error("Function-calling iteration failed", iteration=iteration, error=str(e))
                iterations.append(
                    IterationRecord(index=iteration, action={"type": "error"}, result={"error": str(e)})
                )
                if token.is_cancelled:
                    raise

        if not is_complete:
            logger.warning("Function-calling run reached max iterations", max_iterations=max_iterations)

        return AgentResult(
            success=is_complete,
            result=final_result,
            iterations=iterations,
            summary=self.memory.get_execution_summary(),
        )

    async def _call_model_with_tools(
        self,
        messages: list[ChatMessage],
        tool_schemas: list[dict[str, Any]],
        token: CancellationToken,
        iteration: int,
    ) -> ModelResponse:
        try:
            async with AsyncTimer(f"Model call (iteration {iteration})", logger):
                raw = await self.invoker.invoke(
                    list(messages),
                    self.settings.model_name,
                    tool_schemas,
                    InvokeOptions(stream=False, signal=token),
                )
        except Exception as e:
            raise ModelInvocationError(f"Model invocation failed: {e}", iteration=iteration) from e
        return to_model_response(raw)

    async def _call_model_streaming(self, messages: list[ChatMessage], token: CancellationToken) -> str:
        chunks: list[str] = []

        try:
            async with AsyncTimer("Model call (streaming)", logger):
                raw = await self.invoker.invoke(
                    messages,
                    self.settings.model_name,
                    [],
                    InvokeOptions(stream=True, signal=token, on_chunk=chunks.append),
                )
        except Exception as e:
            raise ModelInvocationError(f"Model invocation failed: {e}") from e

        if chunks:
            return "".join(chunks)
        return to_model_response(raw).content

    def _record_task_history(self, goal: str, start_time: datetime, result: AgentResult | None) -> None:
        success = bool(result and result.success)
        if result is None:
            summary = "Run did not produce a result"
        elif result.error:
            summary = f"Failed: {result.error}"[:200]
        elif isinstance(result.result, dict) and result.result.get("response"):
            summary = str(result.result["response"])[:200]
        else:
            summary = "Completed" if success else "Did not complete"

        self.memory.add_task_history(
            TaskHistory(
                goal=goal,
                start_time=start_time,
                end_time=utc_now(),
                success=success,
                iterations=len(result.iterations) if result else 0,
                summary=summary,
            )
        )

    # ========================================================================
    # Control
    # ========================================================================

    def stop_agent(self) -> None:
        """Cancel the current run and abort the reasoning loop."""
        if self._is_running:
            logger.info("Stopping agent run")
            if self._token is not None:
                self._token.cancel("Run stopped by user")
            self.loop.abort()

    def pause_agent(self) -> None:
        """Pause the reasoning loop (function-calling runs cannot pause)."""
        if self._is_running:
            self.loop.pause()

    def resume_agent(self) -> None:
        """Resume a paused reasoning loop."""
        if self._is_running:
            self.loop.resume()

    def is_running(self) -> bool:
        """Whether a run is active."""
        return self._is_running

    def get_state(self) -> AgentState:
        """Snapshot of the orchestrator and its loop."""
        return AgentState(
            is_running=self._is_running,
            run_state=self._run_state,
            last_outcome=self._last_outcome,
            mode=self._mode,
            max_iterations=self._max_iterations,
            loop_state=self.loop.get_current_state(),
        )

    # ========================================================================
    # Mode and tool management
    # ========================================================================

    def set_mode(self, mode: AgentMode | str) -> None:
        """Set the default mode of future runs (unknown modes are ignored)."""
        try:
            self._mode = AgentMode(mode)
        except ValueError:
            logger.warning("Invalid agent mode", mode=str(mode))
            return
        logger.info("Agent mode set", mode=str(self._mode))

    def get_mode(self) -> AgentMode:
        """Default mode of future runs."""
        return self._mode

    def set_max_iterations(self, value: int) -> None:
        """Set the default iteration ceiling (clamped to 1..50)."""
        self._max_iterations = clamp_iterations(value)

    def get_max_iterations(self) -> int:
        """Default iteration ceiling."""
        return self._max_iterations

    def add_tool(self, tool: ToolSpec) -> None:
        """Add a tool to the default tool list (tools need a name and description)."""
        if tool.name and tool.description:
            self._available_tools.append(tool)
            logger.info("Tool added", tool_name=tool.name)
        else:
            logger.warning("Tool rejected: name and description are required", tool_name=tool.name)

    def get_available_tools(self) -> list[ToolSpec]:
        """Copy of the default tool list."""
        return list(self._available_tools)


def _call_safely(callback: Callable | None, *args: Any) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception as e:
        logger.error("Run callback failed", callback=getattr(callback, "__name__", repr(callback)), error=str(e))
