"""Reasoning loops for ReAct-mode agent runs.

The orchestrator delegates ReAct runs to a ``ReasoningLoop``. The loop owns
the observe -> think -> act -> result cycle; the orchestrator only supplies
a model-invocation function and a tool-dispatch function and relays the
loop's events to the caller.

``ReActLoop`` is the default implementation. Each iteration it:

1. observes: collects the run context and the latest results
2. thinks: asks the model for its next step in free text
3. acts: parses ``Final Answer:`` / ``Action: tool[json]`` / ``Tool: name``
4. records the result in short-term memory (marked important)
"""

import asyncio
import json
import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from agentcore.agent.cancellation import CancellationToken
from agentcore.agent.events import EventChannel, EventKind
from agentcore.agent.exceptions import AgentError, RunAbortedError
from agentcore.agent.models import AgentResult, IterationRecord, LoopPhase, LoopState
from agentcore.agent.prompts import build_react_system_prompt, build_think_prompt
from agentcore.llm.models import ChatMessage
from agentcore.logging import get_logger
from agentcore.memory.models import MemoryType, utc_now
from agentcore.memory.store import MemoryStore
from agentcore.tools.base import ToolSpec

logger = get_logger("agentcore.agent.loop")

# api_call(messages, signal) -> full model reply text
ApiCall = Callable[[list[ChatMessage], CancellationToken | None], Awaitable[str]]

# tool_executor(tool_name, parameters) -> uniform tool result
ToolExecutorFn = Callable[[str, dict[str, Any]], Awaitable[dict[str, Any]]]

_FINAL_ANSWER_RE = re.compile(r"Final Answer[:\s]*(.+)$", re.IGNORECASE | re.DOTALL)
_ACTION_RE = re.compile(r"\bAction[:\s]+(\w+)(?:\[([^\]]*)\])?", re.IGNORECASE)
_ACTION_INPUT_RE = re.compile(r"Action Input[:\s]*(.+?)(?=\n|$)", re.IGNORECASE | re.DOTALL)
_TOOL_RE = re.compile(r"\bTool[:\s]+(\w+)", re.IGNORECASE)


def _parse_parameters(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {"input": raw}
    return parsed if isinstance(parsed, dict) else {"input": parsed}


def parse_action(reasoning: str) -> dict[str, Any]:
    """Parse the model's free-text reply into an action.

    Args:
        reasoning: Model reply

    Returns:
        dict: Action with ``type`` complete, tool_call or respond
    """
    final_match = _FINAL_ANSWER_RE.search(reasoning)
    if final_match:
        return {"type": "complete", "response": final_match.group(1).strip(), "reasoning": reasoning}

    action_match = _ACTION_RE.search(reasoning)
    if action_match:
        parameters: dict[str, Any] = {}
        if action_match.group(2):
            parameters = _parse_parameters(action_match.group(2))

        input_match = _ACTION_INPUT_RE.search(reasoning)
        if input_match:
            parameters = _parse_parameters(input_match.group(1).strip())

        return {
            "type": "tool_call",
            "tool_name": action_match.group(1),
            "parameters": parameters,
            "reasoning": reasoning,
        }

    tool_match = _TOOL_RE.search(reasoning)
    if tool_match:
        return {
            "type": "tool_call",
            "tool_name": tool_match.group(1),
            "parameters": {},
            "reasoning": reasoning,
        }

    return {"type": "respond", "response": reasoning, "reasoning": reasoning}


class ReasoningLoop(ABC):
    """Interface of the loop driving ReAct-mode runs."""

    events: EventChannel

    @abstractmethod
    async def execute_loop(
        self,
        task: str,
        context: dict[str, Any],
        tools: list[ToolSpec],
        max_iterations: int,
        api_call: ApiCall,
        tool_executor: ToolExecutorFn,
    ) -> AgentResult:
        """Run the loop until completion, the iteration ceiling or abort."""
        pass

    @abstractmethod
    def abort(self) -> None:
        """Stop the running loop at its next checkpoint."""
        pass

    @abstractmethod
    def pause(self) -> None:
        """Hold the running loop at its next checkpoint."""
        pass

    @abstractmethod
    def resume(self) -> None:
        """Continue a paused loop."""
        pass

    @abstractmethod
    def get_current_state(self) -> LoopState:
        """Snapshot of the loop."""
        pass


class ReActLoop(ReasoningLoop):
    """Default observe -> think -> act -> result loop.

    Pause and abort take effect at the top of an iteration; an in-flight
    model or tool call always finishes first.
    """

    def __init__(self, memory: MemoryStore, history_items: int = 10):
        """Initialize the loop.

        Args:
            memory: Memory store of the run
            history_items: Short-term items replayed to the model each turn
        """
        self.memory = memory
        self.history_items = history_items
        self.events = EventChannel()

        self._is_running = False
        self._is_paused = False
        self._should_abort = False
        self._phase = LoopPhase.IDLE
        self._iteration_history: list[IterationRecord] = []
        self._resume_event = asyncio.Event()
        self._resume_event.set()
        self._token: CancellationToken | None = None

    async def execute_loop(
        self,
        task: str,
        context: dict[str, Any],
        tools: list[ToolSpec],
        max_iterations: int,
        api_call: ApiCall,
        tool_executor: ToolExecutorFn,
    ) -> AgentResult:
        """Run the ReAct loop.

        Args:
            task: Goal of the run
            context: Caller-supplied state included in every observation
            tools: Tools described to the model
            max_iterations: Iteration ceiling
            api_call: Model invocation returning the reply text
            tool_executor: Tool dispatch

        Returns:
            AgentResult: success is True only if the model gave an answer

        Raises:
            AgentError: If this loop is already running
        """
        if self._is_running:
            raise AgentError("Reasoning loop is already running")

        self._is_running = True
        self._is_paused = False
        self._should_abort = False
        self._phase = LoopPhase.IDLE
        self._iteration_history = []
        self._resume_event.set()
        self._token = CancellationToken()

        self.memory.initialize_working_memory(goal=task)
        self.events.emit(EventKind.START, {"task": task, "max_iterations": max_iterations})
        logger.info("Reasoning loop started", task_preview=task[:50], max_iterations=max_iterations)

        try:
            is_complete = False
            final_result: Any = None

            while not is_complete and self.memory.get_current_iteration() < max_iterations:
                await self._checkpoint()

                iteration = self.memory.increment_iteration()
                logger.debug("Reasoning loop iteration", iteration=iteration, max_iterations=max_iterations)

                self._phase = LoopPhase.OBSERVE
                observation = self._observe(context)
                self.events.emit(EventKind.OBSERVE, {"iteration": iteration, "observation": observation})

                self._phase = LoopPhase.THINK
                thought = await self._think(task, observation, tools, max_iterations, api_call)
                self.events.emit(EventKind.THINK, {"iteration": iteration, "thought": thought})

                self._phase = LoopPhase.ACT
                action = parse_action(thought["reasoning"])
                self.events.emit(EventKind.ACT, {"iteration": iteration, "action": action})

                self._phase = LoopPhase.RESULT
                result = await self._execute_action(action, tool_executor)
                self.events.emit(EventKind.RESULT, {"iteration": iteration, "result": result})

                record = IterationRecord(
                    index=iteration,
                    observation=observation,
                    thought=thought,
                    action=action,
                    result=result,
                    is_complete=action["type"] == "complete",
                )
                self._iteration_history.append(record)
                self.events.emit(EventKind.ITERATION, record.model_dump())

                if action["type"] in ("complete", "respond"):
                    is_complete = True
                    final_result = result

            if not is_complete:
                logger.warning("Reasoning loop reached max iterations", max_iterations=max_iterations)
                final_result = {
                    "success": False,
                    "message": "Reached the maximum number of iterations without completing the task.",
                }

            self.events.emit(
                EventKind.COMPLETE,
                {
                    "success": is_complete,
                    "result": final_result,
                    "iterations": len(self._iteration_history),
                },
            )

            return AgentResult(
                success=is_complete,
                result=final_result,
                iterations=list(self._iteration_history),
                summary=self.memory.get_execution_summary(),
            )

        except Exception as e:
            if isinstance(e, RunAbortedError):
                logger.info("Reasoning loop aborted", iterations=len(self._iteration_history))
            else:
                logger.exception("Reasoning loop failed")
            self.events.emit(EventKind.ERROR, {"error": str(e)})

            return AgentResult.failure(
                str(e),
                iterations=list(self._iteration_history),
                summary=self.memory.get_execution_summary(),
            )

        finally:
            self._is_running = False
            self._is_paused = False
            self._phase = LoopPhase.IDLE
            self._token = None
            self._resume_event.set()

    # ========================================================================
    # Phases
    # ========================================================================

    async def _checkpoint(self) -> None:
        if self._should_abort:
            raise RunAbortedError("Loop was aborted")

        while self._is_paused:
            await self._resume_event.wait()
            if self._should_abort:
                raise RunAbortedError("Loop was aborted")

    def _observe(self, context: dict[str, Any]) -> dict[str, Any]:
        observation = {
            "current_state": context,
            "previous_results": [
                item.content for item in self.memory.get_short_term_context(5, MemoryType.RESULT)
            ],
            "iteration": self.memory.get_current_iteration(),
            "timestamp": utc_now().isoformat(),
        }
        self.memory.add_to_short_term(MemoryType.OBSERVATION, observation)
        return observation

    async def _think(
        self,
        task: str,
        observation: dict[str, Any],
        tools: list[ToolSpec],
        max_iterations: int,
        api_call: ApiCall,
    ) -> dict[str, Any]:
        messages = [
            ChatMessage.system(build_react_system_prompt(tools, max_iterations)),
            *self.memory.to_conversation_history(self.history_items),
            ChatMessage.user(build_think_prompt(task, observation)),
        ]

        response = await api_call(messages, self._token)
        thought = {"reasoning": response or "", "timestamp": utc_now().isoformat()}

        self.memory.add_to_short_term(MemoryType.THOUGHT, thought)
        return thought

    async def _execute_action(
        self,
        action: dict[str, Any],
        tool_executor: ToolExecutorFn,
    ) -> dict[str, Any]:
        self.memory.add_to_short_term(MemoryType.ACTION, action)

        if action["type"] == "tool_call":
            tool_name = action["tool_name"]
            try:
                output = await tool_executor(tool_name, action["parameters"])
                result = {"success": True, "tool_name": tool_name, "output": output}
            except Exception as e:
                logger.warning("Tool call failed in reasoning loop", tool_name=tool_name, error=str(e))
                result = {"success": False, "tool_name": tool_name, "error": str(e)}
        else:
            result = {"success": True, "response": action["response"]}

        self.memory.add_to_short_term(MemoryType.RESULT, result, metadata={"important": True})
        return result

    # ========================================================================
    # Control
    # ========================================================================

    def pause(self) -> None:
        """Hold the loop before its next iteration."""
        if self._is_running and not self._is_paused:
            self._is_paused = True
            self._resume_event.clear()
            self.events.emit(EventKind.PAUSE, {"iteration": self.memory.get_current_iteration()})
            logger.info("Reasoning loop paused")

    def resume(self) -> None:
        """Continue a paused loop."""
        if self._is_running and self._is_paused:
            self._is_paused = False
            self._resume_event.set()
            self.events.emit(EventKind.RESUME, {"iteration": self.memory.get_current_iteration()})
            logger.info("Reasoning loop resumed")

    def abort(self) -> None:
        """Abort the loop before its next iteration and cancel its model calls."""
        if self._is_running:
            self._should_abort = True
            self._is_paused = False
            self._resume_event.set()
            if self._token is not None:
                self._token.cancel("Loop was aborted")
            self.events.emit(EventKind.ABORT, {"iteration": self.memory.get_current_iteration()})
            logger.info("Reasoning loop aborted")

    # ========================================================================
    # State
    # ========================================================================

    def get_current_state(self) -> LoopState:
        """Snapshot of the loop."""
        return LoopState(
            phase=self._phase,
            is_running=self._is_running,
            is_paused=self._is_paused,
            iteration=self.memory.get_current_iteration(),
        )

    @property
    def is_running(self) -> bool:
        """Whether a loop run is in progress."""
        return self._is_running

    @property
    def is_paused(self) -> bool:
        """Whether the loop is paused."""
        return self._is_paused

    def get_iteration_history(self) -> list[IterationRecord]:
        """Copy of the current run's iterations."""
        return list(self._iteration_history)
