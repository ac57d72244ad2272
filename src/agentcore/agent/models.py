"""Pydantic models for agent runs."""

from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentcore.memory.models import ExecutionSummary, utc_now
from agentcore.tools.base import ToolSpec


MIN_ITERATIONS = 1
MAX_ITERATIONS = 50


def clamp_iterations(value: int) -> int:
    """Clamp an iteration ceiling to the supported range."""
    return max(MIN_ITERATIONS, min(int(value), MAX_ITERATIONS))


class AgentMode(str, Enum):
    """How a run drives the model."""

    REACT = "react"  # Free-text Thought/Action loop
    FUNCTION_CALLING = "function_calling"  # Structured tool calls

    def __str__(self) -> str:
        """String representation of agent mode."""
        return self.value


class RunState(str, Enum):
    """Lifecycle state of the orchestrator."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"

    def __str__(self) -> str:
        """String representation of run state."""
        return self.value


class LoopPhase(str, Enum):
    """Phase of the reasoning loop within an iteration."""

    IDLE = "idle"
    OBSERVE = "observe"
    THINK = "think"
    ACT = "act"
    RESULT = "result"


class IterationRecord(BaseModel):
    """One step of a run, appended to AgentResult.iterations."""

    index: int = Field(..., description="Iteration number (1-based)")
    action: dict[str, Any] = Field(
        default_factory=dict,
        description="Action taken (type, tool_name, parameters, ...)",
    )
    result: Any = Field(default=None, description="Result of the action")
    timestamp: datetime = Field(default_factory=utc_now)
    is_complete: bool = Field(default=False, description="Whether this step completed the run")
    observation: Any = Field(default=None, description="Observation (ReAct only)")
    thought: Any = Field(default=None, description="Model reasoning (ReAct only)")


class AgentResult(BaseModel):
    """Terminal result of an agent run."""

    success: bool = Field(..., description="Whether the run reached a final answer")
    result: Any = Field(default=None, description="Final result payload")
    error: str | None = Field(default=None, description="Error message if the run failed")
    iterations: list[IterationRecord] = Field(default_factory=list)
    summary: ExecutionSummary | None = Field(default=None)

    @classmethod
    def failure(
        cls,
        error: str,
        iterations: list[IterationRecord] | None = None,
        summary: ExecutionSummary | None = None,
    ) -> "AgentResult":
        """Create a failed result."""
        return cls(success=False, error=error, iterations=iterations or [], summary=summary)


class AgentOptions(BaseModel):
    """Options of a single run.

    Unset mode and max_iterations fall back to the orchestrator's current
    settings; unset tools fall back to its available tool list.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    mode: AgentMode | None = None
    max_iterations: int | None = None
    tools: list[ToolSpec] | None = None
    context: dict[str, Any] = Field(default_factory=dict)

    on_observe: Callable[[dict[str, Any]], Any] | None = None
    on_think: Callable[[dict[str, Any]], Any] | None = None
    on_act: Callable[[dict[str, Any]], Any] | None = None
    on_result: Callable[[dict[str, Any]], Any] | None = None
    on_complete: Callable[[AgentResult], Any] | None = None
    on_error: Callable[[Exception], Any] | None = None


class LoopState(BaseModel):
    """Snapshot of the reasoning loop."""

    phase: LoopPhase = LoopPhase.IDLE
    is_running: bool = False
    is_paused: bool = False
    iteration: int = 0


class AgentState(BaseModel):
    """Snapshot of the orchestrator."""

    is_running: bool
    run_state: RunState
    last_outcome: RunState | None = None
    mode: AgentMode
    max_iterations: int
    loop_state: LoopState | None = None
