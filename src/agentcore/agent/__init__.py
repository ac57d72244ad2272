"""Agent execution core.

This module provides the orchestrator that runs agent tasks, the ReAct
reasoning loop it delegates to, and the supporting models, events,
cancellation and admission heuristic.
"""

from agentcore.agent.admission import AGENT_KEYWORDS, should_use_agent
from agentcore.agent.cancellation import CancellationToken
from agentcore.agent.events import EventChannel, EventKind
from agentcore.agent.exceptions import (
    AgentError,
    ConcurrencyError,
    ModelInvocationError,
    RunAbortedError,
)
from agentcore.agent.loop import ReActLoop, ReasoningLoop, parse_action
from agentcore.agent.models import (
    AgentMode,
    AgentOptions,
    AgentResult,
    AgentState,
    IterationRecord,
    LoopPhase,
    LoopState,
    RunState,
)
from agentcore.agent.orchestrator import Orchestrator

__all__ = [
    # Orchestrator
    "Orchestrator",
    # Loop
    "ReasoningLoop",
    "ReActLoop",
    "parse_action",
    # Models
    "AgentMode",
    "AgentOptions",
    "AgentResult",
    "AgentState",
    "IterationRecord",
    "LoopPhase",
    "LoopState",
    "RunState",
    # Events / cancellation
    "EventChannel",
    "EventKind",
    "CancellationToken",
    # Exceptions
    "AgentError",
    "ConcurrencyError",
    "ModelInvocationError",
    "RunAbortedError",
    # Admission
    "AGENT_KEYWORDS",
    "should_use_agent",
]
