"""System prompts and templates for agent runs.

This module contains the system prompts of the two run modes and the
helpers that fill them in with the run's tools and limits.
"""

import json
from typing import Any

from agentcore.tools.base import ToolSpec


# ReAct mode: the model answers in free text that the loop parses
REACT_SYSTEM_PROMPT = """You are an autonomous assistant that completes tasks step by step.

# How You Work (ReAct Pattern)
Each turn you receive the task and your current observation. Reply in this format:

Thought: what you know so far and what to do next
Action: tool_name[{{"parameter": "value"}}]

or, once the task is done:

Thought: why the task is complete
Final Answer: the answer for the user

# Available Tools
{tools}

# Rules
- Call at most one tool per turn
- Parameters must be valid JSON inside the brackets
- You have at most {max_iterations} turns; give a Final Answer before running out
- If a tool fails, try a different approach instead of repeating the same call"""


# Function-calling mode: the model requests tools through structured calls
FC_SYSTEM_PROMPT = """You are an autonomous assistant that completes tasks using tools.

# Available Tools
{tools}

# Guidelines
- Call tools when you need information or need to perform an action
- You may call several tools in sequence; each result is returned to you
- When you have everything you need, reply with the final answer and no tool calls
- If a tool fails, explain the error or try an alternative"""


def format_tool_list(tools: list[ToolSpec]) -> str:
    """Format the tools as a bullet list for a system prompt.

    Args:
        tools: Tools of the run

    Returns:
        str: One "- name: description" line per tool
    """
    if not tools:
        return "No tools currently available."
    return "\n".join(f"- {tool.name}: {tool.description}" for tool in tools)


def build_react_system_prompt(tools: list[ToolSpec], max_iterations: int) -> str:
    """Create the ReAct system prompt for a run."""
    return REACT_SYSTEM_PROMPT.format(tools=format_tool_list(tools), max_iterations=max_iterations)


def build_fc_system_prompt(tools: list[ToolSpec]) -> str:
    """Create the function-calling system prompt for a run."""
    return FC_SYSTEM_PROMPT.format(tools=format_tool_list(tools))


def build_think_prompt(task: str, observation: dict[str, Any]) -> str:
    """Create the user turn asking the model for its next action.

    Args:
        task: Goal of the run
        observation: Current observation

    Returns:
        str: Prompt text
    """
    observed = json.dumps(observation, ensure_ascii=False, indent=2, default=str)
    return f"Task: {task}\n\nCurrent observation:\n{observed}\n\nDecide on the next action."
