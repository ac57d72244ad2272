"""Console output for the AgentCore CLI."""

from agentcore.ui.console import AGENT_THEME, AgentConsole, get_console
from agentcore.ui.formatters import format_elapsed, format_timestamp, shorten

__all__ = [
    "AgentConsole",
    "get_console",
    "AGENT_THEME",
    "format_elapsed",
    "format_timestamp",
    "shorten",
]
