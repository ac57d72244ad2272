"""AgentCore - autonomous multi-step task execution for chat applications.

Runs an iterative reasoning/acting cycle over an injected language model
and tools, with tiered, persisted agent memory.
"""

__version__ = "0.1.0"

from agentcore.config import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings", "__version__"]
