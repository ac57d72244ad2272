"""Rich console wrapper for AgentCore with consistent styling and theming.

This module provides the AgentConsole class which wraps Rich Console with
AgentCore styling and the tables the CLI uses to show memory, task history
and configuration.
"""

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from agentcore.memory.models import MemoryItem, MemoryStats, TaskHistory
from agentcore.ui.formatters import format_elapsed, format_timestamp, shorten


AGENT_THEME = Theme({
    # Primary colors
    "agent.primary": "cyan",
    "agent.secondary": "blue",

    # Status colors
    "agent.success": "green",
    "agent.error": "red bold",
    "agent.warning": "yellow",
    "agent.info": "blue",

    # Special elements
    "agent.header": "cyan bold",
    "agent.footer": "dim",
})


class AgentConsole:
    """Enhanced Rich console with AgentCore styling.

    Attributes:
        console: The underlying Rich Console instance
    """

    def __init__(self, no_color: bool = False, verbose: bool = False, console: Console | None = None):
        """Initialize the console.

        Args:
            no_color: Disable colored output
            verbose: Enable verbose output
            console: Rich Console to write to (created if None)
        """
        self.console = console or Console(
            theme=AGENT_THEME,
            highlight=False,
            no_color=no_color,
        )
        self.verbose = verbose
        self.no_color = no_color

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console (passthrough to Rich Console)."""
        self.console.print(*args, **kwargs)

    def error(self, message: str, exception: Exception | None = None) -> None:
        """Display an error message.

        Args:
            message: Error message
            exception: Optional exception object
        """
        self.console.print(f"✗ Error: {message}", style="agent.error")

        if exception and self.verbose:
            self.console.print_exception(show_locals=False)

    def warning(self, message: str) -> None:
        """Display a warning message."""
        self.console.print(f"⚠ Warning: {message}", style="agent.warning")

    def success(self, message: str) -> None:
        """Display a success message."""
        self.console.print(f"✓ {message}", style="agent.success")

    def info(self, message: str) -> None:
        """Display an informational message."""
        self.console.print(f"ℹ {message}", style="agent.info")

    def show_config(self, config_dict: dict[str, Any]) -> None:
        """Display configuration settings.

        Args:
            config_dict: Dictionary of configuration settings
        """
        table = Table(title="AgentCore Configuration", show_header=True)
        table.add_column("Setting", style="agent.primary")
        table.add_column("Value", style="agent.info")

        for key, value in config_dict.items():
            table.add_row(key, str(value))

        self.console.print(table)

    def show_memory_stats(self, stats: MemoryStats) -> None:
        """Display memory store counters and limits."""
        table = Table(title="Agent Memory", show_header=True)
        table.add_column("Tier", style="agent.primary")
        table.add_column("Items", justify="right")
        table.add_column("Limit", justify="right", style="agent.footer")

        table.add_row("Short-term", str(stats.short_term_count), str(stats.short_term_limit))
        table.add_row("Long-term", str(stats.long_term_count), str(stats.long_term_limit))
        table.add_row("Task history", str(stats.task_history_count), str(stats.task_history_limit))

        self.console.print(table)
        self.console.print(
            f"Backend: {stats.backend or 'in-memory only'} | "
            f"Oldest: {format_timestamp(stats.oldest_memory)} | "
            f"Newest: {format_timestamp(stats.newest_memory)}",
            style="agent.footer",
        )

    def show_memory_items(self, items: list[MemoryItem], title: str = "Long-term Memory") -> None:
        """Display memory items as a table."""
        if not items:
            self.info("No memory items found")
            return

        table = Table(title=title, show_header=True)
        table.add_column("ID", style="agent.footer")
        table.add_column("Type", style="agent.primary")
        table.add_column("Created")
        table.add_column("Content")

        for item in items:
            content = item.content_text()
            table.add_row(
                item.id,
                str(item.type),
                format_timestamp(item.timestamp),
                content if self.verbose else shorten(content, 80),
            )

        self.console.print(table)

    def show_task_history(self, tasks: list[TaskHistory], title: str = "Task History") -> None:
        """Display task history records as a table."""
        if not tasks:
            self.info("No tasks found")
            return

        table = Table(title=title, show_header=True)
        table.add_column("Started")
        table.add_column("Goal", style="agent.primary")
        table.add_column("Result")
        table.add_column("Iterations", justify="right")
        table.add_column("Duration", justify="right", style="agent.footer")

        for task in tasks:
            result = "[agent.success]success[/agent.success]" if task.success else "[agent.error]failed[/agent.error]"
            table.add_row(
                format_timestamp(task.start_time),
                shorten(task.goal, 60),
                result,
                str(task.iterations),
                format_elapsed(max(task.duration_s, 0.0)),
            )

        self.console.print(table)

    def show_admission(self, message: str, decision: bool, keywords: list[str], enabled: bool) -> None:
        """Display the result of the agent admission check."""
        if not enabled:
            body = "[agent.warning]Agent mode is disabled (AGENT_ENABLED=false)[/agent.warning]"
        elif decision:
            body = f"[agent.success]Agent run[/agent.success]\nMatched: {', '.join(keywords)}"
        else:
            body = "[agent.info]Plain chat turn[/agent.info]\nNo agent keywords matched"

        self.console.print(Panel(body, title=shorten(message, 60), border_style="agent.primary"))

    def divider(self, title: str | None = None) -> None:
        """Print a divider line.

        Args:
            title: Optional title for the divider
        """
        if title:
            self.console.rule(f"[agent.header]{title}[/agent.header]")
        else:
            self.console.rule(style="agent.footer")


# Global console instance
_console: AgentConsole | None = None


def get_console(no_color: bool = False, verbose: bool = False) -> AgentConsole:
    """Get the global console instance.

    Args:
        no_color: Disable colored output
        verbose: Enable verbose output

    Returns:
        AgentConsole: The global console instance
    """
    global _console
    if _console is None:
        _console = AgentConsole(no_color=no_color, verbose=verbose)
    return _console
