"""Main entry point for the AgentCore CLI.

This module provides the command-line interface for inspecting and
maintaining the agent's persisted memory and task history, and for checking
the agent admission heuristic.
"""

import asyncio
import sys
from pathlib import Path
from typing import NoReturn

import click

from agentcore import __version__
from agentcore.agent.admission import matched_keywords, should_use_agent
from agentcore.config import get_settings
from agentcore.logging import setup_logging
from agentcore.memory import MemoryStore, MemoryType
from agentcore.ui.console import get_console

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _configure(ctx: click.Context) -> None:
    """Set up logging from the global options."""
    settings = get_settings()
    obj = ctx.obj or {}
    if obj.get("debug"):
        level = "DEBUG"
    elif obj.get("verbose"):
        level = "INFO"
    else:
        # Warnings at most, unless LOG_LEVEL is even quieter
        level = max(settings.log_level, "WARNING", key=_LOG_LEVELS.index)
    setup_logging(level=level, log_file=settings.log_file)


async def _open_memory() -> MemoryStore:
    """Create the memory store from settings and load persisted data."""
    store = MemoryStore.from_settings(get_settings())
    await store.initialize()
    return store


def _console(ctx: click.Context):
    obj = ctx.obj or {}
    return get_console(no_color=obj.get("no_color", False), verbose=obj.get("verbose", False))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", "-d", is_flag=True, help="Enable debug mode (very detailed logging)")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool, no_color: bool):
    """AgentCore - autonomous multi-step task execution core.

    Inspect and maintain the agent's memory and task history.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["no_color"] = no_color
    _configure(ctx)


@cli.command()
def version():
    """Show the AgentCore version."""
    click.echo(f"agentcore {__version__}")


@cli.command()
@click.pass_context
def config(ctx: click.Context):
    """Show current configuration."""
    console = _console(ctx)
    settings = get_settings()

    console.show_config(settings.model_dump_safe())

    if ctx.obj.get("verbose"):
        console.print("\n[dim]Configuration loaded from:[/dim]")
        console.print("  - Environment variables")
        console.print("  - .env file (if present)")


@cli.command()
@click.argument("message")
@click.pass_context
def check(ctx: click.Context, message: str):
    """Check whether MESSAGE would be escalated into an agent run."""
    console = _console(ctx)
    settings = get_settings()

    decision = should_use_agent(message, enabled=settings.agent_enabled)
    console.show_admission(message, decision, matched_keywords(message), settings.agent_enabled)


# ============================================================================
# Memory Commands
# ============================================================================


@cli.group()
def memory():
    """Manage the agent's long-term memory."""
    pass


@memory.command("stats")
@click.pass_context
def memory_stats(ctx: click.Context):
    """Show memory counts, limits and storage backend."""
    asyncio.run(_memory_stats(ctx))


async def _memory_stats(ctx: click.Context):
    console = _console(ctx)
    store = await _open_memory()
    try:
        console.show_memory_stats(store.get_stats())
    finally:
        await store.close()


@memory.command("search")
@click.argument("query")
@click.option(
    "--type",
    "memory_type",
    type=click.Choice([t.value for t in MemoryType]),
    default=None,
    help="Only match items of this type",
)
@click.option("--limit", "-n", default=5, show_default=True, help="Maximum number of results")
@click.pass_context
def memory_search(ctx: click.Context, query: str, memory_type: str | None, limit: int):
    """Search long-term memory for QUERY."""
    asyncio.run(_memory_search(ctx, query, memory_type, limit))


async def _memory_search(ctx: click.Context, query: str, memory_type: str | None, limit: int):
    console = _console(ctx)
    store = await _open_memory()
    try:
        items = store.search_long_term(query, type=memory_type, limit=limit)
        console.show_memory_items(items, title=f"Memory matching '{query}'")
    finally:
        await store.close()


@memory.command("export")
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to write the export to (default: current directory)",
)
@click.pass_context
def memory_export(ctx: click.Context, output: Path | None):
    """Export long-term memory and task history to a JSON file."""
    asyncio.run(_memory_export(ctx, output))


async def _memory_export(ctx: click.Context, output: Path | None):
    console = _console(ctx)
    store = await _open_memory()
    try:
        path = store.download_memory(output)
        stats = store.get_stats()
        console.success(
            f"Exported {stats.long_term_count} memories and {stats.task_history_count} tasks"
        )
        console.print(f"[dim]Output:[/dim] {path.absolute()}")
    except OSError as e:
        console.error(f"Export failed: {e}")
        sys.exit(1)
    finally:
        await store.close()


@memory.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--merge", is_flag=True, help="Merge into existing memory (skip known ids)")
@click.pass_context
def memory_import(ctx: click.Context, path: Path, merge: bool):
    """Import an export file written by 'memory export'."""
    asyncio.run(_memory_import(ctx, path, merge))


async def _memory_import(ctx: click.Context, path: Path, merge: bool):
    console = _console(ctx)
    store = await _open_memory()
    try:
        if not store.import_from_file(path, merge=merge):
            console.error(f"Import failed: {path} is not a valid memory export")
            sys.exit(1)

        stats = store.get_stats()
        console.success(
            f"Imported {path.name} ({'merged' if merge else 'replaced'}): "
            f"{stats.long_term_count} memories, {stats.task_history_count} tasks"
        )
    finally:
        await store.close()


@memory.command("compress")
@click.option("--days", default=30, show_default=True, type=float, help="Compress items older than this")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def memory_compress(ctx: click.Context, days: float, yes: bool):
    """Fold old long-term memories into per-type summaries (irreversible)."""
    if not yes:
        click.confirm(f"Compress memories older than {days:g} days? This cannot be undone", abort=True)
    asyncio.run(_memory_compress(ctx, days))


async def _memory_compress(ctx: click.Context, days: float):
    console = _console(ctx)
    store = await _open_memory()
    try:
        compressed = store.compress_old_memories(days)
        if compressed:
            console.success(f"Compressed {compressed} memories")
        else:
            console.info("Nothing to compress")
    finally:
        await store.close()


# ============================================================================
# History Commands
# ============================================================================


@cli.group()
def history():
    """Inspect the agent's task history."""
    pass


@history.command("list")
@click.option("--limit", "-n", default=10, show_default=True, help="Number of tasks to show")
@click.option("--success-only", is_flag=True, help="Only show successful tasks")
@click.pass_context
def history_list(ctx: click.Context, limit: int, success_only: bool):
    """List recent agent tasks, newest first."""
    asyncio.run(_history_list(ctx, limit, success_only))


async def _history_list(ctx: click.Context, limit: int, success_only: bool):
    console = _console(ctx)
    store = await _open_memory()
    try:
        tasks = store.get_task_history(limit=limit, success_only=success_only)
        console.show_task_history(tasks)
    finally:
        await store.close()


@history.command("similar")
@click.argument("goal")
@click.option("--limit", "-n", default=3, show_default=True, help="Number of tasks to show")
@click.pass_context
def history_similar(ctx: click.Context, goal: str, limit: int):
    """Find past tasks with a goal similar to GOAL."""
    asyncio.run(_history_similar(ctx, goal, limit))


async def _history_similar(ctx: click.Context, goal: str, limit: int):
    console = _console(ctx)
    store = await _open_memory()
    try:
        tasks = store.search_similar_tasks(goal, limit=limit)
        console.show_task_history(tasks, title=f"Tasks similar to '{goal}'")
    finally:
        await store.close()


def main() -> NoReturn:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
