"""Structured logging for AgentCore.

Log events are structlog key/value events. Every line carries the name of
the emitting module, plus whatever run context the orchestrator binds
(``mode``, ``task_id``) for the duration of a run.

Console output goes to stderr so that it never interleaves with CLI tables
on stdout. When a log file is configured, events are appended to it as JSON
lines instead.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Any

import structlog

# Libraries that log every statement at DEBUG
_NOISY_LOGGERS = ("aiosqlite", "asyncio")


def setup_logging(
    level: str | None = "INFO",
    log_file: Path | None = None,
    show_timestamps: bool = True,
) -> None:
    """Configure structlog for the agent core.

    Safe to call again (the CLI reconfigures once its flags are parsed).

    Args:
        level: Minimum level of emitted events, or None for INFO
        log_file: Append JSON lines to this file instead of the console
        show_timestamps: Prefix console lines with the local time
    """
    level = level or "INFO"
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Standard library loggers (aiosqlite, asyncio) share the level and stream
    logging.basicConfig(
        level=log_level,
        stream=sys.stderr,
        format="%(name)s: %(message)s",
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        processors.extend(
            [
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(ensure_ascii=False),
            ]
        )
        logger_factory = structlog.WriteLoggerFactory(file=log_file.open("a", encoding="utf-8"))
    else:
        if show_timestamps:
            processors.append(structlog.processors.TimeStamper(fmt="%H:%M:%S", utc=False))
        processors.extend(
            [
                structlog.dev.set_exc_info,
                structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            ]
        )
        logger_factory = structlog.PrintLoggerFactory(file=sys.stderr)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger whose events are tagged with the module name.

    Args:
        name: Module name (e.g., "agentcore.agent.orchestrator")

    Returns:
        Lazily configured structlog logger
    """
    return structlog.get_logger().bind(logger=name)


def bind_run_context(**values: Any) -> None:
    """Bind values (task_id, mode, ...) to every log line of the current run."""
    structlog.contextvars.bind_contextvars(**values)


def clear_run_context() -> None:
    """Drop all values bound with bind_run_context()."""
    structlog.contextvars.clear_contextvars()


class AsyncTimer:
    """Async context manager logging how long a model or tool call took.

    Usage:
        async with AsyncTimer("Model call (iteration 2)", logger) as timer:
            await invoker.invoke(...)
        timer.elapsed  # seconds
    """

    def __init__(self, name: str, logger: Any | None = None):
        self.name = name
        self.logger = logger or get_logger("agentcore.timer")
        self.start_time: float = 0
        self.elapsed: float = 0

    async def __aenter__(self) -> "AsyncTimer":
        self.start_time = time.perf_counter()
        self.logger.debug("Timed call started", call=self.name)
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        if exc_type is None:
            self.logger.debug("Timed call finished", call=self.name, elapsed_s=round(self.elapsed, 3))
        else:
            self.logger.debug(
                "Timed call failed",
                call=self.name,
                elapsed_s=round(self.elapsed, 3),
                error=exc_type.__name__,
            )
