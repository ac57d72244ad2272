"""Data models for agent memory.

This module defines the Pydantic models held by the memory store: memory
items for the short/long-term tiers, the per-run working memory, task history
records and the export envelope. Models that are written to disk serialize
with camelCase keys so exported files stay compatible with the chat
application's memory format.
"""

import json
import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


EXPORT_VERSION = "1.0"


def generate_memory_id() -> str:
    """Generate a unique memory identifier."""
    return f"mem_{uuid.uuid4().hex[:16]}"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class MemoryType(str, Enum):
    """Kind of a memory item."""

    OBSERVATION = "observation"
    THOUGHT = "thought"
    ACTION = "action"
    RESULT = "result"
    CONTEXT = "context"

    def __str__(self) -> str:
        """String representation of memory type."""
        return self.value


class _WireModel(BaseModel):
    """Base for models persisted or exported with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MemoryItem(_WireModel):
    """A single entry of short-term or long-term memory."""

    id: str = Field(default_factory=generate_memory_id, description="Unique memory identifier")
    type: MemoryType = Field(..., description="Kind of memory item")
    content: Any = Field(default=None, description="Item payload (text or JSON-like data)")
    timestamp: datetime = Field(default_factory=utc_now, description="When the item was created")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata (important flag, compression info, ...)",
    )

    @property
    def is_important(self) -> bool:
        """Whether the item is promoted to long-term memory on eviction."""
        return self.type == MemoryType.RESULT or self.metadata.get("important") is True

    def content_text(self) -> str:
        """Content rendered as a string for search and prompts."""
        return content_to_string(self.content)

    def __repr__(self) -> str:
        """String representation of memory item."""
        preview = self.content_text()
        preview = preview[:40] + "..." if len(preview) > 40 else preview
        return f"MemoryItem(id={self.id}, type={self.type}, content='{preview}')"


class WorkingMemory(BaseModel):
    """Mutable scratch state of the active run."""

    task_id: str | None = Field(default=None, description="Identifier of the current task")
    goal: str | None = Field(default=None, description="Goal of the current task")
    iteration: int = Field(default=0, description="Current iteration number", ge=0)
    variables: dict[str, Any] = Field(default_factory=dict, description="Run variables")
    pending_actions: list[Any] = Field(default_factory=list, description="Queued actions")


class TaskHistory(_WireModel):
    """A finished agent run, kept in the task history ledger."""

    task_id: str = Field(default_factory=generate_memory_id, description="Task identifier")
    goal: str = Field(default="", description="Goal the run worked on")
    start_time: datetime = Field(default_factory=utc_now, description="When the run started")
    end_time: datetime = Field(default_factory=utc_now, description="When the run finished")
    success: bool = Field(default=False, description="Whether the run completed its goal")
    iterations: int = Field(default=0, description="Number of iterations recorded", ge=0)
    summary: str = Field(default="", description="Short human-readable summary")

    @property
    def duration_s(self) -> float:
        """Run duration in seconds."""
        return (self.end_time - self.start_time).total_seconds()


class ExecutionSummary(BaseModel):
    """Summary of the current run assembled from short-term memory."""

    task_id: str | None = None
    goal: str | None = None
    total_iterations: int = 0
    observations: list[Any] = Field(default_factory=list)
    thoughts: list[Any] = Field(default_factory=list)
    actions: list[Any] = Field(default_factory=list)
    results: list[Any] = Field(default_factory=list)


class MemoryStats(BaseModel):
    """Counters and limits of the memory store."""

    short_term_count: int = 0
    long_term_count: int = 0
    task_history_count: int = 0
    short_term_limit: int = 0
    long_term_limit: int = 0
    task_history_limit: int = 0
    backend: str | None = None
    initialized: bool = False
    oldest_memory: datetime | None = None
    newest_memory: datetime | None = None


class ExportStats(_WireModel):
    """Counts included in an export file."""

    long_term_count: int = 0
    task_history_count: int = 0


class MemoryExport(_WireModel):
    """Export envelope: `{version, exportedAt, longTermMemory, taskHistory, stats}`."""

    version: str = Field(default=EXPORT_VERSION)
    exported_at: datetime = Field(default_factory=utc_now)
    long_term_memory: list[MemoryItem] | None = None
    task_history: list[TaskHistory] | None = None
    stats: ExportStats = Field(default_factory=ExportStats)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump the export in its on-disk (camelCase, JSON-safe) form."""
        return self.model_dump(mode="json", by_alias=True)


def content_to_string(content: Any) -> str:
    """Render memory content as text.

    Strings pass through; everything else is JSON encoded, falling back to
    str() for values JSON cannot represent.
    """
    if isinstance(content, str):
        return content
    try:
        return json.dumps(content, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(content)
