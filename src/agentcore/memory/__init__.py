"""Agent memory: short-term, long-term and working memory plus task history.

This module provides the tiered memory store used by the agent orchestrator
and its persistence backends (an aiosqlite record store with a JSON
key-value fallback).
"""

from agentcore.memory.backends import (
    JsonFileKeyValueStore,
    KeyValueBlobBackend,
    SQLiteRecordBackend,
    StorageBackend,
    select_backend,
)
from agentcore.memory.exceptions import (
    ImportValidationError,
    MemoryError,
    PersistenceError,
)
from agentcore.memory.models import (
    ExecutionSummary,
    ExportStats,
    MemoryExport,
    MemoryItem,
    MemoryStats,
    MemoryType,
    TaskHistory,
    WorkingMemory,
)
from agentcore.memory.store import MemoryStore

__all__ = [
    # Store
    "MemoryStore",
    # Backends
    "StorageBackend",
    "SQLiteRecordBackend",
    "KeyValueBlobBackend",
    "JsonFileKeyValueStore",
    "select_backend",
    # Models
    "MemoryItem",
    "MemoryType",
    "WorkingMemory",
    "TaskHistory",
    "ExecutionSummary",
    "MemoryStats",
    "MemoryExport",
    "ExportStats",
    # Exceptions
    "MemoryError",
    "PersistenceError",
    "ImportValidationError",
]
