"""Tiered agent memory with asynchronous persistence.

The store keeps three tiers plus a task ledger:

- short-term: bounded FIFO of recent observations/thoughts/actions/results;
  important items are promoted to long-term memory when evicted
- long-term: bounded FIFO of retained experience, searchable and persisted
- working: scratch state of the active run (goal, iteration, variables)
- task history: bounded, append-only record of finished runs, persisted

All mutations happen in memory synchronously. Long-term memory and task
history are then written to the storage backend by a background task; a
failed write is logged and the in-memory state stays authoritative.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from agentcore.llm.models import ChatMessage
from agentcore.logging import get_logger
from agentcore.memory.backends import StorageBackend, select_backend
from agentcore.memory.exceptions import ImportValidationError, PersistenceError
from agentcore.memory.models import (
    ExecutionSummary,
    ExportStats,
    MemoryExport,
    MemoryItem,
    MemoryStats,
    MemoryType,
    TaskHistory,
    WorkingMemory,
    content_to_string,
    generate_memory_id,
    utc_now,
)

logger = get_logger("agentcore.memory.store")

# Old items of one type are folded into a summary only above this group size
COMPRESSION_GROUP_THRESHOLD = 5

# Number of leading goal characters compared by search_similar_tasks()
SIMILAR_GOAL_PREFIX = 20

BackendSelector = Callable[[], Awaitable[StorageBackend]]


class MemoryStore:
    """Short-term, long-term and working memory plus task history.

    Usage:
        store = MemoryStore.from_settings(get_settings())
        await store.initialize()

        store.add_to_short_term(MemoryType.OBSERVATION, {"iteration": 1})
        store.add_task_history(TaskHistory(goal="research X", success=True))
        await store.flush()
    """

    def __init__(
        self,
        short_term_limit: int = 50,
        long_term_limit: int = 200,
        task_history_limit: int = 100,
        backend: StorageBackend | None = None,
        backend_selector: BackendSelector | None = None,
    ):
        """Initialize the memory store.

        Args:
            short_term_limit: Maximum number of short-term items
            long_term_limit: Maximum number of long-term items
            task_history_limit: Maximum number of task history records
            backend: Storage backend to use (opened during initialize())
            backend_selector: Async factory choosing a backend during
                initialize(); ignored when backend is given. With neither,
                the store is in-memory only.
        """
        self.short_term_limit = short_term_limit
        self.long_term_limit = long_term_limit
        self.task_history_limit = task_history_limit

        self._short_term: list[MemoryItem] = []
        self._long_term: list[MemoryItem] = []
        self._task_history: list[TaskHistory] = []
        self._working = WorkingMemory()

        self._backend = backend
        self._backend_selector = backend_selector
        self._initialized = False
        self._initializing = False

        self._dirty = False
        self._save_lock = asyncio.Lock()
        self._pending_saves: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings) -> "MemoryStore":
        """Create a store whose limits and backend come from settings."""

        async def selector() -> StorageBackend:
            return await select_backend(
                db_path=settings.memory_db_path,
                kv_path=settings.memory_kv_path,
                persistence_key=settings.memory_persistence_key,
                use_record_store=settings.memory_use_record_store,
            )

        return cls(
            short_term_limit=settings.memory_short_term_limit,
            long_term_limit=settings.memory_long_term_limit,
            task_history_limit=settings.memory_task_history_limit,
            backend_selector=selector,
        )

    # ========================================================================
    # Initialization / persistence
    # ========================================================================

    @property
    def backend(self) -> StorageBackend | None:
        """The backend chosen at initialization (None when in-memory only)."""
        return self._backend

    @property
    def initialized(self) -> bool:
        """Whether backend selection and the initial load have completed."""
        return self._initialized

    async def initialize(self) -> None:
        """Select the storage backend and load persisted memory.

        Safe to call more than once; only the first call does any work.
        Backend failures are logged and leave the store in-memory only.
        """
        if self._initialized or self._initializing:
            logger.debug("Memory store already initialized")
            return

        self._initializing = True
        try:
            await self._open_backend()
            await self._load()
            self._initialized = True
            logger.info(
                "Memory store initialized",
                backend=self._backend.name if self._backend else None,
                long_term=len(self._long_term),
                task_history=len(self._task_history),
            )
        finally:
            self._initializing = False

    async def wait_for_initialization(self, poll_interval: float = 0.05) -> None:
        """Block until initialize() has finished (polls the ready flag)."""
        while not self._initialized:
            await asyncio.sleep(poll_interval)

    async def flush(self) -> None:
        """Wait for pending background saves and write any unsaved changes."""
        if self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)
        if self._dirty and self._initialized and self._backend is not None:
            await self._save()

    async def close(self) -> None:
        """Flush pending changes and close the backend."""
        await self.flush()
        if self._backend is not None:
            await self._backend.close()
        logger.debug("Memory store closed")

    async def _open_backend(self) -> None:
        try:
            if self._backend is not None:
                await self._backend.open()
            elif self._backend_selector is not None:
                self._backend = await self._backend_selector()
        except PersistenceError as e:
            logger.error("No storage backend available, memory is not persisted", error=str(e))
            self._backend = None

    async def _load(self) -> None:
        if self._backend is None:
            return

        try:
            items, history = await self._backend.load()
        except PersistenceError as e:
            logger.error("Failed to load persisted memory", error=str(e))
            return

        # Anything recorded before the load finished is kept after the stored data
        loaded_ids = {item.id for item in items}
        self._long_term = items + [m for m in self._long_term if m.id not in loaded_ids]
        loaded_task_ids = {task.task_id for task in history}
        self._task_history = history + [
            t for t in self._task_history if t.task_id not in loaded_task_ids
        ]
        self._enforce_long_term_limit()
        self._enforce_task_history_limit()

    def _schedule_save(self) -> None:
        """Mark state dirty and persist it in the background if possible."""
        self._dirty = True
        if not self._initialized or self._backend is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: the change is written by the next flush()
            return

        task = loop.create_task(self._save())
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _save(self) -> None:
        async with self._save_lock:
            if not self._dirty or self._backend is None:
                return

            self._dirty = False
            long_term = list(self._long_term)
            task_history = list(self._task_history)

            try:
                await self._backend.save(long_term, task_history)
            except PersistenceError as e:
                self._dirty = True
                logger.error("Failed to persist memory", backend=self._backend.name, error=str(e))

    # ========================================================================
    # Short-term memory
    # ========================================================================

    def add_to_short_term(
        self,
        type: MemoryType | str,
        content: Any,
        metadata: dict[str, Any] | None = None,
    ) -> MemoryItem:
        """Add an item to short-term memory.

        When the tier overflows the oldest items are evicted; evicted items
        that are important (results, or metadata["important"] is True) are
        copied to long-term memory first.

        Args:
            type: Kind of memory item
            content: Item payload
            metadata: Optional metadata

        Returns:
            MemoryItem: The stored item
        """
        item = MemoryItem(type=MemoryType(type), content=content, metadata=metadata or {})
        self._short_term.append(item)

        while len(self._short_term) > self.short_term_limit:
            removed = self._short_term.pop(0)
            if removed.is_important:
                self.add_to_long_term(removed)

        logger.debug("Added to short-term memory", type=str(item.type), size=len(self._short_term))
        return item

    def get_short_term_context(
        self,
        limit: int = 10,
        filter_type: MemoryType | str | None = None,
    ) -> list[MemoryItem]:
        """Get the most recent short-term items (oldest first).

        Args:
            limit: Maximum number of items
            filter_type: Only return items of this type

        Returns:
            list[MemoryItem]: Up to limit items
        """
        items = list(self._short_term)
        if filter_type is not None:
            wanted = MemoryType(filter_type)
            items = [item for item in items if item.type == wanted]
        if limit <= 0:
            return []
        return items[-limit:]

    def clear_short_term(self) -> None:
        """Remove all short-term items."""
        logger.debug("Short-term memory cleared", removed=len(self._short_term))
        self._short_term = []

    def get_short_term_size(self) -> int:
        """Number of short-term items."""
        return len(self._short_term)

    # ========================================================================
    # Long-term memory
    # ========================================================================

    def add_to_long_term(
        self,
        item: MemoryItem | None = None,
        *,
        type: MemoryType | str | None = None,
        content: Any = None,
        metadata: dict[str, Any] | None = None,
    ) -> MemoryItem:
        """Add an item to long-term memory.

        An existing MemoryItem keeps its id; adding an id that is already
        stored is a no-op returning the stored item.

        Args:
            item: Existing memory item (e.g. a promoted short-term item)
            type: Kind of a new item (when item is not given)
            content: Payload of a new item
            metadata: Metadata of a new item

        Returns:
            MemoryItem: The stored item
        """
        if item is None:
            if type is None:
                raise ValueError("Either item or type must be given")
            item = MemoryItem(type=MemoryType(type), content=content, metadata=metadata or {})
        else:
            for existing in self._long_term:
                if existing.id == item.id:
                    return existing

        self._long_term.append(item)
        self._enforce_long_term_limit()
        self._schedule_save()

        logger.debug("Added to long-term memory", type=str(item.type), size=len(self._long_term))
        return item

    def search_long_term(
        self,
        query: str,
        type: MemoryType | str | None = None,
        limit: int = 5,
    ) -> list[MemoryItem]:
        """Search long-term memory by case-insensitive substring.

        Args:
            query: Text to look for in the item content
            type: Only match items of this type
            limit: Maximum number of results

        Returns:
            list[MemoryItem]: Matches, most recent first
        """
        query_lower = query.lower()
        wanted = MemoryType(type) if type is not None else None

        results = [
            item
            for item in self._long_term
            if (wanted is None or item.type == wanted)
            and query_lower in item.content_text().lower()
        ]
        results.sort(key=lambda item: item.timestamp, reverse=True)
        return results[:limit]

    def get_long_term_items(self) -> list[MemoryItem]:
        """Copy of all long-term items in stored order."""
        return list(self._long_term)

    def clear_long_term(self) -> None:
        """Remove all long-term items."""
        logger.info("Long-term memory cleared", removed=len(self._long_term))
        self._long_term = []
        self._schedule_save()

    def get_long_term_size(self) -> int:
        """Number of long-term items."""
        return len(self._long_term)

    def _enforce_long_term_limit(self) -> None:
        overflow = len(self._long_term) - self.long_term_limit
        if overflow > 0:
            del self._long_term[:overflow]

    # ========================================================================
    # Working memory
    # ========================================================================

    def initialize_working_memory(self, goal: str = "", task_id: str | None = None) -> WorkingMemory:
        """Reset working memory for a new task.

        Args:
            goal: Goal of the task
            task_id: Task identifier (generated if not given)

        Returns:
            WorkingMemory: Copy of the new working memory
        """
        self._working = WorkingMemory(task_id=task_id or generate_memory_id(), goal=goal)
        logger.debug("Working memory initialized", task_id=self._working.task_id)
        return self.get_working_memory()

    def get_working_memory(self) -> WorkingMemory:
        """Shallow copy of the working memory."""
        return self._working.model_copy()

    def set_working_context(self, key: str, value: Any) -> None:
        """Set a working-memory variable."""
        self._working.variables[key] = value

    def get_working_context(self, key: str) -> Any:
        """Get a working-memory variable (None if unset)."""
        return self._working.variables.get(key)

    def increment_iteration(self) -> int:
        """Advance the iteration counter and return the new value."""
        self._working.iteration += 1
        return self._working.iteration

    def get_current_iteration(self) -> int:
        """Current iteration number."""
        return self._working.iteration

    def add_pending_action(self, action: Any) -> None:
        """Queue an action for later."""
        self._working.pending_actions.append(action)

    def pop_pending_action(self) -> Any | None:
        """Take the oldest queued action, or None."""
        if not self._working.pending_actions:
            return None
        return self._working.pending_actions.pop(0)

    def clear_working_memory(self) -> None:
        """Reset working memory to its empty state."""
        logger.debug("Working memory cleared")
        self._working = WorkingMemory()

    # ========================================================================
    # Combined views
    # ========================================================================

    def get_execution_summary(self) -> ExecutionSummary:
        """Summarize the current run from short-term memory."""

        def contents(memory_type: MemoryType) -> list[Any]:
            return [item.content for item in self.get_short_term_context(100, memory_type)]

        return ExecutionSummary(
            task_id=self._working.task_id,
            goal=self._working.goal,
            total_iterations=self._working.iteration,
            observations=contents(MemoryType.OBSERVATION),
            thoughts=contents(MemoryType.THOUGHT),
            actions=contents(MemoryType.ACTION),
            results=contents(MemoryType.RESULT),
        )

    def to_conversation_history(self, max_items: int = 20) -> list[ChatMessage]:
        """Render recent short-term memory as chat messages for the model."""
        history: list[ChatMessage] = []

        for item in self.get_short_term_context(max_items):
            text = content_to_string(item.content)
            if item.type == MemoryType.OBSERVATION:
                history.append(ChatMessage.system(f"[Observation] {text}"))
            elif item.type == MemoryType.THOUGHT:
                history.append(ChatMessage.assistant(f"[Thought] {text}"))
            elif item.type == MemoryType.ACTION:
                history.append(ChatMessage.assistant(f"[Action] {text}"))
            elif item.type == MemoryType.RESULT:
                history.append(ChatMessage.system(f"[Result] {text}"))

        return history

    def clear_all(self) -> None:
        """Clear short-term, long-term and working memory."""
        self.clear_short_term()
        self.clear_long_term()
        self.clear_working_memory()
        logger.info("All memory cleared")

    def serialize(self) -> dict[str, Any]:
        """Serialize long-term memory."""
        return {
            "longTermMemory": [item.model_dump(mode="json", by_alias=True) for item in self._long_term],
            "timestamp": utc_now().isoformat(),
        }

    def deserialize(self, data: dict[str, Any]) -> None:
        """Restore long-term memory from serialize() output."""
        if not isinstance(data, dict) or not isinstance(data.get("longTermMemory"), list):
            return
        self._long_term = [MemoryItem.model_validate(item) for item in data["longTermMemory"]]
        self._enforce_long_term_limit()
        logger.info("Long-term memory restored", count=len(self._long_term))

    # ========================================================================
    # Task history
    # ========================================================================

    def add_task_history(self, task: TaskHistory) -> TaskHistory:
        """Append a finished task to the history ledger.

        Args:
            task: Task record

        Returns:
            TaskHistory: The stored record
        """
        self._task_history.append(task)
        self._enforce_task_history_limit()
        self._schedule_save()

        logger.debug("Task history added", task_id=task.task_id, success=task.success)
        return task

    def get_task_history(self, limit: int = 10, success_only: bool = False) -> list[TaskHistory]:
        """Get task history, newest first.

        Args:
            limit: Maximum number of records
            success_only: Only return successful tasks

        Returns:
            list[TaskHistory]: Matching records
        """
        history = list(self._task_history)
        if success_only:
            history = [task for task in history if task.success]
        history.sort(key=lambda task: task.start_time, reverse=True)
        return history[:limit]

    def get_task_history_by_id(self, task_id: str) -> TaskHistory | None:
        """Get a task record by id."""
        for task in self._task_history:
            if task.task_id == task_id:
                return task
        return None

    def search_similar_tasks(self, goal: str, limit: int = 3) -> list[TaskHistory]:
        """Find past tasks with a similar goal.

        A task matches when its goal contains the query, or when the query
        contains the first characters of its goal (case-insensitive).

        Args:
            goal: Goal to compare against
            limit: Maximum number of results

        Returns:
            list[TaskHistory]: Matches, newest first
        """
        goal_lower = goal.lower()
        results = [
            task
            for task in self._task_history
            if goal_lower in task.goal.lower()
            or task.goal.lower()[:SIMILAR_GOAL_PREFIX] in goal_lower
        ]
        results.sort(key=lambda task: task.start_time, reverse=True)
        return results[:limit]

    def clear_task_history(self) -> None:
        """Remove all task history records."""
        self._task_history = []
        self._schedule_save()
        logger.info("Task history cleared")

    def _enforce_task_history_limit(self) -> None:
        overflow = len(self._task_history) - self.task_history_limit
        if overflow > 0:
            del self._task_history[:overflow]

    # ========================================================================
    # Compression
    # ========================================================================

    def compress_old_memories(self, older_than_days: float = 30) -> int:
        """Fold old long-term items into per-type summaries.

        Items at least older_than_days old are grouped by type. Groups with
        more than five items are replaced by one context item describing the
        group; smaller groups are kept as they are. This cannot be undone.

        Args:
            older_than_days: Age threshold in days

        Returns:
            int: Number of items folded into summaries
        """
        cutoff = utc_now() - timedelta(days=older_than_days)
        old_items = [item for item in self._long_term if item.timestamp <= cutoff]
        new_items = [item for item in self._long_term if item.timestamp > cutoff]

        grouped: dict[MemoryType, list[MemoryItem]] = {}
        for item in old_items:
            grouped.setdefault(item.type, []).append(item)

        compressed_count = 0
        kept: list[MemoryItem] = []

        for memory_type, items in grouped.items():
            if len(items) <= COMPRESSION_GROUP_THRESHOLD:
                kept.extend(items)
                continue

            timestamps = [item.timestamp for item in items]
            kept.append(
                MemoryItem(
                    type=MemoryType.CONTEXT,
                    content={
                        "summary": f"Compressed {len(items)} {memory_type} items",
                        "originalType": str(memory_type),
                        "count": len(items),
                        "dateRange": {
                            "start": min(timestamps).isoformat(),
                            "end": max(timestamps).isoformat(),
                        },
                    },
                    metadata={"compressed": True, "originalCount": len(items)},
                )
            )
            compressed_count += len(items)

        if compressed_count > 0:
            self._long_term = kept + new_items
            self._schedule_save()
            logger.info("Old memories compressed", compressed=compressed_count)

        return compressed_count

    # ========================================================================
    # Export / import
    # ========================================================================

    def export_memory(self) -> MemoryExport:
        """Export long-term memory and task history."""
        return MemoryExport(
            long_term_memory=list(self._long_term),
            task_history=list(self._task_history),
            stats=ExportStats(
                long_term_count=len(self._long_term),
                task_history_count=len(self._task_history),
            ),
        )

    def download_memory(self, directory: Path | None = None) -> Path:
        """Write an export file named agent_memory_<date>.json.

        Args:
            directory: Target directory (current directory if None)

        Returns:
            Path: The written file
        """
        directory = directory or Path.cwd()
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"agent_memory_{utc_now().date().isoformat()}.json"
        path.write_text(
            json.dumps(self.export_memory().to_json_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        logger.info("Memory exported", path=str(path))
        return path

    def import_memory(self, data: MemoryExport | dict[str, Any], merge: bool = False) -> bool:
        """Import an export payload.

        Without merge, each collection present in the payload replaces the
        stored one. With merge, records whose id is already stored are
        skipped. Limits are enforced afterwards.

        Args:
            data: Export model or its JSON dictionary form
            merge: Merge into existing memory instead of replacing it

        Returns:
            bool: False if the payload is malformed
        """
        try:
            if isinstance(data, MemoryExport):
                payload = data
            elif isinstance(data, dict):
                payload = MemoryExport.model_validate(data)
            else:
                raise ImportValidationError(f"Invalid data format: {type(data).__name__}")
        except (ValidationError, ImportValidationError) as e:
            logger.error("Memory import rejected", error=str(e))
            return False

        if payload.long_term_memory is not None:
            if merge:
                existing_ids = {item.id for item in self._long_term}
                new_items = [item for item in payload.long_term_memory if item.id not in existing_ids]
                self._long_term.extend(new_items)
                logger.info("Long-term memory merged", added=len(new_items))
            else:
                self._long_term = list(payload.long_term_memory)

        if payload.task_history is not None:
            if merge:
                existing_ids = {task.task_id for task in self._task_history}
                new_tasks = [task for task in payload.task_history if task.task_id not in existing_ids]
                self._task_history.extend(new_tasks)
                logger.info("Task history merged", added=len(new_tasks))
            else:
                self._task_history = list(payload.task_history)

        self._enforce_long_term_limit()
        self._enforce_task_history_limit()
        self._schedule_save()

        logger.info("Memory import complete", merge=merge)
        return True

    def import_from_file(self, path: Path, merge: bool = False) -> bool:
        """Import an export file written by download_memory().

        Returns:
            bool: False if the file cannot be read or is malformed
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read memory file", path=str(path), error=str(e))
            return False
        return self.import_memory(data, merge=merge)

    # ========================================================================
    # Stats
    # ========================================================================

    def get_stats(self) -> MemoryStats:
        """Counts, limits and backend information."""
        timestamps = [item.timestamp for item in self._long_term]
        return MemoryStats(
            short_term_count=len(self._short_term),
            long_term_count=len(self._long_term),
            task_history_count=len(self._task_history),
            short_term_limit=self.short_term_limit,
            long_term_limit=self.long_term_limit,
            task_history_limit=self.task_history_limit,
            backend=self._backend.name if self._backend else None,
            initialized=self._initialized,
            oldest_memory=min(timestamps) if timestamps else None,
            newest_memory=max(timestamps) if timestamps else None,
        )

    def __repr__(self) -> str:
        """String representation of the store."""
        return (
            f"MemoryStore(short_term={len(self._short_term)}/{self.short_term_limit}, "
            f"long_term={len(self._long_term)}/{self.long_term_limit}, "
            f"task_history={len(self._task_history)}/{self.task_history_limit})"
        )
