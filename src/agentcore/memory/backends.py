"""Storage backends for persisted agent memory.

Long-term memory and task history are persisted through a single
``StorageBackend`` interface with two implementations:

- ``SQLiteRecordBackend``: per-record rows in an async SQLite database,
  keyed by id with secondary indexes on type/timestamp (preferred).
- ``KeyValueBlobBackend``: one serialized JSON blob under a key of a flat
  string key-value store (fallback).

``select_backend()`` picks one at startup; the memory store holds on to that
choice for the rest of the process.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import aiosqlite
from pydantic import ValidationError

from agentcore.logging import get_logger
from agentcore.memory.exceptions import PersistenceError
from agentcore.memory.models import MemoryItem, TaskHistory, utc_now

logger = get_logger("agentcore.memory.backends")

MEMORIES_TABLE = "memories"
TASK_HISTORY_TABLE = "task_history"
_TABLES = {MEMORIES_TABLE, TASK_HISTORY_TABLE}


class StorageBackend(ABC):
    """Persistence interface used by the memory store."""

    name: str

    @abstractmethod
    async def open(self) -> None:
        """Prepare the backend for use.

        Raises:
            PersistenceError: If the backend is unavailable
        """

    @abstractmethod
    async def load(self) -> tuple[list[MemoryItem], list[TaskHistory]]:
        """Load long-term memory and task history in stored order."""

    @abstractmethod
    async def save(self, long_term: list[MemoryItem], task_history: list[TaskHistory]) -> None:
        """Persist a snapshot of long-term memory and task history."""

    async def close(self) -> None:
        """Release backend resources."""
        logger.debug("Storage backend closed", backend=self.name)


# ============================================================================
# Record store (SQLite)
# ============================================================================


class SQLiteRecordBackend(StorageBackend):
    """Per-record store on top of an async SQLite database.

    Usage:
        backend = SQLiteRecordBackend(Path("data/memory/agent_memory.db"))
        await backend.open()
        items, history = await backend.load()
    """

    name = "sqlite"

    def __init__(self, db_path: Path):
        """Initialize the record backend.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._opened = False

    async def open(self) -> None:
        """Create the database file and schema if they don't exist."""
        if self._opened:
            return

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            schema_sql = (Path(__file__).parent / "schema.sql").read_text()

            async with aiosqlite.connect(self.db_path) as db:
                await db.executescript(schema_sql)
                await db.commit()

            self._opened = True
            logger.info("Record store opened", db_path=str(self.db_path))

        except Exception as e:
            logger.error("Failed to open record store", error=str(e))
            raise PersistenceError(self.name, f"Failed to open database: {e}") from e

    # ------------------------------------------------------------------------
    # Record primitives
    # ------------------------------------------------------------------------

    async def get(self, table: str, record_id: str) -> dict[str, Any] | None:
        """Get a single record by id."""
        self._check_table(table)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute(
                    f"SELECT record FROM {table} WHERE id = ?", (record_id,)
                ) as cursor:
                    row = await cursor.fetchone()
                    return json.loads(row[0]) if row else None
        except Exception as e:
            raise PersistenceError(self.name, f"Failed to get {table} record: {e}") from e

    async def get_all(self, table: str) -> list[dict[str, Any]]:
        """Get all records of a table in stored order."""
        self._check_table(table)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute(f"SELECT record FROM {table} ORDER BY seq ASC") as cursor:
                    rows = await cursor.fetchall()
                    return [json.loads(row[0]) for row in rows]
        except Exception as e:
            raise PersistenceError(self.name, f"Failed to read {table}: {e}") from e

    async def put(self, table: str, record: dict[str, Any], seq: int = 0) -> None:
        """Insert or replace a single record."""
        self._check_table(table)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(self._upsert_sql(table), self._row(table, record, seq))
                await db.commit()
        except Exception as e:
            raise PersistenceError(self.name, f"Failed to write {table} record: {e}") from e

    async def delete(self, table: str, record_id: str) -> None:
        """Delete a single record by id."""
        self._check_table(table)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
                await db.commit()
        except Exception as e:
            raise PersistenceError(self.name, f"Failed to delete {table} record: {e}") from e

    # ------------------------------------------------------------------------
    # Snapshot load / save
    # ------------------------------------------------------------------------

    async def load(self) -> tuple[list[MemoryItem], list[TaskHistory]]:
        """Load all memory items and task history records."""
        memory_rows = await self.get_all(MEMORIES_TABLE)
        history_rows = await self.get_all(TASK_HISTORY_TABLE)

        items = _validate_records(MemoryItem, memory_rows, self.name)
        history = _validate_records(TaskHistory, history_rows, self.name)

        logger.debug("Record store loaded", memories=len(items), task_history=len(history))
        return items, history

    async def save(self, long_term: list[MemoryItem], task_history: list[TaskHistory]) -> None:
        """Replace stored records with the given snapshot in one transaction."""
        snapshots = {
            MEMORIES_TABLE: [item.model_dump(mode="json", by_alias=True) for item in long_term],
            TASK_HISTORY_TABLE: [task.model_dump(mode="json", by_alias=True) for task in task_history],
        }

        try:
            async with aiosqlite.connect(self.db_path) as db:
                for table, records in snapshots.items():
                    key = "id" if table == MEMORIES_TABLE else "taskId"
                    keep = {record[key] for record in records}

                    async with db.execute(f"SELECT id FROM {table}") as cursor:
                        existing = {row[0] for row in await cursor.fetchall()}

                    stale = existing - keep
                    if stale:
                        await db.executemany(
                            f"DELETE FROM {table} WHERE id = ?",
                            [(record_id,) for record_id in stale],
                        )

                    await db.executemany(
                        self._upsert_sql(table),
                        [self._row(table, record, seq) for seq, record in enumerate(records)],
                    )

                await db.commit()

            logger.debug(
                "Record store saved",
                memories=len(long_term),
                task_history=len(task_history),
            )

        except Exception as e:
            raise PersistenceError(self.name, f"Failed to save snapshot: {e}") from e

    @staticmethod
    def _check_table(table: str) -> None:
        if table not in _TABLES:
            raise ValueError(f"Unknown table: {table}")

    @staticmethod
    def _upsert_sql(table: str) -> str:
        if table == MEMORIES_TABLE:
            return (
                "INSERT OR REPLACE INTO memories (id, seq, type, timestamp, record) "
                "VALUES (?, ?, ?, ?, ?)"
            )
        return (
            "INSERT OR REPLACE INTO task_history (id, seq, start_time, record) "
            "VALUES (?, ?, ?, ?)"
        )

    @staticmethod
    def _row(table: str, record: dict[str, Any], seq: int) -> tuple:
        encoded = json.dumps(record, ensure_ascii=False)
        if table == MEMORIES_TABLE:
            return (record["id"], seq, record["type"], record["timestamp"], encoded)
        return (record["taskId"], seq, record["startTime"], encoded)


# ============================================================================
# Flat key-value fallback
# ============================================================================


class JsonFileKeyValueStore:
    """Flat string key-value storage kept in a single JSON file."""

    def __init__(self, path: Path):
        """Initialize the key-value store.

        Args:
            path: Path to the JSON file holding all keys
        """
        self.path = path

    async def get_item(self, key: str) -> str | None:
        """Get the value stored under key, or None."""
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        """Store a string value under key."""
        await asyncio.to_thread(self._update, key, value)

    async def remove_item(self, key: str) -> None:
        """Remove key if present."""
        await asyncio.to_thread(self._update, key, None)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        return json.loads(self.path.read_text(encoding="utf-8") or "{}")

    def _update(self, key: str, value: str | None) -> None:
        data = self._read()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)


class KeyValueBlobBackend(StorageBackend):
    """Persists everything as one JSON blob in a flat key-value store."""

    name = "keyvalue"

    def __init__(self, store: JsonFileKeyValueStore, key: str = "agent_memory"):
        """Initialize the blob backend.

        Args:
            store: Key-value store holding the blob
            key: Key the blob is stored under
        """
        self.store = store
        self.key = key

    async def open(self) -> None:
        """Check that the key-value file can be read."""
        try:
            await self.store.get_item(self.key)
            logger.info("Key-value store opened", path=str(self.store.path), key=self.key)
        except Exception as e:
            raise PersistenceError(self.name, f"Failed to open key-value store: {e}") from e

    async def load(self) -> tuple[list[MemoryItem], list[TaskHistory]]:
        """Load the blob and decode its collections."""
        try:
            raw = await self.store.get_item(self.key)
        except Exception as e:
            raise PersistenceError(self.name, f"Failed to read blob: {e}") from e

        if not raw:
            return [], []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(self.name, f"Stored blob is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(self.name, f"Stored blob is not an object: {type(data).__name__}")

        long_term = data.get("longTermMemory") or []
        task_history = data.get("taskHistory") or []
        if not isinstance(long_term, list) or not isinstance(task_history, list):
            raise PersistenceError(self.name, "Stored blob collections must be lists")

        items = _validate_records(MemoryItem, long_term, self.name)
        history = _validate_records(TaskHistory, task_history, self.name)
        return items, history

    async def save(self, long_term: list[MemoryItem], task_history: list[TaskHistory]) -> None:
        """Serialize both collections into the blob."""
        blob = {
            "longTermMemory": [item.model_dump(mode="json", by_alias=True) for item in long_term],
            "taskHistory": [task.model_dump(mode="json", by_alias=True) for task in task_history],
            "timestamp": utc_now().isoformat(),
        }

        try:
            await self.store.set_item(self.key, json.dumps(blob, ensure_ascii=False))
        except Exception as e:
            raise PersistenceError(self.name, f"Failed to write blob: {e}") from e


# ============================================================================
# Backend selection
# ============================================================================


async def select_backend(
    db_path: Path,
    kv_path: Path,
    persistence_key: str = "agent_memory",
    use_record_store: bool = True,
) -> StorageBackend:
    """Pick the storage backend once at startup.

    Tries the SQLite record store first (when enabled) and degrades to the
    key-value blob backend if it cannot be opened.

    Args:
        db_path: SQLite database path for the record store
        kv_path: JSON file path for the key-value fallback
        persistence_key: Key of the blob in the fallback store
        use_record_store: Whether to try the record store at all

    Returns:
        StorageBackend: An opened backend

    Raises:
        PersistenceError: If neither backend can be opened
    """
    if use_record_store:
        record_backend = SQLiteRecordBackend(db_path)
        try:
            await record_backend.open()
            return record_backend
        except PersistenceError as e:
            logger.warning("Record store unavailable, falling back to key-value storage", error=str(e))

    fallback = KeyValueBlobBackend(JsonFileKeyValueStore(kv_path), key=persistence_key)
    await fallback.open()
    return fallback


def _validate_records(model: type, records: list[Any], backend: str) -> list:
    """Validate stored records, skipping (and logging) any that are corrupt."""
    valid = []
    for record in records:
        try:
            valid.append(model.model_validate(record))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid stored record",
                backend=backend,
                model=model.__name__,
                error=str(e),
            )
    return valid
