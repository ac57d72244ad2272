"""Tests for memory storage backends."""

import json
from pathlib import Path

import pytest

from agentcore.memory import (
    JsonFileKeyValueStore,
    KeyValueBlobBackend,
    MemoryItem,
    MemoryStore,
    MemoryType,
    PersistenceError,
    SQLiteRecordBackend,
    TaskHistory,
    select_backend,
)


@pytest.fixture
async def record_backend(tmp_path: Path):
    """Opened SQLite record backend."""
    backend = SQLiteRecordBackend(tmp_path / "memory" / "agent_memory.db")
    await backend.open()
    yield backend
    await backend.close()


class TestSQLiteRecordBackend:
    """Test the per-record SQLite backend."""

    @pytest.mark.asyncio
    async def test_open_creates_database(self, record_backend):
        """Test that open() creates the file and schema."""
        assert record_backend.db_path.exists()
        assert await record_backend.get_all("memories") == []
        assert await record_backend.get_all("task_history") == []

    @pytest.mark.asyncio
    async def test_save_and_load(self, record_backend):
        """Test a snapshot round trip in stored order."""
        items = [MemoryItem(type=MemoryType.RESULT, content={"n": i}) for i in range(3)]
        history = [TaskHistory(goal="research X", success=True, iterations=2)]

        await record_backend.save(items, history)
        loaded_items, loaded_history = await record_backend.load()

        assert [item.id for item in loaded_items] == [item.id for item in items]
        assert loaded_items[1].content == {"n": 1}
        assert loaded_history[0].task_id == history[0].task_id
        assert loaded_history[0].iterations == 2

    @pytest.mark.asyncio
    async def test_save_removes_stale_records(self, record_backend):
        """Test that records missing from a snapshot are deleted."""
        first = MemoryItem(type=MemoryType.CONTEXT, content="first")
        second = MemoryItem(type=MemoryType.CONTEXT, content="second")
        await record_backend.save([first, second], [])

        await record_backend.save([second], [])
        loaded_items, _ = await record_backend.load()

        assert [item.id for item in loaded_items] == [second.id]
        assert await record_backend.get("memories", first.id) is None

    @pytest.mark.asyncio
    async def test_record_primitives(self, record_backend):
        """Test get/put/delete of single records."""
        item = MemoryItem(type=MemoryType.THOUGHT, content="single")
        record = item.model_dump(mode="json", by_alias=True)

        await record_backend.put("memories", record)
        assert (await record_backend.get("memories", item.id))["content"] == "single"

        await record_backend.delete("memories", item.id)
        assert await record_backend.get("memories", item.id) is None

    @pytest.mark.asyncio
    async def test_unknown_table(self, record_backend):
        """Test that only known tables are accepted."""
        with pytest.raises(ValueError):
            await record_backend.get_all("sqlite_master")

    @pytest.mark.asyncio
    async def test_corrupt_records_are_skipped(self, record_backend):
        """Test that invalid stored rows do not break loading."""
        good = MemoryItem(type=MemoryType.RESULT, content="ok")
        await record_backend.put("memories", good.model_dump(mode="json", by_alias=True), seq=0)
        await record_backend.put(
            "memories",
            {"id": "mem_bad", "type": "unknown", "timestamp": "2024-01-01T00:00:00Z"},
            seq=1,
        )

        items, _ = await record_backend.load()

        assert [item.id for item in items] == [good.id]

    @pytest.mark.asyncio
    async def test_open_failure(self, tmp_path):
        """Test that an unusable path raises PersistenceError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        backend = SQLiteRecordBackend(blocker / "agent_memory.db")

        with pytest.raises(PersistenceError):
            await backend.open()


class TestKeyValueBlobBackend:
    """Test the JSON blob fallback backend."""

    @pytest.mark.asyncio
    async def test_load_empty(self, kv_backend):
        """Test loading before anything was saved."""
        await kv_backend.open()

        assert await kv_backend.load() == ([], [])

    @pytest.mark.asyncio
    async def test_save_and_load(self, kv_backend):
        """Test a snapshot round trip through the blob."""
        items = [MemoryItem(type=MemoryType.CONTEXT, content="blob")]
        history = [TaskHistory(goal="g", success=False)]

        await kv_backend.save(items, history)
        loaded_items, loaded_history = await kv_backend.load()

        assert loaded_items[0].id == items[0].id
        assert loaded_history[0].task_id == history[0].task_id

    @pytest.mark.asyncio
    async def test_blob_layout(self, kv_backend):
        """Test that the blob is stored under its key with camelCase fields."""
        await kv_backend.save([MemoryItem(type=MemoryType.CONTEXT, content="x")], [])

        raw = json.loads(kv_backend.store.path.read_text())
        blob = json.loads(raw["agent_memory"])

        assert set(blob) == {"longTermMemory", "taskHistory", "timestamp"}

    @pytest.mark.asyncio
    async def test_invalid_blob(self, kv_backend):
        """Test that a corrupt blob raises PersistenceError."""
        await kv_backend.store.set_item("agent_memory", "{broken")

        with pytest.raises(PersistenceError):
            await kv_backend.load()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("blob", ["[1, 2]", '"text"', '{"longTermMemory": 5}'])
    async def test_blob_with_wrong_shape(self, kv_backend, blob):
        """Test that valid JSON of the wrong shape raises PersistenceError."""
        await kv_backend.store.set_item("agent_memory", blob)

        with pytest.raises(PersistenceError):
            await kv_backend.load()

    @pytest.mark.asyncio
    async def test_store_survives_wrong_shape(self, kv_backend):
        """Test that a store over an unreadable blob still initializes."""
        await kv_backend.store.set_item("agent_memory", "[1, 2]")
        store = MemoryStore(backend=kv_backend)

        await store.initialize()

        assert store.initialized is True
        assert store.get_long_term_size() == 0
        await store.close()


class TestJsonFileKeyValueStore:
    """Test the flat key-value file."""

    @pytest.mark.asyncio
    async def test_set_get_remove(self, tmp_path):
        """Test basic key operations."""
        store = JsonFileKeyValueStore(tmp_path / "kv" / "storage.json")

        assert await store.get_item("a") is None
        await store.set_item("a", "1")
        await store.set_item("b", "2")
        assert await store.get_item("a") == "1"

        await store.remove_item("a")
        assert await store.get_item("a") is None
        assert await store.get_item("b") == "2"


class TestSelectBackend:
    """Test backend selection at startup."""

    @pytest.mark.asyncio
    async def test_prefers_record_store(self, tmp_path):
        """Test that the SQLite store is chosen when available."""
        backend = await select_backend(tmp_path / "a.db", tmp_path / "storage.json")

        assert backend.name == "sqlite"

    @pytest.mark.asyncio
    async def test_falls_back_to_key_value(self, tmp_path):
        """Test degrading to the blob backend when SQLite cannot open."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        backend = await select_backend(blocker / "a.db", tmp_path / "storage.json", persistence_key="mem")

        assert backend.name == "keyvalue"
        assert backend.key == "mem"

    @pytest.mark.asyncio
    async def test_record_store_disabled(self, tmp_path):
        """Test that the record store can be switched off."""
        backend = await select_backend(tmp_path / "a.db", tmp_path / "storage.json", use_record_store=False)

        assert backend.name == "keyvalue"
        assert not (tmp_path / "a.db").exists()
