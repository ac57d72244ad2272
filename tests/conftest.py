"""Pytest configuration and fixtures for AgentCore tests."""

from pathlib import Path

import pytest

from agentcore.config import Settings
from agentcore.memory import MemoryStore
from agentcore.memory.backends import JsonFileKeyValueStore, KeyValueBlobBackend, SQLiteRecordBackend


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Isolated data directory for one test."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def test_settings(temp_data_dir: Path) -> Settings:
    """Create test settings with isolated data directory."""
    return Settings(
        _env_file=None,
        data_dir=temp_data_dir,
        log_level="DEBUG",
    )


@pytest.fixture
def memory_store() -> MemoryStore:
    """In-memory store (no persistence backend)."""
    return MemoryStore()


@pytest.fixture
async def sqlite_store(tmp_path: Path):
    """Initialized store persisting to a temporary SQLite database."""
    store = MemoryStore(backend=SQLiteRecordBackend(tmp_path / "memory.db"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def kv_backend(tmp_path: Path) -> KeyValueBlobBackend:
    """Key-value blob backend on a temporary JSON file."""
    return KeyValueBlobBackend(JsonFileKeyValueStore(tmp_path / "storage.json"))
