"""Tests for memory data models."""

from agentcore.memory.models import (
    MemoryExport,
    MemoryItem,
    MemoryType,
    TaskHistory,
    content_to_string,
)


class TestMemoryItem:
    """Test the MemoryItem model."""

    def test_defaults(self):
        """Test generated id and timestamp."""
        item = MemoryItem(type=MemoryType.OBSERVATION, content="x")

        assert item.id.startswith("mem_")
        assert item.timestamp.tzinfo is not None
        assert item.metadata == {}

    def test_is_important(self):
        """Test which items are promoted on eviction."""
        assert MemoryItem(type=MemoryType.RESULT).is_important
        assert MemoryItem(type=MemoryType.THOUGHT, metadata={"important": True}).is_important
        assert not MemoryItem(type=MemoryType.THOUGHT, metadata={"important": "yes"}).is_important
        assert not MemoryItem(type=MemoryType.ACTION).is_important

    def test_camel_case_dump(self):
        """Test the persisted key layout."""
        task = TaskHistory(goal="g")

        data = task.model_dump(mode="json", by_alias=True)

        assert {"taskId", "startTime", "endTime"} <= set(data)

    def test_validate_from_camel_case(self):
        """Test loading records written with camelCase keys."""
        task = TaskHistory.model_validate(
            {
                "taskId": "task_1",
                "goal": "g",
                "startTime": "2024-05-01T10:00:00Z",
                "endTime": "2024-05-01T10:00:30Z",
                "success": True,
                "iterations": 3,
                "summary": "done",
            }
        )

        assert task.task_id == "task_1"
        assert task.duration_s == 30


class TestMemoryExport:
    """Test the export envelope."""

    def test_missing_collections(self):
        """Test that absent collections stay None (and are not imported)."""
        export = MemoryExport.model_validate({"version": "1.0"})

        assert export.long_term_memory is None
        assert export.task_history is None


class TestContentToString:
    """Test rendering memory content as text."""

    def test_strings_pass_through(self):
        assert content_to_string("plain") == "plain"

    def test_json_encoding(self):
        assert content_to_string({"a": "日本"}) == '{"a": "日本"}'

    def test_scalars(self):
        assert content_to_string(3) == "3"
        assert content_to_string(None) == "null"
