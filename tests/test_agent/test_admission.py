"""Tests for the agent admission heuristic."""

import pytest

from agentcore.agent.admission import AGENT_KEYWORDS, matched_keywords, should_use_agent


class TestShouldUseAgent:
    """Test deciding when a chat turn becomes an agent run."""

    def test_japanese_task_request(self):
        """Test a request to look something up."""
        assert should_use_agent("明日の天気を調べて") is True

    def test_greeting(self):
        """Test that small talk stays a chat turn."""
        assert should_use_agent("こんにちは") is False

    @pytest.mark.parametrize("message", ["明日の天気を調べて", "こんにちは"])
    def test_feature_flag_off(self, message):
        """Test that the global flag forces False."""
        assert should_use_agent(message, enabled=False) is False

    @pytest.mark.parametrize(
        "message",
        ["Please ANALYZE these logs", "search for flights", "walk me through it step by step"],
    )
    def test_english_keywords_case_insensitive(self, message):
        """Test English keywords in any case."""
        assert should_use_agent(message) is True

    def test_matched_keywords(self):
        """Test reporting which keywords matched."""
        assert matched_keywords("複数のファイルを分析して") == ["分析して", "複数"]
        assert matched_keywords("hello") == []

    def test_keyword_list(self):
        """Test the size of the keyword list."""
        assert len(AGENT_KEYWORDS) == 17
