"""Heuristic deciding whether a chat message should become an agent run.

The check is a plain case-insensitive substring match against keywords that
suggest multi-step work (searching, analysing, executing, ...). It is cheap
and side-effect free, so callers can run it on every chat turn.
"""

from agentcore.logging import get_logger

logger = get_logger("agentcore.agent.admission")

# Keywords that indicate a complex, multi-step task (Japanese and English)
AGENT_KEYWORDS: tuple[str, ...] = (
    "調べて",
    "検索して",
    "分析して",
    "まとめて",
    "確認して",
    "実行して",
    "計算して",
    "処理して",
    "複数",
    "ステップ",
    "段階的に",
    "analyze",
    "search",
    "execute",
    "process",
    "multi-step",
    "step by step",
)


def matched_keywords(message: str) -> list[str]:
    """Keywords found in message (case-insensitive)."""
    message_lower = message.lower()
    return [keyword for keyword in AGENT_KEYWORDS if keyword in message_lower]


def should_use_agent(message: str, enabled: bool = True) -> bool:
    """Decide whether a message should be handled by an agent run.

    Args:
        message: The user's chat message
        enabled: Global agent feature flag; False always returns False

    Returns:
        bool: True if the message contains an agent keyword
    """
    if not enabled:
        return False

    matches = matched_keywords(message)
    if matches:
        logger.debug("Agent run suggested", keywords=matches)
    return bool(matches)
