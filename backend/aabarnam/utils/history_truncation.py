"""
Conversation history truncation utilities.

WHAT: Trim a negotiation transcript before it is sent to the LLM
WHY: Long haggles would otherwise grow the prompt without bound
HOW: Keep the most recent turns while respecting a character limit
"""

from typing import List

from ..models.negotiation import Turn
from ..utils.logger import get_logger

logger = get_logger(__name__)


def truncate_history(
    history: List[Turn],
    max_turns: int = 20,
    max_chars: int = 6000
) -> List[Turn]:
    """
    Keep the most recent turns that fit within the limits.

    The newest turn is always kept, even if it alone exceeds max_chars.

    Args:
        history: Full transcript
        max_turns: Maximum number of turns to keep
        max_chars: Maximum total characters across kept turns

    Returns:
        Truncated copy of the transcript
    """
    if not history:
        return []

    truncated = list(history[-max_turns:]) if max_turns > 0 else list(history[-1:])
    total_chars = sum(len(turn["text"]) for turn in truncated)

    while total_chars > max_chars and len(truncated) > 1:
        removed = truncated.pop(0)
        total_chars -= len(removed["text"])

    if len(truncated) < len(history):
        logger.debug(
            f"Truncated negotiation history: {len(history)} -> {len(truncated)} turns "
            f"({total_chars}/{max_chars} chars)"
        )

    return truncated
