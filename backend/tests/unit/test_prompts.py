"""
Tests for prompt rendering.

WHAT: Test the manager system prompt, tool declaration and transcript mapping
WHY: Ensure prompts carry the price bounds and the forced tool
HOW: Snapshot-style assertions on rendered prompts
"""

import pytest

from aabarnam.core.config import settings
from aabarnam.models.negotiation import ConversationState
from aabarnam.negotiation.prompts import PRICE_TOOL, PRICE_TOOL_NAME, render_manager_prompt
from aabarnam.utils.history_truncation import truncate_history


def make_state(history=None) -> ConversationState:
    return ConversationState(
        product_name="Peacock Jhumka",
        listed_price=48250,
        floor_price=41003,
        asking_price=47250,
        history=history or [],
    )


@pytest.mark.unit
class TestManagerPrompt:
    """Test manager prompt rendering."""

    def test_system_prompt_contains_bounds(self):
        content = render_manager_prompt(make_state())[0]["content"]

        assert "Peacock Jhumka" in content
        assert "₹48250" in content
        assert "₹47250" in content
        assert "₹41003" in content
        assert PRICE_TOOL_NAME in content

    def test_transcript_roles(self):
        history = [
            {"speaker": "manager", "text": "Namaste!"},
            {"speaker": "customer", "text": "40000?"},
            {"speaker": "system", "text": "SYSTEM NOTE: the customer is hesitating."},
        ]
        messages = render_manager_prompt(make_state(history))

        assert [m["role"] for m in messages] == ["system", "assistant", "user", "user"]
        assert messages[-1]["content"].startswith("SYSTEM NOTE")

    def test_long_history_is_trimmed(self, monkeypatch):
        monkeypatch.setattr(settings, "NEGOTIATION_HISTORY_LIMIT", 4)
        history = [{"speaker": "customer", "text": f"offer {i}"} for i in range(10)]

        messages = render_manager_prompt(make_state(history))

        assert len(messages) == 5
        assert messages[-1]["content"] == "offer 9"


@pytest.mark.unit
def test_price_tool_schema():
    function = PRICE_TOOL["function"]

    assert function["name"] == "update_live_price"
    assert function["parameters"]["required"] == ["message", "final_rounded_price", "status"]
    assert function["parameters"]["properties"]["status"]["enum"] == ["negotiating", "accepted", "rejected"]


@pytest.mark.unit
class TestHistoryTruncation:

    def test_empty(self):
        assert truncate_history([]) == []

    def test_char_limit_keeps_newest(self):
        history = [{"speaker": "customer", "text": "x" * 100} for _ in range(5)]
        history.append({"speaker": "customer", "text": "latest"})

        kept = truncate_history(history, max_turns=20, max_chars=150)

        assert kept[-1]["text"] == "latest"
        assert sum(len(t["text"]) for t in kept) <= 150

    def test_oversized_newest_turn_survives(self):
        history = [{"speaker": "customer", "text": "y" * 500}]
        assert truncate_history(history, max_chars=10) == history
