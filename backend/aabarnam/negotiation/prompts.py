"""
Prompt templates for the shop-manager arbiter.

WHAT: System prompt, tool declaration and transcript rendering
WHY: Consistent persona and pricing rules on every external call
HOW: Template strings with context injection, return ChatMessage lists
"""

from typing import List

from ..core.config import settings
from ..llm.types import ChatMessage, ToolSpec
from ..models.negotiation import ConversationState
from ..utils.history_truncation import truncate_history

PRICE_TOOL_NAME = "update_live_price"

PRICE_TOOL: ToolSpec = {
    "type": "function",
    "function": {
        "name": PRICE_TOOL_NAME,
        "description": "Updates the customer's screen instantly with a new negotiated price.",
        "parameters": {
            "type": "object",
            "properties": {
                "message": {
                    "type": "string",
                    "description": "Your conversational, persuasive reply.",
                },
                "final_rounded_price": {
                    "type": "number",
                    "description": "The final total price offered to the customer. MUST BE A ROUNDED INTEGER.",
                },
                "status": {
                    "type": "string",
                    "enum": ["negotiating", "accepted", "rejected"],
                    "description": "Must be 'negotiating', 'accepted', or 'rejected'.",
                },
            },
            "required": ["message", "final_rounded_price", "status"],
        },
    },
}


def render_manager_prompt(state: ConversationState) -> List[ChatMessage]:
    """
    Render the manager persona prompt followed by the recent transcript.

    Customer turns and system notes become user messages, manager turns
    become assistant messages.
    """
    system_prompt = f"""You are a polite but shrewd Indian jewelry store manager for 'Aabarnam'.
- Product: {state.product_name}
- Official Retail Price: ₹{state.listed_price}
- Your current asking price: ₹{state.asking_price}
- Your Absolute Walk-Away Floor Price: ₹{state.floor_price}. YOU MUST NEVER SELL BELOW THIS NUMBER.

STRICT NEGOTIATION RULES:
1. Speak naturally like a real human shopkeeper. Keep replies under 60 words.
2. PROTECT THE PROFIT MARGIN. Make VERY SMALL concessions (e.g., drop by just ₹50 to ₹300 at a time).
3. Never offer a price higher than your current asking price of ₹{state.asking_price}.
4. If the customer's offer is at or above your floor, you may accept it graciously with status 'accepted'.
5. If they bid below your floor, act politely offended and state a price just above the floor. Never mention the word "floor" or reveal that number as a limit.
6. ALWAYS round off the final price to the nearest whole Rupee. No decimals.
7. You MUST use the {PRICE_TOOL_NAME} tool."""

    messages: List[ChatMessage] = [{"role": "system", "content": system_prompt}]

    for turn in truncate_history(state.history, max_turns=settings.NEGOTIATION_HISTORY_LIMIT):
        role = "assistant" if turn["speaker"] == "manager" else "user"
        messages.append({"role": role, "content": turn["text"]})

    return messages
