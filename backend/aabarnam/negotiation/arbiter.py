"""
Arbiter contract.

WHAT: The one-method interface every negotiation decision-maker implements
WHY: Sessions swap between the external LLM arbiter and the deterministic
     fallback without knowing which one answered
HOW: typing.Protocol plus the failure signal the session falls back on
"""

from typing import Protocol

from ..models.negotiation import ConversationState, Decision


class ArbiterUnavailableError(Exception):
    """The external arbiter could not produce a usable decision."""
    pass


class Arbiter(Protocol):
    """Decide the manager's next reply and price."""

    async def decide(self, state: ConversationState) -> Decision:
        """
        Produce the next decision for a conversation.

        Raises:
            ArbiterUnavailableError: No trustworthy decision could be produced
        """
        ...
