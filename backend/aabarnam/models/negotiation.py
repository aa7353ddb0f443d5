"""
Negotiation domain models.

WHAT: Session states, conversation turns, arbiter input and decisions
WHY: Shared contract between the session, both arbiters and the safeguard
HOW: Enum + TypedDict + dataclasses; prices are whole rupees
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Literal, Optional, TypedDict


class SessionState(str, Enum):
    """Lifecycle of one bargaining session."""
    INIT = "init"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"
    ABANDONED = "abandoned"


DecisionStatus = Literal["negotiating", "accepted"]
NudgeKind = Literal["hesitating", "leaving"]


class Turn(TypedDict):
    """One entry of the conversation transcript."""
    speaker: Literal["customer", "manager", "system"]
    text: str


# Synthetic notes injected into the conversation for proactive nudges
NUDGE_NOTES = {
    "hesitating": "SYSTEM NOTE: The customer is hesitating. Proactively offer a very small discount.",
    "leaving": "SYSTEM NOTE: The customer is leaving! Make a 'wait, don't go' counter-offer right now.",
}


@dataclass
class ConversationState:
    """
    Everything an arbiter may look at to make one decision.

    floor_price is included so the external arbiter can be told its walk-away
    point; it must never be echoed to the customer.
    """
    product_name: str
    listed_price: int
    floor_price: int
    asking_price: int
    history: List[Turn] = field(default_factory=list)
    latest_text: str = ""
    nudge: Optional[NudgeKind] = None


@dataclass(frozen=True)
class Decision:
    """Arbiter output: reply text, status and the proposed whole-rupee price."""
    message: str
    status: DecisionStatus
    proposed_price: Optional[int]
    source: str = "fallback"

    @property
    def accepted(self) -> bool:
        return self.status == "accepted"

    def with_price(self, price: int, message: Optional[str] = None, status: Optional[DecisionStatus] = None) -> "Decision":
        return replace(
            self,
            proposed_price=price,
            message=self.message if message is None else message,
            status=self.status if status is None else status,
        )
