"""
Safeguard enforcement.

WHAT: Final authority over every price a session emits
WHY: Neither arbiter may ever sell under the floor or walk a concession back
HOW: Clamp the proposed price into [floor, ceiling], rewrite the message on
     a floor breach, and close the session on acceptance before emission
"""

from typing import Optional, TYPE_CHECKING

from ..models.negotiation import Decision
from ..utils.offers import format_rupees
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from .session import NegotiationSession

logger = get_logger(__name__)


def final_offer_message(price: int) -> str:
    return (
        f"I wish I could do that, but my absolute rock-bottom is {format_rupees(price)}. "
        f"I cannot go a single Rupee lower."
    )


class SafeguardEnforcer:
    """Stateless price clamp applied after arbitration."""

    def enforce(self, decision: Decision, floor_price: int, ceiling: Optional[int] = None) -> Decision:
        """
        Clamp a decision's price.

        Below the floor the price becomes the floor, the message becomes the
        standard final-offer text and the status is forced to negotiating.
        Above the ceiling (the last price already offered) the price comes
        down to the ceiling and the arbiter's message and status are kept.

        Args:
            decision: Arbiter output
            floor_price: Whole-rupee floor of the session
            ceiling: Current ask, if any

        Returns:
            Possibly corrected decision
        """
        price = decision.proposed_price
        if price is None:
            return decision

        if price < floor_price:
            logger.warning(
                f"Safeguard triggered: {decision.source} arbiter proposed ₹{price} "
                f"({decision.status}), clamped to ₹{floor_price}"
            )
            return decision.with_price(floor_price, message=final_offer_message(floor_price), status="negotiating")

        if ceiling is not None and price > ceiling:
            # Never ask more than was already offered
            clamped = max(ceiling, floor_price)
            logger.info(f"Safeguard ceiling: {decision.source} arbiter proposed ₹{price}, held at ₹{clamped}")
            return decision.with_price(clamped)

        return decision

    def apply(self, session: "NegotiationSession", decision: Decision) -> Decision:
        """
        Enforce against a session's bounds and commit the result to it.

        The session is marked closed here on acceptance, before anything is
        sent to the customer.
        """
        safe = self.enforce(decision, session.floor_price, ceiling=session.asking_price)
        if safe.proposed_price is not None:
            session.asking_price = safe.proposed_price
        if safe.accepted:
            session.close_deal(safe.proposed_price)
        return safe
