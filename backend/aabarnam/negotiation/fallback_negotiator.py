"""
Deterministic fallback negotiator.

WHAT: Rule-based manager used whenever the external arbiter is unavailable
WHY: The customer must still get a sensible counter-offer
HOW: Parse the offer, then walk the rules below in whole rupees

Rules:
    no number     -> hold the current ask and ask for a figure; a nudge
                     drops the ask by a small step, never under the floor
    offer >= list -> accept at a courtesy discount off the listed price
    offer >= ask  -> accept at the current ask
    floor..ask    -> counter max(offer, ask - step); accept if that is the offer
    offer < floor -> hold at the floor without calling it one
"""

from decimal import Decimal
from typing import Optional

from ..core.config import settings
from ..models.negotiation import ConversationState, Decision
from ..utils.money import to_rupees
from ..utils.offers import extract_offer_amount, format_rupees


class FallbackNegotiator:
    """Arbiter implementation with no external dependencies."""

    def __init__(
        self,
        counter_step: Optional[int] = None,
        nudge_step: Optional[int] = None,
        courtesy_discount_pct: Optional[float] = None,
    ):
        self.counter_step = counter_step if counter_step is not None else settings.FALLBACK_COUNTER_STEP
        self.nudge_step = nudge_step if nudge_step is not None else settings.FALLBACK_NUDGE_STEP
        self.courtesy_discount_pct = (
            courtesy_discount_pct if courtesy_discount_pct is not None else settings.COURTESY_DISCOUNT_PCT
        )

    async def decide(self, state: ConversationState) -> Decision:
        return self.decide_now(state)

    def decide_now(self, state: ConversationState) -> Decision:
        """Synchronous decision; never raises for well-formed state."""
        ask = max(state.asking_price, state.floor_price)

        offer = None if state.nudge else extract_offer_amount(state.latest_text)

        if offer is None:
            return self._without_offer(state, ask)

        if offer >= state.listed_price:
            courtesy = to_rupees(
                Decimal(state.listed_price) * (1 - Decimal(str(self.courtesy_discount_pct)) / 100)
            )
            price = min(max(courtesy, state.floor_price), ask)
            return self._decision(
                f"You have a good eye! As a courtesy I will make it {format_rupees(price)}. It's yours.",
                "accepted",
                price,
            )

        if offer >= ask:
            return self._decision(
                f"Done! {format_rupees(ask)} it is. Congratulations on a beautiful piece.",
                "accepted",
                ask,
            )

        if offer < state.floor_price:
            return self._decision(
                f"Ah, I could never let it go for that. "
                f"The very best I can do is {format_rupees(state.floor_price)}.",
                "negotiating",
                state.floor_price,
            )

        counter = max(offer, ask - self.counter_step)
        if counter == offer:
            return self._decision(
                f"You drive a hard bargain! {format_rupees(offer)}, we have a deal.",
                "accepted",
                offer,
            )
        return self._decision(
            f"I cannot go that low, but for you I can come down to {format_rupees(counter)}.",
            "negotiating",
            counter,
        )

    def _without_offer(self, state: ConversationState, ask: int) -> Decision:
        if state.nudge:
            price = max(ask - self.nudge_step, state.floor_price)
            if state.nudge == "leaving":
                text = f"Wait, don't go! Let me make it {format_rupees(price)}, just for you."
            else:
                text = f"Let me sweeten it a little. I can do {format_rupees(price)} for you today."
            return self._decision(text, "negotiating", price)

        return self._decision(
            f"The price right now is {format_rupees(ask)}. What figure did you have in mind?",
            "negotiating",
            ask,
        )

    @staticmethod
    def _decision(message: str, status: str, price: int) -> Decision:
        return Decision(message=message, status=status, proposed_price=price, source="fallback")
