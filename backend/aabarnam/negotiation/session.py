"""
Negotiation session state machine.

WHAT: One customer bargaining over one product on one connection
WHY: Owns the price bounds, the transcript and the deal lock
HOW: INIT -> NEGOTIATING -> ACCEPTED | ABANDONED; every inbound event is
     serialized by an asyncio.Lock, arbitrated (external with timeout, then
     fallback), clamped by the safeguard, then emitted
"""

import asyncio
from decimal import Decimal
from typing import Any, Awaitable, Callable, List, Optional

from .arbiter import Arbiter, ArbiterUnavailableError
from .fallback_negotiator import FallbackNegotiator
from .safeguard import SafeguardEnforcer
from ..core.config import settings
from ..models.negotiation import (
    NUDGE_NOTES,
    ConversationState,
    Decision,
    NudgeKind,
    SessionState,
    Turn,
)
from ..models.pricing import PricingPolicy
from ..services.price_calculator import rebalance_for_price
from ..services.product_catalog import ProductCatalog, quote_product
from ..services.rate_store import RateStore
from ..utils.exceptions import NegotiationNotActiveException, PricingDataError
from ..utils.money import ZERO
from ..utils.offers import format_rupees
from ..utils.logger import get_logger

logger = get_logger(__name__)

EmitCallback = Callable[[str, Any], Awaitable[None]]

OPENING_TEMPLATE = (
    "Namaste! I am the manager. The listed price for the {name} is {price}.{special} What is your offer?"
)
SPECIAL_PRICE_TEMPLATE = " Today you can take it home for {price}."
CALCULATOR_ERROR_TEXT = "Forgive me, my calculator is acting up. Could you repeat that?"


class NegotiationSession:
    """
    Per-connection bargaining session.

    Prices are whole rupees. floor_price is never sent to the customer and no
    emitted price is ever below it. asking_price only moves down.
    """

    def __init__(
        self,
        session_id: str,
        emit: EmitCallback,
        *,
        arbiter: Optional[Arbiter] = None,
        fallback: Optional[FallbackNegotiator] = None,
        safeguard: Optional[SafeguardEnforcer] = None,
        catalog: Optional[ProductCatalog] = None,
        rate_store: Optional[RateStore] = None,
        policy: Optional[PricingPolicy] = None,
        arbiter_timeout: Optional[float] = None,
        idle_seconds: Optional[float] = None,
    ):
        """
        Args:
            session_id: Connection-scoped identifier
            emit: Coroutine sending (event, payload) to the customer
            arbiter: External arbiter; None means fallback only
            fallback: Deterministic negotiator used when the arbiter fails
            safeguard: Price clamp applied to every decision
            catalog: Product reader
            rate_store: Rate snapshot source
            policy: GST / floor margin constants
            arbiter_timeout: Seconds allowed for one external decision
            idle_seconds: Silence before a hesitation nudge (0 disables)
        """
        self.session_id = session_id
        self._emit = emit
        self.arbiter = arbiter
        self.fallback = fallback or FallbackNegotiator()
        self.safeguard = safeguard or SafeguardEnforcer()
        self.catalog = catalog or ProductCatalog()
        self.rate_store = rate_store or RateStore()
        self.policy = policy or PricingPolicy.from_settings()
        self.arbiter_timeout = settings.ARBITER_TIMEOUT_SECONDS if arbiter_timeout is None else arbiter_timeout
        self.idle_seconds = settings.NEGOTIATION_IDLE_SECONDS if idle_seconds is None else idle_seconds

        self.state = SessionState.INIT
        self.deal_closed = False
        self.product_id: Optional[int] = None
        self.product_name = ""
        self.listed_price = 0
        self.floor_price = 0
        self.asking_price = 0
        self.agreed_price: Optional[int] = None
        self.base_metal_value: Decimal = ZERO
        self.making_charge: Decimal = ZERO
        self.gst_amount: Decimal = ZERO
        self.history: List[Turn] = []

        self._lock = asyncio.Lock()
        self._idle_task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.NEGOTIATING and not self.deal_closed

    # ========== Inbound events ==========

    async def start(self, product_id: int) -> None:
        """
        Price the product and open the negotiation.

        Raises:
            NegotiationNotActiveException: Session already started
            ProductNotFoundException: Unknown product
            PricingDataError: A required metal rate is missing or zero
        """
        async with self._lock:
            if self.state != SessionState.INIT:
                raise NegotiationNotActiveException(self.session_id, self.state.value)

            product, breakdown = quote_product(
                product_id, catalog=self.catalog, rate_store=self.rate_store, policy=self.policy
            )
            if breakdown.degraded:
                raise PricingDataError(product.id, list(breakdown.rate_faults))

            self.product_id = product.id
            self.product_name = product.name
            self.listed_price = breakdown.listed_price
            self.floor_price = breakdown.floor_price
            self.asking_price = breakdown.opening_price
            self.base_metal_value = breakdown.retail_metal_value
            self.making_charge = breakdown.making_charge
            self.gst_amount = breakdown.gst_amount

            special = ""
            if self.asking_price != self.listed_price:
                special = SPECIAL_PRICE_TEMPLATE.format(price=format_rupees(self.asking_price))
            text = OPENING_TEMPLATE.format(name=product.name, price=format_rupees(self.listed_price), special=special)
            self.history.append({"speaker": "manager", "text": text})
            self.state = SessionState.NEGOTIATING

            logger.info(
                f"Negotiation {self.session_id} opened for product {product.id} "
                f"(listed ₹{self.listed_price}, opening ₹{self.asking_price})"
            )
            await self._emit("system_message", {"text": text})

        self._arm_idle_timer()

    async def user_message(self, text: str) -> None:
        """Arbitrate a customer message; ignored unless negotiating."""
        self._cancel_idle_timer()
        async with self._lock:
            if not self.is_active:
                logger.debug(f"Session {self.session_id}: message ignored in state {self.state.value}")
                return
            text = (text or "").strip()
            self.history.append({"speaker": "customer", "text": text})
            await self._arbitrate(latest_text=text)

        self._arm_idle_timer()

    async def hesitate(self) -> None:
        await self._nudge("hesitating")

    async def leaving_intent(self) -> None:
        await self._nudge("leaving")

    async def disconnect(self) -> None:
        """Tear down: cancel the idle timer and abandon an open negotiation."""
        self._cancel_idle_timer()
        if self.state != SessionState.ACCEPTED:
            self.state = SessionState.ABANDONED
        logger.info(
            f"Negotiation {self.session_id} closed ({self.state.value}"
            + (f", agreed ₹{self.agreed_price})" if self.agreed_price is not None else ")")
        )

    # ========== Decision pipeline ==========

    def close_deal(self, price: Optional[int]) -> None:
        """Lock the session on acceptance; called before the decision is emitted."""
        self.deal_closed = True
        self.state = SessionState.ACCEPTED
        self.agreed_price = price
        self._cancel_idle_timer()
        logger.info(f"Negotiation {self.session_id} accepted at ₹{price}")

    async def _nudge(self, kind: NudgeKind) -> None:
        self._cancel_idle_timer()
        async with self._lock:
            if not self.is_active:
                return
            self.history.append({"speaker": "system", "text": NUDGE_NOTES[kind]})
            await self._arbitrate(nudge=kind)

    async def _arbitrate(self, latest_text: str = "", nudge: Optional[NudgeKind] = None) -> None:
        await self._emit("ai_typing", True)

        conversation = ConversationState(
            product_name=self.product_name,
            listed_price=self.listed_price,
            floor_price=self.floor_price,
            asking_price=self.asking_price,
            history=list(self.history),
            latest_text=latest_text,
            nudge=nudge,
        )

        try:
            decision = await self._decide(conversation)
            safe = self.safeguard.apply(self, decision)
        except Exception:
            logger.exception(f"Session {self.session_id}: arbitration failed")
            await self._emit("ai_typing", False)
            await self._emit("system_message", {"text": CALCULATOR_ERROR_TEXT})
            return

        self.history.append({"speaker": "manager", "text": safe.message})
        await self._emit("ai_typing", False)
        await self._emit("price_update", {
            "message": safe.message,
            "status": safe.status,
            "breakdown": rebalance_for_price(
                safe.proposed_price,
                self.base_metal_value,
                self.making_charge,
                self.policy.gst_pct,
            ),
        })

    async def _decide(self, conversation: ConversationState) -> Decision:
        if self.arbiter is not None:
            try:
                return await asyncio.wait_for(self.arbiter.decide(conversation), timeout=self.arbiter_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Session {self.session_id}: arbiter timed out after {self.arbiter_timeout}s, using fallback"
                )
            except ArbiterUnavailableError as e:
                logger.warning(f"Session {self.session_id}: arbiter unavailable ({e}), using fallback")
        return self.fallback.decide_now(conversation)

    # ========== Idle timer ==========

    def _arm_idle_timer(self) -> None:
        if self.idle_seconds <= 0 or not self.is_active:
            return
        self._cancel_idle_timer()
        self._idle_task = asyncio.create_task(self._idle_wait())

    def _cancel_idle_timer(self) -> None:
        task = self._idle_task
        self._idle_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _idle_wait(self) -> None:
        await asyncio.sleep(self.idle_seconds)
        self._idle_task = None
        try:
            await self.hesitate()
        except Exception as e:
            # Connection may already be gone; disconnect() cleans up
            logger.warning(f"Session {self.session_id}: idle nudge failed: {e}")
