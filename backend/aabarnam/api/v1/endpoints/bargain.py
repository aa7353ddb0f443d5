"""
One-shot bargain endpoint.

WHAT: Answer a single bid for a product without opening a negotiation
WHY: Catalog pages can quote "would you take X?" without a WebSocket
HOW: Deterministic fallback rules against the opening price, clamped by
     the safeguard; nothing is stored between calls
"""

from fastapi import APIRouter, Request

from ....models.api_schemas import BargainRequest, BargainResponse
from ....models.negotiation import ConversationState
from ....negotiation.fallback_negotiator import FallbackNegotiator
from ....negotiation.safeguard import SafeguardEnforcer
from ....services.product_catalog import quote_product
from ....utils.exceptions import PricingDataError
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

_negotiator = FallbackNegotiator()
_safeguard = SafeguardEnforcer()


@router.post("/bargain", response_model=BargainResponse)
def bargain(body: BargainRequest, request: Request):
    """
    Counter a single bid.

    Raises:
        ProductNotFoundException: Unknown product id
        PricingDataError: A required metal rate is missing or zero
    """
    product, breakdown = quote_product(body.product_id, rate_store=request.app.state.rate_sync.rate_store)
    if breakdown.degraded:
        raise PricingDataError(product.id, list(breakdown.rate_faults))

    state = ConversationState(
        product_name=product.name,
        listed_price=breakdown.listed_price,
        floor_price=breakdown.floor_price,
        asking_price=breakdown.opening_price,
        history=[{"speaker": "customer", "text": body.user_bid}],
        latest_text=body.user_bid,
    )
    decision = _safeguard.enforce(
        _negotiator.decide_now(state), breakdown.floor_price, ceiling=breakdown.opening_price
    )

    logger.info(f"Bargain on product {product.id}: ₹{decision.proposed_price} ({decision.status})")
    return BargainResponse(
        response_message=decision.message,
        status=decision.status,
        counter_offer=decision.proposed_price,
        listed_price=breakdown.listed_price,
    )
