"""
Product price endpoint.

WHAT: Live display price for one product
WHY: Catalog pages show a price computed from today's rates
HOW: quote_product against the app's rate store; 2-decimal strings out
"""

from fastapi import APIRouter, Request

from ....models.api_schemas import ProductPriceResponse
from ....services.product_catalog import quote_product

router = APIRouter()


@router.get("/products/{product_id}/price", response_model=ProductPriceResponse)
def product_price(product_id: int, request: Request):
    """
    Price breakdown for a product at current rates.

    A breakdown computed with a missing rate is returned with degraded=true
    rather than refused; negotiation is what refuses it.

    Raises:
        ProductNotFoundException: Unknown product id
    """
    product, breakdown = quote_product(product_id, rate_store=request.app.state.rate_sync.rate_store)
    return ProductPriceResponse(name=product.name, **breakdown.to_display())
