"""
API v1 router aggregation.

WHAT: Combine all v1 endpoint routers
WHY: Single place to register all API routes
HOW: Include routers from endpoints with prefixes
"""

from fastapi import APIRouter

from .endpoints import status, rates, products, bargain, negotiation_ws

# Create main v1 router
api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    status.router,
    prefix="/api/v1",
    tags=["status"]
)

api_router.include_router(
    rates.router,
    prefix="/api/v1",
    tags=["rates"]
)

api_router.include_router(
    products.router,
    prefix="/api/v1",
    tags=["products"]
)

api_router.include_router(
    bargain.router,
    prefix="/api/v1",
    tags=["negotiation"]
)

# WebSocket lives at the root: /ws/negotiate
api_router.include_router(
    negotiation_ws.router,
    tags=["negotiation"]
)
