"""
Metal rate endpoints.

WHAT: Read, override and synchronize per-gram metal rates; SSE rate ticker
WHY: Admin screens set rates, storefront tickers display them
HOW: Plain `def` endpoints (DB + blocking HTTP run in the threadpool);
     RateSyncService pulled from app.state
"""

import asyncio
import json
from datetime import datetime
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from ....core.config import settings
from ....models.api_schemas import (
    RateOut,
    RateOverrideRequest,
    RatesResponse,
    SyncConfigRequest,
    SyncConfigResponse,
    SyncRequest,
    SyncResponse,
)
from ....services.rate_store import RateStore
from ....services.rate_sync import RateSyncService
from ....utils.money import display_str
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_rate_sync(request: Request) -> RateSyncService:
    return request.app.state.rate_sync


def _rates_response(rate_store: RateStore) -> RatesResponse:
    return RatesResponse(rates=[RateOut.from_row(row) for row in rate_store.list_rates()])


def _config_response(rate_sync: RateSyncService) -> SyncConfigResponse:
    config = rate_sync.config
    return SyncConfigResponse(
        interval=config.interval_hours,
        premium=config.premium_pct,
        enabled=config.interval_hours > 0,
        next_run_time=rate_sync.next_run_time(),
    )


@router.get("/rates", response_model=RatesResponse)
def list_rates(rate_sync: RateSyncService = Depends(get_rate_sync)):
    """Current rate per grade with previous rate and trend."""
    return _rates_response(rate_sync.rate_store)


@router.post("/rates", response_model=RatesResponse)
def override_rates(body: RateOverrideRequest, rate_sync: RateSyncService = Depends(get_rate_sync)):
    """
    Manually set rates for one or more grades.

    WHAT: Admin override of the synced rates
    WHY: Shops publish their own board rate some days
    HOW: One transaction; previous_rate shifted for every written grade

    Raises:
        InvalidRateException: Unknown grade (nothing written)
    """
    rates = {item.metal_type: item.rate_per_gram for item in body.rates}
    rate_sync.override(rates, updated_by="manual")
    return _rates_response(rate_sync.rate_store)


@router.get("/rates/sync-config", response_model=SyncConfigResponse)
def get_sync_config(rate_sync: RateSyncService = Depends(get_rate_sync)):
    return _config_response(rate_sync)


@router.post("/rates/sync-config", response_model=SyncConfigResponse)
def update_sync_config(body: SyncConfigRequest, rate_sync: RateSyncService = Depends(get_rate_sync)):
    """Change sync interval (hours, 0 = off) and premium; reschedules the job."""
    rate_sync.configure(body.interval, body.premium)
    return _config_response(rate_sync)


@router.post("/rates/sync", response_model=SyncResponse)
def sync_rates(body: Optional[SyncRequest] = None, rate_sync: RateSyncService = Depends(get_rate_sync)):
    """
    Run a sync right now.

    A feed outage still returns success with degraded=true; a storage
    failure returns success=false and the previous rates stay in place.
    """
    result = rate_sync.sync_now(premium_pct=body.premium if body else None)
    return SyncResponse(
        success=result.success,
        degraded=result.degraded,
        rates={grade: display_str(value) for grade, value in result.rates.items()},
        error=result.error,
        synced_at=result.synced_at,
    )


async def rate_ticker_events(
    request: Request,
    rate_store: RateStore,
    interval: float,
) -> AsyncIterator[dict]:
    """
    Generate SSE events for the rate ticker.

    Yields a "rates" event on connect and whenever the table changes,
    a "heartbeat" event otherwise.
    """
    last_signature = None
    while True:
        if await request.is_disconnected():
            logger.debug("Rate ticker client disconnected")
            return

        rows = await asyncio.to_thread(rate_store.list_rates)
        rates = [RateOut.from_row(row) for row in rows]
        signature = tuple((r.metal_type, r.rate_per_gram) for r in rates)

        if signature != last_signature:
            last_signature = signature
            yield {
                "event": "rates",
                "data": json.dumps({"rates": [r.model_dump(mode="json") for r in rates]}),
            }
        else:
            yield {
                "event": "heartbeat",
                "data": json.dumps({"timestamp": datetime.now().isoformat()}),
            }

        await asyncio.sleep(interval)


@router.get("/rates/stream")
async def stream_rates(request: Request, rate_sync: RateSyncService = Depends(get_rate_sync)):
    """Server-Sent Events rate ticker."""
    return EventSourceResponse(
        rate_ticker_events(request, rate_sync.rate_store, settings.RATE_TICKER_INTERVAL)
    )
