"""
Status and health check endpoints.

WHAT: Health monitoring for the LLM provider, database and rate sync
WHY: Quick diagnostics for the storefront and ops
HOW: FastAPI endpoints calling provider ping and DB ping
"""

from fastapi import APIRouter, Request

from ....llm.provider_factory import get_provider
from ....core.database import ping_database
from ....core.config import settings
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _llm_status() -> dict:
    try:
        provider = get_provider()
        status = await provider.ping()
        return {
            "available": status.available,
            "base_url": status.base_url,
            "models": status.models,
            "error": status.error
        }
    except Exception as e:
        logger.error(f"Failed to get LLM status: {e}")
        return {
            "available": False,
            "base_url": "unknown",
            "models": None,
            "error": str(e)
        }


@router.get("/llm/status")
async def llm_status():
    """
    Check LLM provider status.

    Negotiations keep working when this reports unavailable; the
    deterministic fallback answers instead.
    """
    return {
        "provider": settings.LLM_PROVIDER,
        "llm": await _llm_status(),
        "database": ping_database()
    }


@router.get("/health")
async def health_check(request: Request):
    """
    Overall application health check.

    WHAT: Component status plus live session count and last sync outcome
    WHY: Ops and monitoring tools need one endpoint
    HOW: Aggregate LLM, DB and app.state services

    Returns:
        JSON with "healthy" when DB and LLM are both up, "degraded" otherwise
    """
    llm = await _llm_status()
    db_status = ping_database()

    rate_sync = request.app.state.rate_sync
    last_sync = rate_sync.last_result

    healthy = llm["available"] and db_status["available"]

    return {
        "status": "healthy" if healthy else "degraded",
        "version": settings.APP_VERSION,
        "app_name": settings.APP_NAME,
        "components": {
            "llm": {
                "available": llm["available"],
                "provider": settings.LLM_PROVIDER
            },
            "database": {
                "available": db_status["available"]
            },
            "rate_sync": {
                "interval_hours": rate_sync.config.interval_hours,
                "last_success": last_sync.success if last_sync else None,
                "last_degraded": last_sync.degraded if last_sync else None,
                "last_synced_at": last_sync.synced_at.isoformat() if last_sync else None
            },
            "negotiations": {
                "active_sessions": request.app.state.sessions.active_count
            }
        }
    }
