"""
FastAPI application entry point.

WHAT: Main application setup and wiring
WHY: Initialize all components and routes
HOW: Create FastAPI app, attach services to app.state, register middleware,
     routers and handlers
"""

import asyncio

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .core.config import settings
from .core.database import init_db, close_db
from .core.session_manager import SessionManager
from .negotiation.external_arbiter import ExternalArbiter
from .services.rate_store import RateStore
from .services.rate_sync import RateSyncService, SyncConfig
from .utils.logger import setup_logging, get_logger
from .middleware.error_handler import register_exception_handlers
from .api.v1.router import api_router

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    WHAT: Startup and shutdown logic
    WHY: Tables and default rates must exist before the first quote;
         the sync job must not outlive the app
    HOW: Async context manager for FastAPI lifespan
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    init_db()

    rate_sync: RateSyncService = app.state.rate_sync
    rate_sync.rate_store.seed_defaults()
    rate_sync.start()
    if settings.RATE_SYNC_ON_STARTUP:
        await asyncio.to_thread(rate_sync.sync_now)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    await app.state.sessions.close_all()
    rate_sync.shutdown()
    close_db()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Build an application with its own rate sync service and session registry."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan
    )

    app.state.rate_sync = RateSyncService(
        rate_store=RateStore(),
        config=SyncConfig(
            interval_hours=settings.RATE_SYNC_INTERVAL_HOURS,
            premium_pct=settings.RATE_SYNC_PREMIUM_PCT,
        ),
    )
    app.state.sessions = SessionManager(arbiter_factory=ExternalArbiter)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    register_exception_handlers(app)

    # Include API router
    app.include_router(api_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "aabarnam.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
