"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import health, sync
from core.config import settings
from core.logging import setup_logging
from api.middleware import RequestContextMiddleware
from sync.service import build_orchestrator, close_orchestrator
import logging

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Collection Sync API",
    description="Keeps the FFXIV collection tables in step with xivapi and FFXIV Collect",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(sync.router)


@app.on_event("startup")
async def startup_event():
    """Build the orchestrator, restore its state and arm auto-sync timers"""
    logger.info("Starting Collection Sync API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Persistence backend: {settings.PERSISTENCE_BACKEND}")

    # Already provided (tests, embedding applications)
    if getattr(app.state, "orchestrator", None) is not None:
        app.state.owns_orchestrator = False
        return

    orchestrator = build_orchestrator(settings)
    await orchestrator.load_sync_state()

    if settings.SCHEDULER_ENABLED:
        orchestrator.start_scheduled_syncs()

    app.state.orchestrator = orchestrator
    app.state.owns_orchestrator = True


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Collection Sync API")
    if getattr(app.state, "owns_orchestrator", False):
        await close_orchestrator(app.state.orchestrator)
        app.state.orchestrator = None


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Collection Sync API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "status": "/sync/status",
            "history": "/sync/history",
            "sync_all": "/sync/all",
            "sync_table": "/sync/{table}"
        }
    }
