"""
FastAPI dependencies
"""

from fastapi import HTTPException, Request, status
from sync.orchestrator import SyncOrchestrator


def get_orchestrator(request: Request) -> SyncOrchestrator:
    """Orchestrator created at application startup"""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sync service not initialised"
        )
    return orchestrator


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")
