"""
Health check endpoint with storage and sync status
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_orchestrator, get_request_id
from core.exceptions import PersistenceError
from schemas.api import HealthCheckResponse
from sync.orchestrator import SYNC_STATE_COLLECTION, SyncOrchestrator
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    """
    Health check endpoint.

    Returns:
    - Storage connectivity status
    - Number of tables whose most recent sync failed
    - Request metadata
    """
    storage_connected = False

    try:
        await orchestrator.backend.get_all(SYNC_STATE_COLLECTION)
        storage_connected = True
    except PersistenceError as e:
        logger.error(f"Storage check failed: {e.message}")

    latest = {}
    for run in orchestrator.get_history():
        if not run.skipped:
            latest.setdefault(run.table, run)

    failed_tables = sum(1 for run in latest.values() if not run.success)

    return HealthCheckResponse(
        storage_connected=storage_connected,
        sync_in_progress=orchestrator.sync_in_progress,
        total_tables=len(orchestrator.sync_config),
        failed_tables=failed_tables,
        request_id=request_id
    )
