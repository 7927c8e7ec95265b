"""
Sync management endpoints
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from api.dependencies import get_orchestrator, get_request_id
from core.exceptions import PersistenceError, UnknownSchemaError
from schemas.api import MessageResponse, SyncHistoryResponse, SyncStatusResponse
from schemas.sync import AutoSyncUpdate, IntervalUpdate, SyncAllResult, SyncRunResult
from sync.orchestrator import SyncOrchestrator
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sync", tags=["Sync"])


def _not_found(error: UnknownSchemaError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)


def _unavailable(error: PersistenceError) -> HTTPException:
    logger.error(f"Sync state not saved: {error.message}", extra={"error_context": error.to_dict()})
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=error.message)


@router.get("/status", response_model=SyncStatusResponse)
async def get_status(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    return SyncStatusResponse(
        tables=orchestrator.get_sync_status(),
        sync_in_progress=orchestrator.sync_in_progress,
        request_id=request_id
    )


@router.get("/history", response_model=SyncHistoryResponse)
async def get_history(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Number of recent runs to return"),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    runs = orchestrator.get_history(limit)
    return SyncHistoryResponse(runs=runs, total=len(orchestrator.sync_history), request_id=request_id)


@router.delete("/history", response_model=MessageResponse)
async def clear_history(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    orchestrator.clear_history()
    logger.info(f"[{request_id}] Sync history cleared")
    return MessageResponse(message="Sync history cleared", request_id=request_id)


@router.post("/reset", response_model=MessageResponse)
async def reset_state(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    try:
        await orchestrator.reset_sync_state()
    except PersistenceError as e:
        raise _unavailable(e)

    logger.info(f"[{request_id}] Sync state reset")
    return MessageResponse(message="Sync state reset", request_id=request_id)


@router.post("/all", response_model=SyncAllResult)
async def sync_all(
    force: bool = Query(False, description="Sync tables that are not due yet"),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    logger.info(f"[{request_id}] POST /sync/all force={force}")
    return await orchestrator.sync_all(force)


@router.post("/{table}", response_model=SyncRunResult)
async def sync_table(
    table: str,
    force: bool = Query(False, description="Sync even when the table is not due"),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    if table not in orchestrator.sync_config:
        raise _not_found(UnknownSchemaError(table))

    logger.info(f"[{request_id}] POST /sync/{table} force={force}")
    return await orchestrator.sync_table(table, force)


@router.put("/{table}/auto", response_model=MessageResponse)
async def toggle_auto_sync(
    table: str,
    body: AutoSyncUpdate,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    try:
        await orchestrator.toggle_auto_sync(table, body.enabled)
    except UnknownSchemaError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _unavailable(e)

    state = "enabled" if body.enabled else "disabled"
    return MessageResponse(message=f"Auto-sync {state} for {table}", request_id=request_id)


@router.put("/{table}/interval", response_model=MessageResponse)
async def update_interval(
    table: str,
    body: IntervalUpdate,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    request_id: str = Depends(get_request_id)
):
    try:
        await orchestrator.update_sync_interval(table, body.interval_seconds)
    except UnknownSchemaError as e:
        raise _not_found(e)
    except PersistenceError as e:
        raise _unavailable(e)

    return MessageResponse(
        message=f"Sync interval for {table} set to {body.interval_seconds}s",
        request_id=request_id
    )
