"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime, timezone
from schemas.sync import SyncRunResult, TableSyncStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field("healthy", description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=_utcnow)
    storage_connected: bool
    sync_in_progress: bool = False
    total_tables: int = 0
    failed_tables: int = 0
    request_id: Optional[str] = None

    @model_validator(mode="after")
    def determine_status(self):
        """Derive the overall status from storage and last run outcomes"""
        if not self.storage_connected:
            self.status = "unhealthy"
        elif self.failed_tables == 0:
            self.status = "healthy"
        elif self.failed_tables < self.total_tables:
            self.status = "degraded"
        else:
            self.status = "unhealthy"
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "storage_connected": True,
                "sync_in_progress": False,
                "total_tables": 9,
                "failed_tables": 0,
                "request_id": "4f1c2f0e-6b0e-4a53-9a55-2c3a3f5e9d10"
            }
        }
    )


# ============================================================================
# Sync Management Schemas
# ============================================================================

class SyncStatusResponse(BaseModel):
    """Per-table sync status"""
    tables: Dict[str, TableSyncStatus]
    sync_in_progress: bool
    request_id: Optional[str] = None


class SyncHistoryResponse(BaseModel):
    """Recent sync runs, most recent first"""
    runs: List[SyncRunResult]
    total: int
    request_id: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
    request_id: Optional[str] = None
