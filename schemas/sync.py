"""
Pydantic schemas for sync configuration, run results and status
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from models.base import SyncState


class SyncTableConfig(BaseModel):
    """
    Per-table sync settings.

    Mutable at runtime (toggle, interval edits) and persisted with the sync state.
    """

    enabled: bool = False
    interval_seconds: int = Field(24 * 60 * 60, gt=0)
    sources: List[str] = Field(default_factory=list)

    @field_validator("sources")
    @classmethod
    def sources_not_empty(cls, v):
        if not v:
            raise ValueError("At least one source is required")
        return v


class SyncRunResult(BaseModel):
    """Outcome of one sync_table attempt. Frozen once built."""

    model_config = ConfigDict(frozen=True)

    table: str
    started_at: datetime
    ended_at: datetime
    success: bool
    skipped: bool = False
    inserted: int = 0
    updated: int = 0
    records_skipped: int = 0
    errors: List[str] = Field(default_factory=list)
    duration_seconds: float = 0.0


class SyncAllResult(BaseModel):
    """Aggregate of one sync_all pass"""

    success: bool
    tables: Dict[str, SyncRunResult] = Field(default_factory=dict)
    total_inserted: int = 0
    total_updated: int = 0
    errors: List[str] = Field(default_factory=list)


class TableSyncStatus(BaseModel):
    """Status row shown by the sync management endpoints"""

    enabled: bool
    interval_seconds: int
    sources: List[str]
    last_sync: Optional[datetime] = None
    needs_sync: bool
    scheduled: bool
    state: SyncState = SyncState.IDLE

    model_config = ConfigDict(use_enum_values=True)


class ValidationResult(BaseModel):
    """Result of validating one unified record against its schema"""

    valid: bool
    errors: List[str] = Field(default_factory=list)


class AutoSyncUpdate(BaseModel):
    enabled: bool


class IntervalUpdate(BaseModel):
    interval_seconds: int = Field(..., gt=0)


class UpsertCounts(BaseModel):
    """Records inserted and updated by one upsert"""

    inserted: int = 0
    updated: int = 0
