"""
Pydantic schemas for validation and serialization.

Schemas:
    sync: Sync table configuration, run results, status and request bodies
    api: Response models of the HTTP endpoints

Usage:
    from schemas.sync import SyncTableConfig, SyncRunResult

Example:
    config = SyncTableConfig(
        enabled=True,
        interval_seconds=12 * 60 * 60,
        sources=["xivapi", "ffxivcollect"]
    )
"""

__all__ = [
    "SyncTableConfig",
    "SyncRunResult",
    "SyncAllResult",
    "TableSyncStatus",
    "ValidationResult",
    "AutoSyncUpdate",
    "IntervalUpdate",
    "UpsertCounts",
]
