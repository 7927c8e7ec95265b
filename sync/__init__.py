"""
Collection sync pipeline components.

This package keeps the local collection tables in step with the public
FFXIV data APIs:

Modules:
    base: Abstract base class for source APIs
    orchestrator: Per-table sync (fetch, map, merge, persist) with history
    scheduler: APScheduler integration for recurring per-table syncs
    sync_config: Default per-table settings and source precedence
    service: Assembles an orchestrator from application settings

Subpackages:
    extractors: HTTP fetcher, rate limiter, response cache and source APIs
    transformers: Schema registry, field mapping, validation and merging
    loaders: Persistence backends with idempotent upsert

Architecture:
    A table sync runs in four phases:

    1. Fetch - Read every configured source, absorbing per-source failures
    2. Map - Translate raw records to the unified schema and validate them
    3. Merge - Combine sources per primary key by source priority
    4. Persist - Upsert into the backend so repeated runs never duplicate

Usage:
    from sync.service import build_orchestrator

    orchestrator = build_orchestrator()
    await orchestrator.load_sync_state()
    result = await orchestrator.sync_table("mounts", force=True)

    print(f"Inserted {result.inserted}, updated {result.updated}")

Error Handling:
    Components raise exceptions from core.exceptions. The orchestrator turns
    source and persistence failures into SyncRunResult diagnostics.
"""

__all__ = [
    "ApiSource",
    "SyncOrchestrator",
    "SyncScheduler",
    "build_orchestrator",
]
