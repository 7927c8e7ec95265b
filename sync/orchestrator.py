# ============================================================================
# File: sync/orchestrator.py
# Description: Table sync orchestrator (fetch, map, merge, persist, schedule)
# ============================================================================
"""
Sync Orchestrator - drives the per-table sync from source APIs to storage.

Per table the run moves through:
    IDLE -> FETCHING -> MAPPING -> MERGING -> PERSISTING -> SUCCEEDED | FAILED

This module provides:
- Sequential per-source fetching in configured order
- Partial failure support (a failing source or record never aborts the table)
- Result objects instead of exceptions for ordinary failure paths
- Bounded sync history
- Recurring per-table schedules
"""

from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple
import logging

from core.exceptions import (
    ConfigurationError,
    FetchError,
    NoDataRetrievedError,
    PersistenceError,
    UnknownSchemaError,
)
from models.base import SyncState
from schemas.sync import SyncAllResult, SyncRunResult, SyncTableConfig, TableSyncStatus
from sync.base import ApiSource
from sync.loaders.base import PersistenceBackend
from sync.loaders.upsert import UpsertWriter
from sync.scheduler import SyncScheduler
from sync.sync_config import SOURCE_PRIORITY, default_sync_config
from sync.transformers.field_mapper import FieldMapper
from sync.transformers.merger import SourceMerger
from sync.transformers.registry import SchemaDefinition, SchemaRegistry, UnifiedRecord

logger = logging.getLogger(__name__)

SYNC_STATE_COLLECTION = "sync_state"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncOrchestrator:
    """
    Table sync orchestrator

    Responsibilities:
    - Decide whether a table is due
    - Fetch from every configured source, absorbing per-source failures
    - Map, validate and merge records across sources
    - Upsert into the persistence backend
    - Record history and persist sync state
    - Manage recurring schedules

    ``sync_in_progress`` only guards ``sync_all``. A ``sync_table`` call made
    directly while ``sync_all`` runs is not serialized against it.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        sources: Mapping[str, ApiSource],
        backend: PersistenceBackend,
        table_configs: Optional[Mapping[str, SyncTableConfig]] = None,
        mapper: Optional[FieldMapper] = None,
        merger: Optional[SourceMerger] = None,
        scheduler: Optional[SyncScheduler] = None,
        history_limit: int = 100,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.registry = registry
        self.sources: Dict[str, ApiSource] = dict(sources)
        self.backend = backend
        self.writer = UpsertWriter(backend)
        self.mapper = mapper or FieldMapper()
        self.merger = merger or SourceMerger(SOURCE_PRIORITY, clock=clock)
        self.scheduler = scheduler or SyncScheduler()
        self._clock = clock

        configs = table_configs if table_configs is not None else default_sync_config()
        self.sync_config: Dict[str, SyncTableConfig] = {
            table: config.model_copy(deep=True) for table, config in configs.items()
        }
        self.last_sync_times: Dict[str, datetime] = {}
        self.sync_history: Deque[SyncRunResult] = deque(maxlen=history_limit)
        self.sync_in_progress = False
        self._states: Dict[str, SyncState] = {}

    # --------------------------------------------------
    # State helpers
    # --------------------------------------------------

    @staticmethod
    def collection_for(table: str) -> str:
        return f"db_{table}"

    def current_state(self, table: str) -> SyncState:
        return self._states.get(table, SyncState.IDLE)

    def _set_state(self, table: str, state: SyncState):
        self._states[table] = state
        logger.debug(f"{table}: {state.value}")

    def _require_table(self, table: str) -> SyncTableConfig:
        config = self.sync_config.get(table)
        if config is None:
            raise UnknownSchemaError(table)
        return config

    def needs_sync(self, table: str) -> bool:
        config = self.sync_config.get(table)
        if config is None:
            return False

        last_sync = self.last_sync_times.get(table)
        if last_sync is None:
            return True

        elapsed = self._clock() - last_sync
        return elapsed >= timedelta(seconds=config.interval_seconds)

    # --------------------------------------------------
    # Sync operations
    # --------------------------------------------------

    async def sync_table(self, table: str, force: bool = False) -> SyncRunResult:
        """
        Sync one table from its configured sources.

        Args:
            table: Table (schema) name
            force: Sync even when the interval has not elapsed

        Returns:
            SyncRunResult; failures are reported in it, not raised.
        """
        started_at = self._clock()
        config = self.sync_config.get(table)

        if config is None:
            logger.error(f"No sync config for table: {table}")
            return self._record(SyncRunResult(
                table=table,
                started_at=started_at,
                ended_at=started_at,
                success=False,
                errors=[f"No sync config for table: {table}"]
            ))

        if not force and not self.needs_sync(table):
            logger.info(f"{table} already up to date")
            return SyncRunResult(
                table=table,
                started_at=started_at,
                ended_at=started_at,
                success=True,
                skipped=True
            )

        schema = self.registry.get_schema(table)
        logger.info(f"Starting sync for {table} from {', '.join(config.sources)}")

        errors: List[str] = []
        success = False
        inserted = updated = records_skipped = 0

        try:
            # --------------------------------------------------
            # PHASE 1: FETCH (sources strictly in configured order)
            # --------------------------------------------------
            self._set_state(table, SyncState.FETCHING)
            raw_sets: Dict[str, List[Dict[str, Any]]] = {}

            for source_id in config.sources:
                try:
                    raw_sets[source_id] = await self._fetch_source(schema, source_id)
                except (FetchError, ConfigurationError) as e:
                    logger.error(
                        f"Error fetching {table} from {source_id}: {e.message}",
                        extra={"error_context": e.to_dict()}
                    )
                    errors.append(f"{source_id}: {e.message}")

            if not raw_sets:
                raise NoDataRetrievedError(table, list(errors))

            # --------------------------------------------------
            # PHASE 2: MAP + VALIDATE
            # --------------------------------------------------
            self._set_state(table, SyncState.MAPPING)
            mapped_sets: Dict[str, List[UnifiedRecord]] = {}

            for source_id, raw_records in raw_sets.items():
                mapped, dropped = self._map_and_validate(schema, source_id, raw_records)
                mapped_sets[source_id] = mapped
                records_skipped += dropped

            # --------------------------------------------------
            # PHASE 3: MERGE
            # --------------------------------------------------
            self._set_state(table, SyncState.MERGING)
            merged = self.merger.merge(schema, mapped_sets)

            # --------------------------------------------------
            # PHASE 4: PERSIST (IDEMPOTENT UPSERT)
            # --------------------------------------------------
            self._set_state(table, SyncState.PERSISTING)
            counts = await self.writer.upsert(
                self.collection_for(table), merged, schema.primary_key
            )
            inserted, updated = counts.inserted, counts.updated

            self.last_sync_times[table] = self._clock()
            await self._save_state_quietly()

            success = True
            self._set_state(table, SyncState.SUCCEEDED)

        except (NoDataRetrievedError, PersistenceError) as e:
            logger.error(
                f"Sync failed for {table}: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            errors.append(e.message)
            self._set_state(table, SyncState.FAILED)

        except Exception as e:
            logger.exception(f"Unexpected error syncing {table}")
            errors.append(f"Unexpected error: {str(e)}")
            self._set_state(table, SyncState.FAILED)

        ended_at = self._clock()
        result = self._record(SyncRunResult(
            table=table,
            started_at=started_at,
            ended_at=ended_at,
            success=success,
            inserted=inserted,
            updated=updated,
            records_skipped=records_skipped,
            errors=errors,
            duration_seconds=(ended_at - started_at).total_seconds()
        ))

        logger.info(
            f"Sync complete for {table}: success={success}, inserted={inserted}, "
            f"updated={updated}, skipped={records_skipped}, errors={len(errors)}"
        )
        return result

    async def sync_all(self, force: bool = False) -> SyncAllResult:
        """Sync every configured table, one after the other."""
        if self.sync_in_progress:
            logger.warning("Sync already in progress")
            return SyncAllResult(success=False, errors=["Sync already in progress"])

        self.sync_in_progress = True
        results = SyncAllResult(success=True)

        try:
            tables = list(self.sync_config)

            for index, table in enumerate(tables, start=1):
                try:
                    result = await self.sync_table(table, force)
                    results.tables[table] = result

                    if result.success:
                        results.total_inserted += result.inserted
                        results.total_updated += result.updated
                    else:
                        results.success = False
                        results.errors.extend(f"{table}: {error}" for error in result.errors)

                except Exception as e:
                    logger.exception(f"Error syncing {table}")
                    results.errors.append(f"{table}: {str(e)}")
                    results.success = False

                logger.info(f"Synced {table} ({index}/{len(tables)})")

        finally:
            self.sync_in_progress = False

        logger.info(
            f"Sync all finished: success={results.success}, "
            f"inserted={results.total_inserted}, updated={results.total_updated}"
        )
        return results

    async def _fetch_source(self, schema: SchemaDefinition, source_id: str) -> List[Dict[str, Any]]:
        mapping = schema.mapping_for(source_id)
        source = self.sources.get(source_id)
        if source is None:
            raise ConfigurationError(
                f"No API source registered for {source_id}",
                context={"source": source_id, "schema": schema.table_name}
            )

        logger.info(f"Fetching {schema.table_name} from {source_id}...")
        return await source.fetch_records(mapping.endpoint)

    def _map_and_validate(
        self,
        schema: SchemaDefinition,
        source_id: str,
        raw_records: List[Dict[str, Any]]
    ) -> Tuple[List[UnifiedRecord], int]:
        """Map every raw record; invalid or unmappable records are dropped and counted."""
        mapped_records: List[UnifiedRecord] = []
        dropped = 0

        for raw in raw_records:
            try:
                mapped = self.mapper.map(schema, source_id, raw)
            except ConfigurationError:
                raise
            except Exception as e:
                dropped += 1
                logger.error(f"Error mapping {schema.table_name} item from {source_id}: {str(e)}")
                continue

            validation = self.mapper.validate(schema, mapped)
            if not validation.valid:
                dropped += 1
                logger.warning(
                    f"Validation failed for {schema.table_name} item from {source_id}: "
                    f"{'; '.join(validation.errors)}"
                )
                continue

            mapped_records.append(mapped)

        logger.info(
            f"Mapped {len(mapped_records)} {schema.table_name} records from {source_id} "
            f"({dropped} dropped)"
        )
        return mapped_records, dropped

    def _record(self, result: SyncRunResult) -> SyncRunResult:
        self.sync_history.appendleft(result)
        return result

    # --------------------------------------------------
    # History and status
    # --------------------------------------------------

    def get_history(self, limit: Optional[int] = None) -> List[SyncRunResult]:
        """Most recent first"""
        history = list(self.sync_history)
        return history[:limit] if limit is not None else history

    def clear_history(self):
        self.sync_history.clear()

    def get_sync_status(self) -> Dict[str, TableSyncStatus]:
        status = {}
        for table, config in self.sync_config.items():
            status[table] = TableSyncStatus(
                enabled=config.enabled,
                interval_seconds=config.interval_seconds,
                sources=list(config.sources),
                last_sync=self.last_sync_times.get(table),
                needs_sync=self.needs_sync(table),
                scheduled=self.scheduler.is_scheduled(table),
                state=self.current_state(table)
            )
        return status

    # --------------------------------------------------
    # Sync state persistence
    # --------------------------------------------------

    async def load_sync_state(self):
        """Overlay stored per-table config and last sync times on the defaults."""
        rows = await self.backend.get_all(SYNC_STATE_COLLECTION)

        for row in rows:
            table = row.get("table")
            if table not in self.sync_config:
                continue

            current = self.sync_config[table]
            try:
                self.sync_config[table] = SyncTableConfig(
                    enabled=row.get("enabled", current.enabled),
                    interval_seconds=row.get("interval_seconds", current.interval_seconds),
                    sources=row.get("sources") or current.sources
                )
            except ValueError as e:
                logger.error(f"Ignoring stored sync config for {table}: {str(e)}")

            last_sync = row.get("last_sync_at")
            if last_sync:
                try:
                    parsed = datetime.fromisoformat(last_sync)
                except (TypeError, ValueError):
                    logger.error(f"Ignoring stored last sync time for {table}: {last_sync!r}")
                    continue

                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
                self.last_sync_times[table] = parsed

        logger.info(f"Loaded sync state for {len(rows)} tables")

    async def save_sync_state(self):
        rows = []
        for table, config in self.sync_config.items():
            last_sync = self.last_sync_times.get(table)
            rows.append({
                "table": table,
                **config.model_dump(),
                "last_sync_at": last_sync.isoformat() if last_sync else None,
            })
        try:
            await self.backend.save_all(SYNC_STATE_COLLECTION, rows)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(
                "Failed to write sync state",
                context={"collection": SYNC_STATE_COLLECTION, "operation": "write"},
                original_exception=e
            )

    async def _save_state_quietly(self):
        try:
            await self.save_sync_state()
        except PersistenceError as e:
            logger.warning(f"Could not persist sync state: {e.message}")

    async def reset_sync_state(self):
        """
        Forget every last sync time, making all tables due.

        Raises:
            PersistenceError: the state could not be saved; nothing changed
        """
        previous = dict(self.last_sync_times)
        self.last_sync_times.clear()
        try:
            await self.save_sync_state()
        except PersistenceError:
            self.last_sync_times.update(previous)
            raise

    # --------------------------------------------------
    # Scheduling
    # --------------------------------------------------

    async def _scheduled_sync(self, table: str):
        logger.info(f"Scheduled sync for {table}")
        await self.sync_table(table, False)

    def _arm(self, table: str, interval_seconds: int):
        self.scheduler.schedule(table, interval_seconds, self._scheduled_sync, table)

    def start_scheduled_syncs(self):
        """Arm a timer for every enabled table and start the scheduler."""
        logger.info("Starting scheduled syncs...")
        for table, config in self.sync_config.items():
            if config.enabled:
                self._arm(table, config.interval_seconds)
        self.scheduler.start()

    def stop_scheduled_syncs(self):
        self.scheduler.cancel_all()
        self.scheduler.stop()
        logger.info("Stopped all scheduled syncs")

    async def toggle_auto_sync(self, table: str, enabled: bool):
        """
        Enable or disable the recurring sync of ``table``.

        The change is saved before the timer is touched. When saving fails
        the previous setting is restored and PersistenceError is raised.
        """
        config = self._require_table(table)
        previous = config.enabled
        config.enabled = enabled
        try:
            await self.save_sync_state()
        except PersistenceError:
            config.enabled = previous
            raise

        if enabled:
            self._arm(table, config.interval_seconds)
            logger.info(f"Auto-sync enabled for {table}")
        else:
            self.scheduler.cancel(table)
            logger.info(f"Auto-sync disabled for {table}")

    async def update_sync_interval(self, table: str, interval_seconds: int):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        config = self._require_table(table)
        previous = config.interval_seconds
        config.interval_seconds = interval_seconds
        try:
            await self.save_sync_state()
        except PersistenceError:
            config.interval_seconds = previous
            raise

        if config.enabled:
            self._arm(table, interval_seconds)

        logger.info(f"Sync interval for {table} set to {interval_seconds}s")
