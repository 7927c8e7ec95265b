"""
Idempotent upsert of unified records into a persistence backend
"""

from typing import Any, Dict, Iterable
from core.exceptions import PersistenceError
from schemas.sync import UpsertCounts
from sync.loaders.base import PersistenceBackend
import logging

logger = logging.getLogger(__name__)


class UpsertWriter:
    """
    Upsert by primary key on top of whole-collection storage.

    Ensures:
    - No duplicate keys on repeated runs
    - Existing keys are replaced in place, new keys appended
    - One save_all per call, so readers never see a half-written collection
    """

    def __init__(self, backend: PersistenceBackend):
        self.backend = backend

    async def upsert(
        self,
        collection: str,
        records: Iterable[Dict[str, Any]],
        primary_key: str = "id"
    ) -> UpsertCounts:
        try:
            existing = await self.backend.get_all(collection)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"Failed to read collection {collection}",
                context={"collection": collection, "operation": "read"},
                original_exception=e
            )

        snapshot = list(existing)
        positions = {row.get(primary_key): i for i, row in enumerate(snapshot)}
        counts = UpsertCounts()

        for record in records:
            key = record.get(primary_key)
            if key in positions:
                snapshot[positions[key]] = record
                counts.updated += 1
            else:
                positions[key] = len(snapshot)
                snapshot.append(record)
                counts.inserted += 1

        try:
            await self.backend.save_all(collection, snapshot)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"Failed to write collection {collection}",
                context={"collection": collection, "operation": "write"},
                original_exception=e
            )

        logger.info(
            f"Upserted into {collection}: {counts.inserted} inserted, {counts.updated} updated"
        )
        return counts
