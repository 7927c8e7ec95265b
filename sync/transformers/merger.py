"""
Merge unified records of the same entity coming from several source APIs.
"""

from typing import Callable, Dict, Iterable, List, Mapping, Sequence, Tuple
from datetime import datetime, timezone
from sync.transformers.registry import SchemaDefinition, UnifiedRecord
import logging

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceMerger:
    """
    Combine per-source datasets into one record per primary key.

    ``priority`` lists source ids highest first. Sources are applied from the
    lowest priority up, so a field supplied by several sources always ends up
    with the highest-priority value while fields only a lower source knows
    are kept. Sources missing from ``priority`` rank below every listed one.
    """

    def __init__(self, priority: Sequence[str], clock: Callable[[], datetime] = _utcnow):
        self.priority = list(priority)
        self._clock = clock

    def _rank(self, source_id: str) -> int:
        try:
            return self.priority.index(source_id)
        except ValueError:
            return len(self.priority)

    def merge(
        self,
        schema: SchemaDefinition,
        datasets: Mapping[str, Iterable[UnifiedRecord]]
    ) -> List[UnifiedRecord]:
        """
        Args:
            schema: Schema the records were mapped to
            datasets: source id -> mapped and validated records

        Returns:
            Merged records stamped with ``updated_at``. Order is not meaningful.
        """
        key_field = schema.primary_key
        merged: Dict[object, UnifiedRecord] = {}

        # Highest rank number first, i.e. lowest priority applied first
        ordered: List[Tuple[str, Iterable[UnifiedRecord]]] = sorted(
            datasets.items(), key=lambda item: self._rank(item[0]), reverse=True
        )

        for source_id, records in ordered:
            for record in records:
                key = record.get(key_field)
                if key is None:
                    logger.warning(
                        f"Skipping {schema.table_name} record from {source_id} without {key_field}"
                    )
                    continue

                existing = merged.get(key)
                if existing is None:
                    merged[key] = dict(record)
                else:
                    existing.update(record)

        stamp = self._clock().isoformat()
        for record in merged.values():
            record["updated_at"] = stamp

        logger.debug(
            f"Merged {schema.table_name}: {len(merged)} records from "
            f"{len(datasets)} sources"
        )
        return list(merged.values())
