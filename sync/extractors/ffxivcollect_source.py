"""
FFXIV Collect: community collection-tracking API.
"""

from typing import Any, Dict, List
from models.base import SourceId
from sync.base import ApiSource
import logging

logger = logging.getLogger(__name__)


class FFXIVCollectSource(ApiSource):
    """Single request per endpoint; the body is a bare list or ``{results: [...]}``."""

    source_id = SourceId.FFXIVCOLLECT.value

    async def fetch_records(self, endpoint: str) -> List[Dict[str, Any]]:
        data = await self.fetcher.request(
            self.source_id,
            endpoint,
            skip_cache=not self.use_cache
        )

        if isinstance(data, list):
            records = data
        elif isinstance(data, dict):
            records = data.get("results") or []
        else:
            records = []

        logger.info(f"Fetched {len(records)} records from ffxivcollect{endpoint}")
        return records
