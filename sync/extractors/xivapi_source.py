"""
xivapi: wiki-style game data API with paginated list endpoints.
"""

from typing import Any, Dict, List
from models.base import SourceId
from sync.base import ApiSource
import logging

logger = logging.getLogger(__name__)


class XivapiSource(ApiSource):
    """Reads ``{results: [...]}`` pages until a short or empty page."""

    source_id = SourceId.XIVAPI.value

    async def fetch_records(self, endpoint: str) -> List[Dict[str, Any]]:
        records = await self.fetcher.fetch_paginated(self.source_id, endpoint)
        logger.info(f"Fetched {len(records)} records from xivapi{endpoint}")
        return records
