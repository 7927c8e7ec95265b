"""
Abstract base class for source APIs
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List
import logging

if TYPE_CHECKING:
    from sync.extractors.http_fetcher import HttpFetcher

logger = logging.getLogger(__name__)


class ApiSource(ABC):
    """
    One external API that feeds unified schemas.

    Subclasses decide how a schema endpoint is read (single call,
    pagination, response envelope). The orchestrator resolves a source
    object per source id once, instead of branching on the id while syncing.
    """

    source_id: str = ""

    def __init__(self, fetcher: "HttpFetcher", use_cache: bool = False):
        self.fetcher = fetcher
        self.use_cache = use_cache

    @abstractmethod
    async def fetch_records(self, endpoint: str) -> List[Dict[str, Any]]:
        """
        Fetch every raw record behind ``endpoint``.

        Raises:
            FetchError: the API could not be read
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.source_id})"
