"""
Persistence backend contract
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence


class PersistenceBackend(ABC):
    """
    Whole-collection storage.

    Implementations must make ``save_all`` all-or-nothing: after a failed
    write, ``get_all`` still returns the previous snapshot.
    """

    @abstractmethod
    async def get_all(self, collection: str) -> List[Dict[str, Any]]:
        """Return every record of ``collection`` (empty list when unknown)"""
        pass

    @abstractmethod
    async def save_all(self, collection: str, records: Sequence[Dict[str, Any]]):
        """
        Replace the contents of ``collection``.

        Raises:
            PersistenceError: the write did not happen
        """
        pass
