"""
Local JSON snapshot store for development
"""

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
from core.exceptions import PersistenceError
from sync.loaders.base import PersistenceBackend
import logging

logger = logging.getLogger(__name__)


class LocalStore(PersistenceBackend):
    """
    Keep collections in memory, optionally mirrored to one JSON file.

    Ensures:
    - The file is replaced atomically (temp file + rename)
    - The in-memory snapshot only changes after the file write succeeded
    - Callers never share list/dict objects with the store
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._collections: Dict[str, List[Dict[str, Any]]] = {}
        self._loaded = False

    def _load(self):
        if self._loaded:
            return
        self._loaded = True

        if self.path is None or not self.path.exists():
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(
                "Failed to read local store",
                context={"path": str(self.path), "operation": "read"},
                original_exception=e
            )

        if isinstance(data, dict):
            self._collections = {k: v for k, v in data.items() if isinstance(v, list)}
        logger.info(f"Loaded {len(self._collections)} collections from {self.path}")

    def _write(self, snapshot: Dict[str, List[Dict[str, Any]]]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, default=str)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def get_all(self, collection: str) -> List[Dict[str, Any]]:
        self._load()
        return copy.deepcopy(self._collections.get(collection, []))

    async def save_all(self, collection: str, records: Sequence[Dict[str, Any]]):
        self._load()

        snapshot = dict(self._collections)
        snapshot[collection] = copy.deepcopy(list(records))

        if self.path is not None:
            try:
                self._write(snapshot)
            except (OSError, TypeError, ValueError) as e:
                raise PersistenceError(
                    f"Failed to write collection {collection}",
                    context={"collection": collection, "path": str(self.path), "operation": "write"},
                    original_exception=e
                )

        self._collections = snapshot
        logger.debug(f"Saved {len(records)} records to {collection}")

    def collections(self) -> List[str]:
        self._load()
        return list(self._collections)
