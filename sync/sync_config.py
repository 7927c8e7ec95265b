"""
Default per-table sync settings and source precedence.
"""

from typing import Dict
from models.base import SourceId
from schemas.sync import SyncTableConfig

HOUR = 60 * 60

# Highest priority first. A field supplied by several sources keeps the
# value of the earliest source in this list.
SOURCE_PRIORITY = [
    SourceId.FFXIVCOLLECT.value,
    SourceId.XIVAPI.value,
]

_BOTH = [SourceId.XIVAPI.value, SourceId.FFXIVCOLLECT.value]
_COLLECT_ONLY = [SourceId.FFXIVCOLLECT.value]


def default_sync_config() -> Dict[str, SyncTableConfig]:
    """Fresh config objects; callers may mutate what they get."""
    return {
        "achievements": SyncTableConfig(interval_seconds=24 * HOUR, sources=list(_BOTH)),
        "titles": SyncTableConfig(interval_seconds=24 * HOUR, sources=list(_BOTH)),
        "mounts": SyncTableConfig(interval_seconds=12 * HOUR, sources=list(_BOTH)),
        "minions": SyncTableConfig(interval_seconds=12 * HOUR, sources=list(_BOTH)),
        "orchestrions": SyncTableConfig(interval_seconds=24 * HOUR, sources=list(_BOTH)),
        "emotes": SyncTableConfig(interval_seconds=24 * HOUR, sources=list(_BOTH)),
        "bardings": SyncTableConfig(interval_seconds=24 * HOUR, sources=list(_COLLECT_ONLY)),
        "hairstyles": SyncTableConfig(interval_seconds=24 * HOUR, sources=list(_COLLECT_ONLY)),
        "facewear": SyncTableConfig(interval_seconds=24 * HOUR, sources=list(_COLLECT_ONLY)),
    }
