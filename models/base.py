from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SourceId(str, enum.Enum):
    """Source APIs that feed the unified schemas"""
    XIVAPI = "xivapi"
    FFXIVCOLLECT = "ffxivcollect"


class SyncState(str, enum.Enum):
    """Per-table sync state machine"""
    IDLE = "idle"
    FETCHING = "fetching"
    MAPPING = "mapping"
    MERGING = "merging"
    PERSISTING = "persisting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class CacheCategory(str, enum.Enum):
    """Data categories with their own cache lifetime"""
    MARKET = "market"
    STATIC = "static"
    USER = "user"
