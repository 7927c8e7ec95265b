"""
SQLAlchemy models and shared enums.

Models:
    base: Base declarative class and shared enums (SourceId, SyncState, CacheCategory)
    collection_record: Row storage for the SQL persistence backend

Usage:
    from models import CollectionRecord
    from models.base import SourceId, SyncState
"""

from models.base import Base, SourceId, SyncState, CacheCategory
from models.collection_record import CollectionRecord

__all__ = [
    "Base",
    "SourceId",
    "SyncState",
    "CacheCategory",
    "CollectionRecord",
]
