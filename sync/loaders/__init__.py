from sync.loaders.base import PersistenceBackend
from sync.loaders.local_store import LocalStore
from sync.loaders.sql_store import SqlStore
from sync.loaders.upsert import UpsertWriter

__all__ = [
    "LocalStore",
    "PersistenceBackend",
    "SqlStore",
    "UpsertWriter",
]
