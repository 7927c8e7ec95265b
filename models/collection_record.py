from sqlalchemy import Column, BigInteger, Integer, String, DateTime, JSON, Index
from datetime import datetime, timezone
from models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CollectionRecord(Base):
    """
    One row per record of a stored collection.

    Purpose:
    - Backing table for the SQL persistence backend
    - Holds whole collection snapshots (synced tables and sync state)

    Design:
    - payload keeps the unified record as JSON, the column set of each
      unified schema is not mirrored as SQL columns
    - position preserves the order the collection was saved in
    """
    __tablename__ = "collection_records"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    collection = Column(String(100), nullable=False)
    position = Column(Integer, nullable=False)
    payload = Column(JSON, nullable=False)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_collection_position", "collection", "position", unique=True),
    )
