"""
Store collections in a relational database with SQLAlchemy async
"""

from typing import Any, Dict, List, Sequence
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from core.exceptions import PersistenceError
from models.collection_record import CollectionRecord
from sync.loaders.base import PersistenceBackend
import logging

logger = logging.getLogger(__name__)


class SqlStore(PersistenceBackend):
    """
    Collections as rows of ``collection_records``.

    Ensures:
    - save_all replaces a collection inside one transaction
    - A failed write is rolled back and the previous rows stay visible
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get_all(self, collection: str) -> List[Dict[str, Any]]:
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(CollectionRecord)
                    .where(CollectionRecord.collection == collection)
                    .order_by(CollectionRecord.position)
                )
                rows = result.scalars().all()
            except SQLAlchemyError as e:
                raise PersistenceError(
                    f"Failed to read collection {collection}",
                    context={"collection": collection, "operation": "SELECT"},
                    original_exception=e
                )

        return [dict(row.payload) for row in rows]

    async def save_all(self, collection: str, records: Sequence[Dict[str, Any]]):
        async with self._session_factory() as session:
            try:
                await session.execute(
                    delete(CollectionRecord).where(CollectionRecord.collection == collection)
                )

                if records:
                    await session.execute(
                        insert(CollectionRecord),
                        [
                            {"collection": collection, "position": position, "payload": record}
                            for position, record in enumerate(records)
                        ]
                    )

                await session.commit()

            except SQLAlchemyError as e:
                logger.error(f"Write to {collection} failed, rolling back: {str(e)}")
                await session.rollback()
                raise PersistenceError(
                    f"Failed to write collection {collection}",
                    context={
                        "collection": collection,
                        "operation": "REPLACE",
                        "table_name": CollectionRecord.__tablename__,
                        "records": len(records)
                    },
                    original_exception=e
                )

        logger.info(f"Stored {len(records)} records in {collection}")
