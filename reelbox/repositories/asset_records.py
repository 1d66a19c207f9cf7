from __future__ import annotations

"""Asset record repository.

Maps `(parent, file_type) → file_key`, one row per stored media object.
Every write opens its own session and commits before returning: the record
store and the object store are separately consistent systems and no call
here ever spans the two.
"""

from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reelbox.core.exceptions import AssetRecordNotFoundException
from reelbox.db.models import AssetRecord
from reelbox.schemas.enums import FileType
from reelbox.services.media.descriptors import ParentRef, descriptor_for


# Protocol-like documentation for the expected interface.


class AssetRecordStoreProtocol:
    async def create(self, parent: ParentRef, file_type: FileType, file_key: str) -> AssetRecord:
        raise NotImplementedError

    async def delete(self, file_key: str) -> None:
        """Remove one record; AssetRecordNotFoundException if it is already gone."""
        raise NotImplementedError

    async def find_live(self, parent: ParentRef, file_type: FileType) -> Optional[AssetRecord]:
        raise NotImplementedError

    async def list_live(self, parent: ParentRef) -> List[AssetRecord]:
        raise NotImplementedError


class SqlAssetRecordStore(AssetRecordStoreProtocol):
    """SQLAlchemy-backed asset records (`asset_records` table)."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    def _owner(parent: ParentRef):
        return getattr(AssetRecord, descriptor_for(parent.kind).owner_column)

    async def create(self, parent: ParentRef, file_type: FileType, file_key: str) -> AssetRecord:
        owner_column = descriptor_for(parent.kind).owner_column
        record = AssetRecord(file_key=file_key, file_type=file_type, **{owner_column: parent.id})
        async with self._session_factory() as db:
            db.add(record)
            await db.commit()
            await db.refresh(record)
        return record

    async def delete(self, file_key: str) -> None:
        async with self._session_factory() as db:
            result = await db.execute(delete(AssetRecord).where(AssetRecord.file_key == file_key))
            await db.commit()
        if not result.rowcount:
            raise AssetRecordNotFoundException(file_key=file_key)

    async def find_live(self, parent: ParentRef, file_type: FileType) -> Optional[AssetRecord]:
        stmt = (
            select(AssetRecord)
            .where(self._owner(parent) == parent.id, AssetRecord.file_type == file_type)
            .order_by(AssetRecord.created_at.desc())
            .limit(1)
        )
        async with self._session_factory() as db:
            return (await db.execute(stmt)).scalar_one_or_none()

    async def list_live(self, parent: ParentRef) -> List[AssetRecord]:
        stmt = (
            select(AssetRecord)
            .where(self._owner(parent) == parent.id)
            .order_by(AssetRecord.file_type, AssetRecord.file_key)
        )
        async with self._session_factory() as db:
            return list((await db.execute(stmt)).scalars().all())
