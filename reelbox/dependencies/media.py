from __future__ import annotations

"""FastAPI dependencies wiring the media coordinator.

Tests override `get_session_factory` (per-test database) and
`get_object_store` (in-memory store with fault injection).
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reelbox.db.session import async_session_maker
from reelbox.repositories.asset_records import SqlAssetRecordStore
from reelbox.repositories.parents import SqlParentStore
from reelbox.services.media.coordinator import AssetLifecycleCoordinator
from reelbox.services.media.locks import ParentLocks
from reelbox.services.storage import ObjectStoreProtocol, get_object_store


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session_maker


def get_coordinator(
    store: ObjectStoreProtocol = Depends(get_object_store),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AssetLifecycleCoordinator:
    return AssetLifecycleCoordinator(
        store=store,
        records=SqlAssetRecordStore(session_factory),
        parents=SqlParentStore(session_factory),
    )


@lru_cache(maxsize=1)
def get_parent_locks() -> ParentLocks:
    return ParentLocks()
