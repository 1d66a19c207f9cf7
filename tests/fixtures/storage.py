# tests/fixtures/storage.py
"""
🧩 Storage fixtures:
- `FaultyObjectStore`: the in-memory store plus fault injection and a call log
- `object_store`, `records`, `parents`, `coordinator` wired to the per-test DB
"""

from typing import Awaitable, Callable, List, Optional, Set, Tuple

import pytest

from reelbox.repositories.asset_records import SqlAssetRecordStore
from reelbox.repositories.parents import SqlParentStore
from reelbox.schemas.enums import StorageTier
from reelbox.services.media.coordinator import AssetLifecycleCoordinator
from reelbox.services.storage import MemoryObjectStore, ObjectStoreError, StoredObject

Hook = Callable[[str, StorageTier, str], Awaitable[None]]


class FaultyObjectStore(MemoryObjectStore):
    """
    Memory store that can be told to fail.

    - `fail_uploads`: substrings; an upload whose key contains one raises
    - `fail_deletes`: substrings; a delete whose key contains one raises
    - `before_call`: awaited before every upload/delete with (op, tier, key)
    - `calls`: ordered (op, tier, key) log of every upload/delete attempt
    """

    def __init__(self) -> None:
        super().__init__(public_base_url="https://cdn.test")
        self.fail_uploads: Set[str] = set()
        self.fail_deletes: Set[str] = set()
        self.before_call: Optional[Hook] = None
        self.calls: List[Tuple[str, StorageTier, str]] = []

    async def _note(self, op: str, tier: StorageTier, key: str) -> None:
        self.calls.append((op, tier, key))
        if self.before_call is not None:
            await self.before_call(op, tier, key)

    async def upload(self, tier, key, data, *, content_type=None) -> StoredObject:
        await self._note("upload", tier, key)
        if any(marker in key for marker in self.fail_uploads):
            raise ObjectStoreError(f"simulated upload failure for {key}")
        return await super().upload(tier, key, data, content_type=content_type)

    async def delete(self, tier, key) -> bool:
        await self._note("delete", tier, key)
        if any(marker in key for marker in self.fail_deletes):
            raise ObjectStoreError(f"simulated delete failure for {key}")
        return await super().delete(tier, key)


@pytest.fixture()
def object_store() -> FaultyObjectStore:
    return FaultyObjectStore()


@pytest.fixture()
def records(session_factory) -> SqlAssetRecordStore:
    return SqlAssetRecordStore(session_factory)


@pytest.fixture()
def parents(session_factory) -> SqlParentStore:
    return SqlParentStore(session_factory)


@pytest.fixture()
def coordinator(object_store, records, parents) -> AssetLifecycleCoordinator:
    return AssetLifecycleCoordinator(store=object_store, records=records, parents=parents)
