from __future__ import annotations

"""In-process object store (local development and tests).

Objects live in one dict per tier for the lifetime of the instance. Public
uploads get a URL under the configured CDN base, or a `memory://` URL when no
CDN is set.
"""

from typing import AsyncIterator, Dict, List, Optional, Tuple
from urllib.parse import quote

from reelbox.core.config import settings
from reelbox.schemas.enums import StorageTier
from reelbox.services.storage.base import (
    ObjectMissing,
    ObjectStoreError,
    ObjectStoreProtocol,
    StoredObject,
)


class MemoryObjectStore(ObjectStoreProtocol):
    """
    Simple in-memory object store.

    Keys are validated the way the S3 gateway validates them (non-empty, no
    '..' segments) so behaviour matches across backends.
    """

    def __init__(self, *, public_base_url: Optional[str] = None) -> None:
        self._objects: Dict[StorageTier, Dict[str, Tuple[bytes, Optional[str]]]] = {
            StorageTier.PUBLIC: {},
            StorageTier.PRIVATE: {},
        }
        base = public_base_url if public_base_url is not None else settings.cdn_base_url
        self._public_base = (base or "memory://public").rstrip("/")

    # Helpers
    @staticmethod
    def _check_key(key: str) -> str:
        k = str(key or "").strip().lstrip("/")
        if not k:
            raise ObjectStoreError("Invalid storage key: empty")
        if any(part == ".." for part in k.split("/")):
            raise ObjectStoreError("Invalid storage key: path traversal detected")
        return k

    def keys(self, tier: StorageTier) -> List[str]:
        return sorted(self._objects[tier])

    def exists(self, tier: StorageTier, key: str) -> bool:
        return key in self._objects[tier]

    def read(self, tier: StorageTier, key: str) -> bytes:
        try:
            return self._objects[tier][key][0]
        except KeyError:
            raise ObjectMissing(f"Object not found: {key}") from None

    # Interface
    async def upload(
        self,
        tier: StorageTier,
        key: str,
        data: bytes,
        *,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        k = self._check_key(key)
        self._objects[tier][k] = (bytes(data), content_type)
        url = f"{self._public_base}/{quote(k)}" if tier is StorageTier.PUBLIC else None
        return StoredObject(tier=tier, key=k, url=url)

    async def delete(self, tier: StorageTier, key: str) -> bool:
        k = self._check_key(key)
        return self._objects[tier].pop(k, None) is not None

    async def open_stream(
        self,
        tier: StorageTier,
        key: str,
        *,
        chunk_size: int,
    ) -> AsyncIterator[bytes]:
        data = self.read(tier, self._check_key(key))
        return _iter_bytes(data, chunk_size)

    async def sign(self, tier: StorageTier, key: str, *, expires_in: int) -> str:
        k = self._check_key(key)
        if k not in self._objects[tier]:
            raise ObjectMissing(f"Object not found: {k}")
        return f"memory://{tier.value}/{quote(k)}?expires_in={int(expires_in)}"


async def _iter_bytes(data: bytes, chunk_size: int) -> AsyncIterator[bytes]:
    for start in range(0, len(data), chunk_size):
        yield data[start:start + chunk_size]
