from __future__ import annotations

"""Object store gateway interface.

Two logical buckets (`StorageTier.PUBLIC`, `StorageTier.PRIVATE`) behind one
async interface. The media coordinator only ever talks to this surface; the
concrete backend (S3 or in-memory) is chosen by `get_object_store()`.
"""

from dataclasses import dataclass
from typing import AsyncIterator, Optional

from reelbox.schemas.enums import StorageTier


class ObjectStoreError(RuntimeError):
    """A store call failed (network, permission, quota, invalid key)."""


class ObjectMissing(ObjectStoreError):
    """A read targeted a key the tier does not hold."""


@dataclass(frozen=True)
class StoredObject:
    tier: StorageTier
    key: str
    url: Optional[str] = None  # public tier only


# Protocol-like documentation for the expected interface.
# All methods are coroutines; a suspension happens at every call.


class ObjectStoreProtocol:
    async def upload(
        self,
        tier: StorageTier,
        key: str,
        data: bytes,
        *,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        raise NotImplementedError

    async def delete(self, tier: StorageTier, key: str) -> bool:
        """Delete `key`; True if it existed, False if it was already absent."""
        raise NotImplementedError

    async def open_stream(
        self,
        tier: StorageTier,
        key: str,
        *,
        chunk_size: int,
    ) -> AsyncIterator[bytes]:
        """Resolve `key` and return an iterator over its bytes (ObjectMissing if absent)."""
        raise NotImplementedError

    async def sign(self, tier: StorageTier, key: str, *, expires_in: int) -> str:
        raise NotImplementedError
