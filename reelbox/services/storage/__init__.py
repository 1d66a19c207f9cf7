"""
ReelBox — Object store gateway
==============================

`get_object_store()` returns the process-wide backend selected by
`STORAGE_BACKEND` (`s3` or `memory`).
"""

from functools import lru_cache

from reelbox.core.config import settings
from reelbox.services.storage.base import (
    ObjectMissing,
    ObjectStoreError,
    ObjectStoreProtocol,
    StoredObject,
)
from reelbox.services.storage.memory import MemoryObjectStore
from reelbox.services.storage.s3 import S3ObjectStore


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStoreProtocol:
    if settings.STORAGE_BACKEND == "memory":
        return MemoryObjectStore()
    return S3ObjectStore()


__all__ = [
    "ObjectMissing",
    "ObjectStoreError",
    "ObjectStoreProtocol",
    "StoredObject",
    "MemoryObjectStore",
    "S3ObjectStore",
    "get_object_store",
]
