from __future__ import annotations

"""
🔒 ReelBox • Per-parent serialization
=====================================

The media coordinator does not serialize concurrent calls: two updates of the
same slot racing each other can both read the same old record and both
upload, and whichever write lands last wins. HTTP handlers therefore wrap
every mutating call in `ParentLocks.hold(*lineage)`: the parent and all of
its ancestors, root first. A series remove takes only the series lock, and
an episode upload takes series, season and episode locks, so the two
serialize on the series.

Backends
--------
- `local` — one `asyncio.Lock` per parent, good for a single process
- `redis` — a `redis.asyncio` lock named `reelbox:lock:{kind}:{id}`, shared by
  every worker pointed at the same Redis

Different parents never share a lock.
"""

import asyncio
import weakref
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import LockError

from reelbox.core.config import settings
from reelbox.core.exceptions import ParentBusyException
from reelbox.services.media.descriptors import ParentRef

LOCK_PREFIX = "reelbox:lock"


def lock_name(ref: ParentRef) -> str:
    return f"{LOCK_PREFIX}:{ref.kind.value}:{ref.id}"


class ParentLocks:
    """Mutex per parent entity (in-process or Redis-backed)."""

    def __init__(
        self,
        *,
        backend: Optional[str] = None,
        client: Optional[redis.Redis] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self.backend = backend or settings.PARENT_LOCK_BACKEND
        self.timeout = int(timeout or settings.PARENT_LOCK_TIMEOUT_SECONDS)
        self._local: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._client = client
        if self.backend == "redis" and self._client is None:
            self._client = redis.Redis.from_url(settings.REDIS_URL)

    @asynccontextmanager
    async def hold(self, *refs: ParentRef) -> AsyncIterator[None]:
        """
        Hold the locks of `refs` in the order given.

        Callers pass a lineage (root first, see `coordinator.lineage`), so a
        child mutation and a cascading remove of any ancestor always meet on
        the ancestor's lock, and every caller acquires in depth order.
        """
        async with AsyncExitStack() as stack:
            for ref in refs:
                await stack.enter_async_context(self._hold_one(ref))
            yield

    @asynccontextmanager
    async def _hold_one(self, ref: ParentRef) -> AsyncIterator[None]:
        name = lock_name(ref)
        if self.backend == "redis":
            lock = self._client.lock(name, timeout=self.timeout, blocking_timeout=self.timeout)
            if not await lock.acquire():
                logger.bind(parent_kind=ref.kind.value, parent_id=ref.id).warning(
                    "Gave up waiting for {} after {}s", name, self.timeout
                )
                raise ParentBusyException(lock=name, waited=self.timeout)
            try:
                yield
            finally:
                try:
                    await lock.release()
                except LockError:
                    logger.bind(parent_kind=ref.kind.value, parent_id=ref.id).warning(
                        "Lock {} expired before release", name
                    )
            return

        lock = self._local.get(name)
        if lock is None:
            lock = asyncio.Lock()
            self._local[name] = lock
        async with lock:
            yield

    def is_locked(self, ref: ParentRef) -> bool:
        """In-process view only (always False for unseen parents)."""
        lock = self._local.get(lock_name(ref))
        return bool(lock and lock.locked())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
