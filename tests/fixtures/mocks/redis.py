from __future__ import annotations

"""
MockRedisClient (async) — lock subset only
==========================================
Enough of `redis.asyncio.Redis` for `ParentLocks`:

Lock : lock(name, timeout=..., blocking_timeout=...) → MockLock
       acquire()/release(); names are recorded for assertions
       names in `busy` never acquire (simulates another holder)
"""

import asyncio
from typing import Dict, List, Optional, Set


class MockLock:
    def __init__(self, client: "MockRedisClient", name: str, timeout: Optional[float], blocking_timeout: Optional[float]):
        self._client = client
        self.name = name
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout

    async def acquire(self) -> bool:
        if self.name in self._client.busy:
            return False
        lock = self._client._locks.setdefault(self.name, asyncio.Lock())
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.blocking_timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def release(self) -> None:
        self._client._locks[self.name].release()


class MockRedisClient:
    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self.lock_names: List[str] = []
        self.busy: Set[str] = set()  # names held by "another worker"
        self.closed = False

    def lock(self, name: str, timeout: Optional[float] = None, blocking_timeout: Optional[float] = None) -> MockLock:
        self.lock_names.append(name)
        return MockLock(self, name, timeout, blocking_timeout)

    async def aclose(self) -> None:
        self.closed = True
