# tests/test_media/test_locks.py
"""
Per-parent serialization:
- racing updates of one slot, serialized through ParentLocks, end with one live asset
- different parents never wait on each other
- the redis backend uses `reelbox:lock:{kind}:{id}` names
- mutations lock the whole lineage, so an episode upload and a series remove
  never interleave
- a lock that cannot be acquired surfaces as ParentBusyException (429)
"""

import asyncio

import pytest

from reelbox.core.exceptions import ParentBusyException
from reelbox.schemas.enums import ParentKind, StorageTier
from reelbox.services.media.descriptors import ParentRef
from reelbox.services.media.locks import ParentLocks, lock_name
from tests.fixtures.catalog import slot
from tests.fixtures.mocks.redis import MockRedisClient


@pytest.mark.anyio
async def test_serialized_racing_updates_leave_one_live_asset(coordinator, catalog, records, object_store):
    movie = await catalog.single_movie()
    await coordinator.create(movie, [slot("poster", "seed.png")])
    locks = ParentLocks(backend="local")

    async def slow(op, tier, key):
        await asyncio.sleep(0.01)

    object_store.before_call = slow

    async def replace(i):
        async with locks.hold(movie):
            await coordinator.update(movie, [slot("poster", f"racer-{i}.png")])

    await asyncio.gather(*(replace(i) for i in range(5)))

    live = await records.list_live(movie)
    assert len(live) == 1
    assert object_store.keys(StorageTier.PUBLIC) == [live[0].file_key]
    row = await coordinator.media(movie)
    assert row.poster_url.endswith(live[0].file_key)


@pytest.mark.anyio
async def test_different_parents_do_not_contend():
    locks = ParentLocks(backend="local")
    a = ParentRef(ParentKind.SINGLE_MOVIE, 1)
    b = ParentRef(ParentKind.SINGLE_MOVIE, 2)

    async with locks.hold(a):
        assert locks.is_locked(a)
        assert not locks.is_locked(b)
        # would deadlock if b shared a's lock
        await asyncio.wait_for(_hold_briefly(locks, b), timeout=1)


async def _hold_briefly(locks, ref):
    async with locks.hold(ref):
        await asyncio.sleep(0)


@pytest.mark.anyio
async def test_same_parent_waits_for_holder():
    locks = ParentLocks(backend="local")
    ref = ParentRef(ParentKind.SEASON_EPISODE, 7)
    order = []

    async def worker(tag):
        async with locks.hold(ref):
            order.append(f"{tag}-in")
            await asyncio.sleep(0.01)
            order.append(f"{tag}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.anyio
async def test_redis_backend_lock_names_and_release():
    client = MockRedisClient()
    locks = ParentLocks(backend="redis", client=client, timeout=5)
    ref = ParentRef(ParentKind.SERIES_SEASON, 42)

    async with locks.hold(ref):
        pass
    async with locks.hold(ref):
        pass

    assert lock_name(ref) == "reelbox:lock:series-seasons:42"
    assert client.lock_names == [lock_name(ref), lock_name(ref)]
    await locks.close()
    assert client.closed


def test_unlocked_view_for_unseen_parent():
    assert not ParentLocks(backend="local").is_locked(ParentRef(ParentKind.SINGLE_MOVIE, 1))


@pytest.mark.anyio
async def test_lineage_is_root_first(coordinator, catalog):
    movie = await catalog.single_movie()
    series = await catalog.series_movie()
    season = await catalog.season(series)
    episode = await catalog.episode(season)

    assert await coordinator.lineage(movie) == [movie]
    assert await coordinator.lineage(series) == [series]
    assert await coordinator.lineage(season) == [series, season]
    assert await coordinator.lineage(episode) == [series, season, episode]


@pytest.mark.anyio
async def test_episode_upload_and_series_remove_do_not_interleave(coordinator, catalog, records, object_store):
    series = await catalog.series_movie()
    season = await catalog.season(series)
    episode = await catalog.episode(season)
    locks = ParentLocks(backend="local")
    upload_started = asyncio.Event()

    async def slow_upload(op, tier, key):
        if op == "upload":
            upload_started.set()
            await asyncio.sleep(0.05)

    object_store.before_call = slow_upload

    async def upload_video():
        async with locks.hold(*await coordinator.lineage(episode)):
            return await coordinator.create(episode, [slot("video", "ep.mp4")])

    async def remove_series():
        await upload_started.wait()
        async with locks.hold(*await coordinator.lineage(series)):
            return await coordinator.remove(series)

    created, removed = await asyncio.gather(upload_video(), remove_series())

    assert created.video_key is not None
    assert removed.removed_parents == 3
    assert removed.purged_objects == 1
    assert object_store.keys(StorageTier.PRIVATE) == []
    assert await records.list_live(episode) == []


@pytest.mark.anyio
async def test_redis_lock_timeout_is_busy_error():
    client = MockRedisClient()
    locks = ParentLocks(backend="redis", client=client, timeout=5)
    series = ParentRef(ParentKind.SERIES_MOVIE, 3)
    season = ParentRef(ParentKind.SERIES_SEASON, 9)
    client.busy.add(lock_name(season))

    with pytest.raises(ParentBusyException) as exc:
        async with locks.hold(series, season):
            pass

    assert exc.value.status_code == 429
    assert exc.value.details["lock"] == lock_name(season)
    # the series lock taken first was released again
    async with locks.hold(series):
        pass
