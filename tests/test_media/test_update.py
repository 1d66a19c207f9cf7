# tests/test_media/test_update.py

import pytest

from reelbox.core.exceptions import DeleteFailure, UploadFailure
from reelbox.db.models import SingleMovie
from reelbox.schemas.enums import FileType, StorageTier
from tests.fixtures.catalog import slot


# ─────────────────────────────────────────────────────────────
# 🔁 Replace-before-orphan
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_update_replaces_poster_without_coexistence(coordinator, catalog, records, object_store):
    movie = await catalog.single_movie()
    await coordinator.create(movie, [slot("poster", "old.png")])
    old_key = (await records.find_live(movie, FileType.POSTER)).file_key

    observed = []

    async def snapshot(op, tier, key):
        keys = {r.file_key for r in await records.list_live(movie) if r.file_type is FileType.POSTER}
        observed.append((op, keys, set(object_store.keys(StorageTier.PUBLIC))))

    object_store.before_call = snapshot
    out = await coordinator.update(movie, [slot("poster", "new.png")])
    object_store.before_call = None

    new_record = await records.find_live(movie, FileType.POSTER)
    assert new_record.file_key != old_key
    assert new_record.file_key.endswith("-new.png")
    assert out.poster_url == f"https://cdn.test/{new_record.file_key}"

    # old object gone from the public bucket, only the new one remains
    assert not object_store.exists(StorageTier.PUBLIC, old_key)
    assert object_store.keys(StorageTier.PUBLIC) == [new_record.file_key]

    # the delete happened before the upload, and at the moment of upload
    # neither the old record nor the old object was still live
    ops = [op for op, _, _ in observed]
    assert ops == ["delete", "upload"]
    _, live_at_upload, stored_at_upload = observed[1]
    assert old_key not in live_at_upload
    assert old_key not in stored_at_upload
    for _, live, _ in observed:
        assert len(live) <= 1


@pytest.mark.anyio
async def test_update_leaves_unsupplied_slots_untouched(coordinator, catalog, records):
    movie = await catalog.single_movie()
    created = await coordinator.create(movie, [slot("poster"), slot("trailer", "t.mp4"), slot("video", "v.mp4")])

    out = await coordinator.update(movie, [slot("trailer", "t2.mp4")])

    assert out.poster_url == created.poster_url
    assert out.video_key == created.video_key
    assert out.trailer_url != created.trailer_url and out.trailer_url.endswith("-t2.mp4")
    assert len(await records.list_live(movie)) == 3


@pytest.mark.anyio
async def test_update_first_time_population(coordinator, catalog, records, object_store):
    movie = await catalog.single_movie()
    await coordinator.create(movie, [])

    out = await coordinator.update(movie, [slot("video", "Feature.mp4")])

    assert out.video_key and out.video_key.endswith("-feature.mp4")
    assert [op for op, _, _ in object_store.calls] == ["upload"]
    assert (await records.find_live(movie, FileType.VIDEO)).file_key == out.video_key


@pytest.mark.anyio
async def test_update_with_no_slots_is_a_noop(coordinator, catalog, object_store):
    movie = await catalog.single_movie()
    await coordinator.create(movie, [slot("poster")])
    before = list(object_store.calls)

    out = await coordinator.update(movie, [])

    assert out.poster_url is not None
    assert object_store.calls == before


@pytest.mark.anyio
async def test_update_reports_already_absent_object(coordinator, catalog, records, object_store):
    movie = await catalog.single_movie()
    await coordinator.create(movie, [slot("poster", "gone.png")])
    old_key = (await records.find_live(movie, FileType.POSTER)).file_key
    await object_store.delete(StorageTier.PUBLIC, old_key)  # object vanished behind our back

    out = await coordinator.update(movie, [slot("poster", "fresh.png")])

    assert out.poster_url.endswith("-fresh.png")
    assert len(out.warnings) == 1 and old_key in out.warnings[0]
    assert [r.file_key for r in await records.list_live(movie)] != [old_key]


# ─────────────────────────────────────────────────────────────
# 💥 Failures: earlier slots stay replaced, nothing is re-created
# ─────────────────────────────────────────────────────────────

@pytest.mark.anyio
async def test_delete_failure_blocks_upload_and_keeps_completed_slots(
    coordinator, catalog, records, object_store, session_factory
):
    movie = await catalog.single_movie()
    await coordinator.create(movie, [slot("poster", "p1.png"), slot("trailer", "stuck.mp4")])
    old_trailer = (await records.find_live(movie, FileType.TRAILER)).file_key
    object_store.fail_deletes.add("stuck")

    with pytest.raises(DeleteFailure) as ei:
        await coordinator.update(movie, [slot("poster", "p2.png"), slot("trailer", "t2.mp4")])

    err = ei.value
    assert err.slot == "trailer"
    assert err.key == old_trailer
    assert err.completed_slots == ["poster"]

    # the trailer upload was never attempted
    assert not any(op == "upload" and key.endswith("-t2.mp4") for op, _, key in object_store.calls)

    poster = await records.find_live(movie, FileType.POSTER)
    assert poster.file_key.endswith("-p2.png")
    assert (await records.find_live(movie, FileType.TRAILER)).file_key == old_trailer

    async with session_factory() as db:
        row = await db.get(SingleMovie, movie.id)
    assert row.poster_url == f"https://cdn.test/{poster.file_key}"
    assert row.trailer_url == f"https://cdn.test/{old_trailer}"


@pytest.mark.anyio
async def test_upload_failure_after_delete_leaves_slot_empty(
    coordinator, catalog, records, object_store, session_factory
):
    movie = await catalog.single_movie()
    await coordinator.create(movie, [slot("poster", "p1.png"), slot("video", "v1.mp4")])
    object_store.fail_uploads.add("v2")

    with pytest.raises(UploadFailure) as ei:
        await coordinator.update(movie, [slot("poster", "p2.png"), slot("video", "v2.mp4")])

    assert ei.value.slot == "video"
    assert ei.value.completed_slots == ["poster"]

    # old video deleted before the failed upload; no compensating re-creation
    assert object_store.keys(StorageTier.PRIVATE) == []
    assert await records.find_live(movie, FileType.VIDEO) is None

    async with session_factory() as db:
        row = await db.get(SingleMovie, movie.id)
    assert row.video_key is None
    assert row.poster_url.endswith("-p2.png")
