# tests/test_storage/test_s3_store.py
"""S3ObjectStore over stubbed S3Clients (no network)."""

from unittest.mock import MagicMock

import pytest

from reelbox.schemas.enums import StorageTier
from reelbox.services.storage import ObjectMissing, ObjectStoreError, S3ObjectStore
from reelbox.utils.aws import S3ObjectMissing, S3StorageError


class _Body:
    def __init__(self, data: bytes):
        self._data = data
        self.closed = False

    def read(self, n: int) -> bytes:
        chunk, self._data = self._data[:n], self._data[n:]
        return chunk

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def clients():
    public, private = MagicMock(), MagicMock()
    public.put_bytes.side_effect = lambda key, data, content_type=None: key
    public.public_url.side_effect = lambda key: f"https://cdn.example.com/{key}"
    private.put_bytes.side_effect = lambda key, data, content_type=None: key
    return public, private


@pytest.mark.anyio
async def test_public_upload_returns_url(clients):
    public, private = clients
    store = S3ObjectStore(public=public, private=private)

    stored = await store.upload(StorageTier.PUBLIC, "k-poster.png", b"x", content_type="image/png")

    assert stored.url == "https://cdn.example.com/k-poster.png"
    public.put_bytes.assert_called_once_with("k-poster.png", b"x", content_type="image/png")
    private.put_bytes.assert_not_called()


@pytest.mark.anyio
async def test_private_upload_has_no_url(clients):
    public, private = clients
    store = S3ObjectStore(public=public, private=private)

    stored = await store.upload(StorageTier.PRIVATE, "k-video.mp4", b"x")

    assert stored.url is None and stored.key == "k-video.mp4"
    public.public_url.assert_not_called()


@pytest.mark.anyio
async def test_errors_are_translated(clients):
    public, private = clients
    public.put_bytes.side_effect = S3StorageError("quota")
    private.delete.side_effect = S3StorageError("denied")
    store = S3ObjectStore(public=public, private=private)

    with pytest.raises(ObjectStoreError):
        await store.upload(StorageTier.PUBLIC, "k.png", b"x")
    with pytest.raises(ObjectStoreError):
        await store.delete(StorageTier.PRIVATE, "k.mp4")


@pytest.mark.anyio
async def test_delete_passes_through_existence(clients):
    public, private = clients
    public.delete.return_value = False
    store = S3ObjectStore(public=public, private=private)

    assert await store.delete(StorageTier.PUBLIC, "gone.png") is False


@pytest.mark.anyio
async def test_open_stream_reads_in_chunks_and_closes(clients):
    public, private = clients
    body = _Body(b"abcdefghij")
    private.open_stream.return_value = body
    store = S3ObjectStore(public=public, private=private)

    chunks = [c async for c in await store.open_stream(StorageTier.PRIVATE, "v.mp4", chunk_size=4)]

    assert chunks == [b"abcd", b"efgh", b"ij"]
    assert body.closed


@pytest.mark.anyio
async def test_open_stream_missing_object(clients):
    public, private = clients
    private.open_stream.side_effect = S3ObjectMissing("nope")
    store = S3ObjectStore(public=public, private=private)

    with pytest.raises(ObjectMissing):
        await store.open_stream(StorageTier.PRIVATE, "v.mp4", chunk_size=4)


@pytest.mark.anyio
async def test_unconfigured_bucket_is_a_store_error(monkeypatch):
    from reelbox.core.config import settings

    monkeypatch.setattr(settings, "AWS_PRIVATE_BUCKET_NAME", None)
    store = S3ObjectStore()

    with pytest.raises(ObjectStoreError):
        await store.delete(StorageTier.PRIVATE, "v.mp4")
