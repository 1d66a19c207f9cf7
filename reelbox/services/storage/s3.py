from __future__ import annotations

"""
📦 ReelBox • S3 Object Store
============================

Async gateway over two `S3Client`s (public + private bucket). boto3 is
synchronous, so every call is pushed to a worker thread with
`asyncio.to_thread` and the event loop never blocks on the network.

Timeouts and retries are configured on the boto client (settings), not here.
"""

import asyncio
from typing import Any, AsyncIterator, Dict, Optional

from loguru import logger

from reelbox.core.config import settings
from reelbox.core.storage import bucket_name
from reelbox.schemas.enums import StorageTier
from reelbox.services.storage.base import (
    ObjectMissing,
    ObjectStoreError,
    ObjectStoreProtocol,
    StoredObject,
)
from reelbox.utils.aws import S3Client, S3ObjectMissing, S3StorageError


class S3ObjectStore(ObjectStoreProtocol):
    """Object store backed by one S3 bucket per tier."""

    def __init__(self, *, public: Optional[S3Client] = None, private: Optional[S3Client] = None) -> None:
        self._clients: Dict[StorageTier, Optional[S3Client]] = {
            StorageTier.PUBLIC: public,
            StorageTier.PRIVATE: private,
        }

    def _client(self, tier: StorageTier) -> S3Client:
        client = self._clients.get(tier)
        if client is None:
            try:
                client = S3Client(
                    bucket_name(tier),
                    cdn_base_url=settings.cdn_base_url if tier is StorageTier.PUBLIC else None,
                )
            except S3StorageError as exc:
                raise ObjectStoreError(f"{tier.value} bucket unavailable: {exc}") from exc
            self._clients[tier] = client
        return client

    async def upload(
        self,
        tier: StorageTier,
        key: str,
        data: bytes,
        *,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        client = self._client(tier)
        try:
            written = await asyncio.to_thread(client.put_bytes, key, data, content_type=content_type)
        except S3StorageError as exc:
            raise ObjectStoreError(str(exc)) from exc
        url = client.public_url(written) if tier is StorageTier.PUBLIC else None
        return StoredObject(tier=tier, key=written, url=url)

    async def delete(self, tier: StorageTier, key: str) -> bool:
        client = self._client(tier)
        try:
            return await asyncio.to_thread(client.delete, key)
        except S3StorageError as exc:
            raise ObjectStoreError(str(exc)) from exc

    async def open_stream(
        self,
        tier: StorageTier,
        key: str,
        *,
        chunk_size: int,
    ) -> AsyncIterator[bytes]:
        client = self._client(tier)
        try:
            body = await asyncio.to_thread(client.open_stream, key)
        except S3ObjectMissing as exc:
            raise ObjectMissing(str(exc)) from exc
        except S3StorageError as exc:
            raise ObjectStoreError(str(exc)) from exc
        return _iter_body(body, chunk_size)

    async def sign(self, tier: StorageTier, key: str, *, expires_in: int) -> str:
        client = self._client(tier)
        try:
            return await asyncio.to_thread(client.presigned_get, key, expires_in=expires_in)
        except S3StorageError as exc:
            raise ObjectStoreError(str(exc)) from exc


async def _iter_body(body: Any, chunk_size: int) -> AsyncIterator[bytes]:
    """Drain a botocore StreamingBody chunk by chunk, closing it at the end."""
    try:
        while True:
            chunk = await asyncio.to_thread(body.read, chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        try:
            body.close()
        except Exception:  # pragma: no cover
            logger.opt(exception=True).debug("Failed to close S3 body")
