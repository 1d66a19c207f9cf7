from __future__ import annotations

"""
ReelBox • Storage Tiers & Key Layout
====================================

Two buckets, one per tier:

    s3://{AWS_PUBLIC_BUCKET_NAME}/
      {uuid}-{sanitized-filename}      posters, trailers (served by direct URL)

    s3://{AWS_PRIVATE_BUCKET_NAME}/
      {uuid}-{sanitized-filename}      videos (signed URL / streamed only)

Keys are flat: the random prefix makes them collision-free and the owning
parent is tracked by `asset_records`, not by the key path.

Security
--------
- The private bucket must block public access; reads go through presigned GET
  or the streaming endpoint.
- Default encryption per `AWS_SSE_MODE`.
"""

from typing import Dict

from reelbox.core.config import settings
from reelbox.schemas.enums import FileType, StorageTier

# Slot → tier routing (fixed; never depends on the parent kind)
TIER_FOR_FILE_TYPE: Dict[FileType, StorageTier] = {
    FileType.POSTER: StorageTier.PUBLIC,
    FileType.TRAILER: StorageTier.PUBLIC,
    FileType.VIDEO: StorageTier.PRIVATE,
}


def tier_for(file_type: FileType) -> StorageTier:
    """Bucket tier a slot's objects live in."""
    return TIER_FOR_FILE_TYPE[file_type]


def bucket_name(tier: StorageTier) -> str | None:
    """Configured bucket for a tier (None when unset)."""
    if tier is StorageTier.PUBLIC:
        return settings.AWS_PUBLIC_BUCKET_NAME
    return settings.AWS_PRIVATE_BUCKET_NAME
