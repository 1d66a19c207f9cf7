from __future__ import annotations

"""
🎬 ReelBox • Asset Lifecycle Coordinator
========================================

One engine for the media slots of every catalog parent (single movie, series
movie, series season, season episode). It keeps three things in step that
share no transaction:

  • the object store (public tier: poster/trailer, private tier: video)
  • `asset_records` (which object fills which slot of which parent)
  • the parent's denormalized columns (`poster_url`, `trailer_url`, `video_key`)

Operations
----------
- `create(parent, slots)`  — upload, then one column write, then records
- `update(parent, slots)`  — per slot: delete old object + record, upload new;
                             then one column write, then records
- `remove(parent)`         — purge every live asset of the parent and its
                             descendants; delete the parent rows only if all
                             purges succeeded
- `media(parent)`          — current column values
- `open_video_stream` / `signed_video_url` — private-tier reads
- `lineage(parent)`        — the parent and its ancestors (the locks to hold)

Failure policy
--------------
Nothing is retried here and nothing is rolled back: objects uploaded before a
failing slot stay in storage and are listed on the raised `UploadFailure`
(`orphaned_keys`); slots finished before a failing slot of an update stay
finished (`completed_slots`). Callers must serialize mutations per parent
lineage (`reelbox.services.media.locks.ParentLocks`); the coordinator holds no locks
and sets no timeouts of its own.
"""

import asyncio
import mimetypes
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from reelbox.core.config import settings
from reelbox.core.exceptions import (
    AppException,
    AssetRecordNotFoundException,
    ConsistencyWarning,
    DeleteFailure,
    NotFoundException,
    ParentNotFoundException,
    SlotNotSupportedException,
    SlotOccupiedException,
    StorageFailure,
    UploadFailure,
)
from reelbox.core.storage import tier_for
from reelbox.db.models import AssetRecord
from reelbox.repositories.asset_records import AssetRecordStoreProtocol
from reelbox.repositories.parents import ParentStoreProtocol
from reelbox.schemas.enums import FileType, StorageTier
from reelbox.services.media.descriptors import SLOT_COLUMNS, ParentDescriptor, ParentRef, descriptor_for
from reelbox.services.media.key_naming import build_storage_key
from reelbox.services.media.reconciliation import (
    collect_tree,
    find_live_asset,
    lineage as parent_lineage,
    partition_by_tier,
    purge_targets,
)
from reelbox.services.storage.base import (
    ObjectMissing,
    ObjectStoreError,
    ObjectStoreProtocol,
    StoredObject,
)


# ─────────────────────────────────────────────────────────────
# 📥 Inputs / 📤 outcomes
# ─────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class UploadSlot:
    """One file for one slot; lives only for the duration of a call."""
    file_type: FileType
    filename: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def slot(self) -> str:
        return self.file_type.slot


@dataclass
class MediaOutcome:
    parent: ParentRef
    poster_url: Optional[str] = None
    trailer_url: Optional[str] = None
    video_key: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


@dataclass
class RemoveOutcome:
    parent: ParentRef
    purged_objects: int = 0
    removed_parents: int = 0
    warnings: List[str] = field(default_factory=list)


@dataclass
class VideoStream:
    key: str
    content_type: str
    chunks: AsyncIterator[bytes]


def _outcome(ref: ParentRef, row: object, warnings: Optional[List[str]] = None) -> MediaOutcome:
    values = {column: getattr(row, column, None) for column in SLOT_COLUMNS.values()}
    return MediaOutcome(parent=ref, warnings=list(warnings or []), **values)


# ─────────────────────────────────────────────────────────────
# 🎛️ Coordinator
# ─────────────────────────────────────────────────────────────
class AssetLifecycleCoordinator:
    def __init__(
        self,
        *,
        store: ObjectStoreProtocol,
        records: AssetRecordStoreProtocol,
        parents: ParentStoreProtocol,
        key_factory=build_storage_key,
    ) -> None:
        self.store = store
        self.records = records
        self.parents = parents
        self._key_factory = key_factory

    # ── helpers ──────────────────────────────────────────────
    async def _require_parent(self, ref: ParentRef) -> object:
        row = await self.parents.get(ref)
        if row is None:
            raise ParentNotFoundException(kind=ref.kind.label, parent_id=ref.id)
        return row

    @staticmethod
    def _validate_slots(desc: ParentDescriptor, slots: Sequence[UploadSlot]) -> List[UploadSlot]:
        seen = set()
        for s in slots:
            if not desc.supports(s.file_type):
                raise SlotNotSupportedException(kind=desc.kind.label, slot=s.slot)
            if s.file_type in seen:
                raise SlotNotSupportedException(kind=desc.kind.label, slot=s.slot, reason="supplied more than once")
            seen.add(s.file_type)
        return list(slots)

    @staticmethod
    def _column_value(stored: StoredObject) -> str:
        # Public objects are referenced by URL, private ones by key.
        if stored.tier is StorageTier.PUBLIC:
            return stored.url or stored.key
        return stored.key

    async def _upload(self, ref: ParentRef, s: UploadSlot) -> StoredObject:
        tier = tier_for(s.file_type)
        key = self._key_factory(s.filename)
        content_type = s.content_type or mimetypes.guess_type(s.filename or "")[0]
        stored = await self.store.upload(tier, key, s.data, content_type=content_type)
        logger.bind(parent_kind=ref.kind.value, parent_id=ref.id, slot=s.slot, key=stored.key).debug(
            "Uploaded {} bytes to {} tier", len(s.data), tier.value
        )
        return stored

    async def _delete_object(
        self, ref: ParentRef, record: AssetRecord, *, tier: Optional[StorageTier] = None
    ) -> Optional[ConsistencyWarning]:
        """Delete the object behind `record`. Absent objects come back as a warning."""
        tier = tier or tier_for(record.file_type)
        log = logger.bind(parent_kind=ref.kind.value, parent_id=ref.id, slot=record.file_type.slot, key=record.file_key)
        try:
            existed = await self.store.delete(tier, record.file_key)
        except ObjectStoreError as exc:
            log.warning("Delete from {} tier failed: {}", tier.value, exc)
            raise DeleteFailure(tier=tier.value, key=record.file_key, cause=exc, slot=record.file_type.slot) from exc
        if existed:
            log.debug("Deleted object from {} tier", tier.value)
            return None
        warning = ConsistencyWarning(tier=tier.value, key=record.file_key, slot=record.file_type.slot)
        log.warning("{}", warning)
        return warning

    async def _persist(
        self,
        ref: ParentRef,
        columns: Dict[str, Optional[str]],
        created: List[Tuple[FileType, str]],
    ) -> object:
        row = await self.parents.update_columns(ref, columns) if columns else await self._require_parent(ref)
        for file_type, key in created:
            await self.records.create(ref, file_type, key)
        return row

    # ── create ───────────────────────────────────────────────
    async def create(self, ref: ParentRef, slots: Sequence[UploadSlot]) -> MediaOutcome:
        """
        Fill empty slots of an existing parent.

        Raises
        ------
        ParentNotFoundException, SlotNotSupportedException,
        SlotOccupiedException (slot already holds a live asset; use update),
        UploadFailure (nothing written to the parent or the record store).
        """
        desc = descriptor_for(ref.kind)
        slots = self._validate_slots(desc, slots)
        row = await self._require_parent(ref)
        if not slots:
            return _outcome(ref, row)

        occupied = [s.slot for s in slots if await find_live_asset(self.records, ref, s.file_type) is not None]
        if occupied:
            raise SlotOccupiedException(kind=ref.kind.label, parent_id=ref.id, slots=occupied)

        uploaded: List[Tuple[UploadSlot, StoredObject]] = []
        for s in slots:
            try:
                stored = await self._upload(ref, s)
            except ObjectStoreError as exc:
                orphaned = [o.key for _, o in uploaded]
                if orphaned:
                    logger.bind(parent_kind=ref.kind.value, parent_id=ref.id, slot=s.slot).warning(
                        "Upload failed; leaving orphaned objects: {}", orphaned
                    )
                raise UploadFailure(slot=s.slot, cause=exc, orphaned_keys=orphaned) from exc
            uploaded.append((s, stored))

        columns = {desc.column_for(s.file_type): self._column_value(o) for s, o in uploaded}
        row = await self._persist(ref, columns, [(s.file_type, o.key) for s, o in uploaded])
        logger.bind(parent_kind=ref.kind.value, parent_id=ref.id).info(
            "Created media for {}: {}", ref, ", ".join(s.slot for s in slots)
        )
        return _outcome(ref, row)

    # ── update ───────────────────────────────────────────────
    async def update(self, ref: ParentRef, slots: Sequence[UploadSlot]) -> MediaOutcome:
        """
        Replace the given slots; slots not supplied are left untouched.

        The old object and record of a slot are deleted *before* the new file
        is uploaded. On a mid-call failure, slots already replaced are
        persisted, a slot whose old asset was deleted but whose upload failed
        is left empty (column NULL), and the failure is raised with
        `completed_slots`.
        """
        desc = descriptor_for(ref.kind)
        slots = self._validate_slots(desc, slots)
        row = await self._require_parent(ref)
        if not slots:
            return _outcome(ref, row)

        columns: Dict[str, Optional[str]] = {}
        created: List[Tuple[FileType, str]] = []
        completed: List[str] = []
        warnings: List[str] = []

        for s in slots:
            column = desc.column_for(s.file_type)
            try:
                live = await find_live_asset(self.records, ref, s.file_type)
                if live is not None:
                    warning = await self._delete_object(ref, live)
                    if warning is not None:
                        warnings.append(str(warning))
                    await self.records.delete(live.file_key)
                    columns[column] = None
                try:
                    stored = await self._upload(ref, s)
                except ObjectStoreError as exc:
                    raise UploadFailure(slot=s.slot, cause=exc, completed_slots=completed) from exc
            except AppException as exc:
                await self._persist(ref, columns, created)
                if isinstance(exc, DeleteFailure):
                    exc.completed_slots = list(completed)
                    exc.details["completed_slots"] = list(completed)
                logger.bind(parent_kind=ref.kind.value, parent_id=ref.id, slot=s.slot).warning(
                    "Update aborted at {}; completed: {}", s.slot, completed or "none"
                )
                raise
            columns[column] = self._column_value(stored)
            created.append((s.file_type, stored.key))
            completed.append(s.slot)

        row = await self._persist(ref, columns, created)
        logger.bind(parent_kind=ref.kind.value, parent_id=ref.id).info(
            "Updated media for {}: {}", ref, ", ".join(completed)
        )
        return _outcome(ref, row, warnings)

    # ── remove ───────────────────────────────────────────────
    async def _purge(
        self, tier: StorageTier, ref: ParentRef, record: AssetRecord
    ) -> Optional[ConsistencyWarning]:
        warning = await self._delete_object(ref, record, tier=tier)
        try:
            await self.records.delete(record.file_key)
        except AssetRecordNotFoundException:
            logger.bind(parent_kind=ref.kind.value, parent_id=ref.id, key=record.file_key).warning(
                "Asset record already retracted by another caller"
            )
        return warning

    async def remove(self, ref: ParentRef) -> RemoveOutcome:
        """
        Purge every live asset of `ref` and its descendants, then delete the
        parent rows. If any object delete fails the parents are kept (their
        columns for purged slots are cleared) and `DeleteFailure` is raised.
        """
        await self._require_parent(ref)
        tree = await collect_tree(self.parents, ref)
        targets = await purge_targets(self.records, tree)

        outcome = RemoveOutcome(parent=ref)
        if targets:
            tiers = partition_by_tier(targets)
            logger.bind(parent_kind=ref.kind.value, parent_id=ref.id).debug(
                "Purging {} public / {} private objects",
                len(tiers.get(StorageTier.PUBLIC, [])),
                len(tiers.get(StorageTier.PRIVATE, [])),
            )
            ordered = [(tier, node, record) for tier, pairs in tiers.items() for node, record in pairs]
            results = await asyncio.gather(
                *(self._purge(tier, node, record) for tier, node, record in ordered),
                return_exceptions=True,
            )
            failures: List[Tuple[ParentRef, AssetRecord, Exception]] = []
            purged: List[Tuple[ParentRef, AssetRecord]] = []
            for (_, node, record), result in zip(ordered, results):
                if isinstance(result, Exception):
                    failures.append((node, record, result))
                    continue
                if isinstance(result, BaseException):
                    raise result
                purged.append((node, record))
                if result is not None:
                    outcome.warnings.append(str(result))
            outcome.purged_objects = len(purged)

            if failures:
                await self._clear_purged_columns(purged)
                _, record, first = failures[0]
                logger.bind(parent_kind=ref.kind.value, parent_id=ref.id).warning(
                    "Remove blocked: {} of {} deletes failed; parent kept", len(failures), len(targets)
                )
                completed = [f"{node}:{rec.file_type.slot}" for node, rec in purged]
                if isinstance(first, DeleteFailure):
                    raise DeleteFailure(
                        tier=first.tier,
                        key=first.key,
                        cause=first.cause,
                        slot=first.slot,
                        completed_slots=completed,
                        failed=len(failures),
                    ) from first
                raise first

        outcome.removed_parents = await self.parents.delete_tree(tree)
        logger.bind(parent_kind=ref.kind.value, parent_id=ref.id).info(
            "Removed {} ({} parents, {} objects)", ref, outcome.removed_parents, outcome.purged_objects
        )
        return outcome

    async def _clear_purged_columns(self, purged: Sequence[Tuple[ParentRef, AssetRecord]]) -> None:
        by_parent: Dict[ParentRef, Dict[str, Optional[str]]] = {}
        for node, record in purged:
            column = descriptor_for(node.kind).column_for(record.file_type)
            by_parent.setdefault(node, {})[column] = None
        for node, columns in by_parent.items():
            await self.parents.update_columns(node, columns)

    # ── reads ────────────────────────────────────────────────
    async def lineage(self, ref: ParentRef) -> List[ParentRef]:
        """`ref` and its ancestors, root first: the locks a mutation of `ref` needs."""
        return await parent_lineage(self.parents, ref)

    async def media(self, ref: ParentRef) -> MediaOutcome:
        return _outcome(ref, await self._require_parent(ref))

    async def _live_video(self, ref: ParentRef) -> AssetRecord:
        desc = descriptor_for(ref.kind)
        if not desc.supports(FileType.VIDEO):
            raise SlotNotSupportedException(kind=ref.kind.label, slot=FileType.VIDEO.slot)
        await self._require_parent(ref)
        record = await find_live_asset(self.records, ref, FileType.VIDEO)
        if record is None:
            raise NotFoundException(f"{ref} has no video", details={"kind": ref.kind.value, "parent_id": ref.id})
        return record

    async def open_video_stream(self, ref: ParentRef, *, chunk_size: Optional[int] = None) -> VideoStream:
        """Open the private video of `ref` for streaming."""
        record = await self._live_video(ref)
        try:
            chunks = await self.store.open_stream(
                StorageTier.PRIVATE,
                record.file_key,
                chunk_size=chunk_size or settings.STREAM_CHUNK_BYTES,
            )
        except ObjectMissing as exc:
            warning = ConsistencyWarning(tier=StorageTier.PRIVATE.value, key=record.file_key, slot=FileType.VIDEO.slot)
            logger.bind(parent_kind=ref.kind.value, parent_id=ref.id, key=record.file_key).warning("{}", warning)
            raise NotFoundException(f"{ref} video object is missing", details={"key": record.file_key}) from exc
        except ObjectStoreError as exc:
            raise StorageFailure(f"Error opening video stream: {exc}", cause=exc, details={"key": record.file_key}) from exc
        content_type = mimetypes.guess_type(record.file_key)[0] or "application/octet-stream"
        return VideoStream(key=record.file_key, content_type=content_type, chunks=chunks)

    async def signed_video_url(self, ref: ParentRef, *, expires_in: Optional[int] = None) -> str:
        """Short-lived presigned GET for the private video of `ref`."""
        record = await self._live_video(ref)
        ttl = int(expires_in or settings.PRIVATE_URL_TTL_SECONDS)
        try:
            return await self.store.sign(StorageTier.PRIVATE, record.file_key, expires_in=ttl)
        except ObjectMissing as exc:
            raise NotFoundException(f"{ref} video object is missing", details={"key": record.file_key}) from exc
        except ObjectStoreError as exc:
            raise StorageFailure(f"Error signing video URL: {exc}", cause=exc, details={"key": record.file_key}) from exc


__all__ = [
    "AssetLifecycleCoordinator",
    "UploadSlot",
    "MediaOutcome",
    "RemoveOutcome",
    "VideoStream",
]
