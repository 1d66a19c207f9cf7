"""
🎞️ ReelBox · Media Lifecycle (Admin + Streaming)
=================================================

Thin HTTP surface over `AssetLifecycleCoordinator`. `{kind}` is one of
`single-movies`, `series-movies`, `series-seasons`, `season-episodes`.

Routes (6)
----------
Admin
  - GET    /admin/{kind}/{parent_id}/media       current poster/trailer/video pointers
  - POST   /admin/{kind}/{parent_id}/media       fill empty slots (multipart: poster, trailer, video)
  - PATCH  /admin/{kind}/{parent_id}/media       replace supplied slots, keep the rest
  - DELETE /admin/{kind}/{parent_id}             purge media (whole series tree) and delete
  - GET    /admin/{kind}/{parent_id}/video-url   presigned GET for the private video
Streaming
  - GET    /stream/{kind}/{parent_id}/video      private video bytes

Operations
----------
- Every mutation runs under the locks of the parent and its ancestors
  (`ParentLocks.hold(*lineage)`), so an episode upload and a series remove
  never interleave
- Storage failures surface as 502 problem responses with the slot/key involved
- A lock held elsewhere past its timeout surfaces as 429 (`ParentBusyException`)
- Presigned and streamed responses are `Cache-Control: no-store`
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Path, Query, Response, UploadFile
from fastapi.responses import StreamingResponse

from reelbox.core.config import settings
from reelbox.dependencies.media import get_coordinator, get_parent_locks
from reelbox.schemas.enums import FileType, ParentKind
from reelbox.schemas.media import MediaColumnsOut, RemoveResult, SignedUrlOut
from reelbox.services.media.coordinator import AssetLifecycleCoordinator, MediaOutcome, UploadSlot
from reelbox.services.media.descriptors import ParentRef
from reelbox.services.media.locks import ParentLocks

admin_router = APIRouter(prefix="/admin", tags=["Admin • Media"])
stream_router = APIRouter(prefix="/stream", tags=["Streaming"])


# ─────────────────────────────────────────────────────────────
# 🧰 Helpers
# ─────────────────────────────────────────────────────────────
async def _collect_slots(**files: Optional[UploadFile]) -> List[UploadSlot]:
    slots: List[UploadSlot] = []
    for name, upload in files.items():
        if upload is None:
            continue
        slots.append(
            UploadSlot(
                file_type=FileType.from_slot(name),
                filename=upload.filename or name,
                data=await upload.read(),
                content_type=upload.content_type,
            )
        )
    return slots


def _to_out(outcome: MediaOutcome) -> MediaColumnsOut:
    return MediaColumnsOut(
        kind=outcome.parent.kind,
        parent_id=outcome.parent.id,
        poster_url=outcome.poster_url,
        trailer_url=outcome.trailer_url,
        video_key=outcome.video_key,
        warnings=outcome.warnings,
    )


# ─────────────────────────────────────────────────────────────
# 🛠️ Admin
# ─────────────────────────────────────────────────────────────
@admin_router.get("/{kind}/{parent_id}/media", response_model=MediaColumnsOut, summary="Current media pointers")
async def get_media(
    kind: ParentKind,
    parent_id: int = Path(..., ge=1),
    coordinator: AssetLifecycleCoordinator = Depends(get_coordinator),
) -> MediaColumnsOut:
    return _to_out(await coordinator.media(ParentRef(kind, parent_id)))


@admin_router.post(
    "/{kind}/{parent_id}/media",
    response_model=MediaColumnsOut,
    status_code=201,
    summary="Upload media into empty slots",
)
async def create_media(
    kind: ParentKind,
    parent_id: int = Path(..., ge=1),
    poster: Optional[UploadFile] = File(None),
    trailer: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    coordinator: AssetLifecycleCoordinator = Depends(get_coordinator),
    locks: ParentLocks = Depends(get_parent_locks),
) -> MediaColumnsOut:
    ref = ParentRef(kind, parent_id)
    slots = await _collect_slots(poster=poster, trailer=trailer, video=video)
    async with locks.hold(*await coordinator.lineage(ref)):
        outcome = await coordinator.create(ref, slots)
    return _to_out(outcome)


@admin_router.patch("/{kind}/{parent_id}/media", response_model=MediaColumnsOut, summary="Replace media slots")
async def update_media(
    kind: ParentKind,
    parent_id: int = Path(..., ge=1),
    poster: Optional[UploadFile] = File(None),
    trailer: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    coordinator: AssetLifecycleCoordinator = Depends(get_coordinator),
    locks: ParentLocks = Depends(get_parent_locks),
) -> MediaColumnsOut:
    ref = ParentRef(kind, parent_id)
    slots = await _collect_slots(poster=poster, trailer=trailer, video=video)
    async with locks.hold(*await coordinator.lineage(ref)):
        outcome = await coordinator.update(ref, slots)
    return _to_out(outcome)


@admin_router.delete("/{kind}/{parent_id}", response_model=RemoveResult, summary="Purge media and delete parent")
async def remove_parent(
    kind: ParentKind,
    parent_id: int = Path(..., ge=1),
    coordinator: AssetLifecycleCoordinator = Depends(get_coordinator),
    locks: ParentLocks = Depends(get_parent_locks),
) -> RemoveResult:
    ref = ParentRef(kind, parent_id)
    async with locks.hold(*await coordinator.lineage(ref)):
        outcome = await coordinator.remove(ref)
    return RemoveResult(
        kind=kind,
        parent_id=parent_id,
        purged_objects=outcome.purged_objects,
        removed_parents=outcome.removed_parents,
        warnings=outcome.warnings,
    )


@admin_router.get("/{kind}/{parent_id}/video-url", response_model=SignedUrlOut, summary="Presigned video URL")
async def video_url(
    response: Response,
    kind: ParentKind,
    parent_id: int = Path(..., ge=1),
    expires_in: Optional[int] = Query(None, ge=60, le=24 * 60 * 60),
    coordinator: AssetLifecycleCoordinator = Depends(get_coordinator),
) -> SignedUrlOut:
    ttl = expires_in or settings.PRIVATE_URL_TTL_SECONDS
    url = await coordinator.signed_video_url(ParentRef(kind, parent_id), expires_in=ttl)
    response.headers["Cache-Control"] = "no-store"
    return SignedUrlOut(url=url, expires_in=ttl)


# ─────────────────────────────────────────────────────────────
# 📺 Streaming
# ─────────────────────────────────────────────────────────────
@stream_router.get("/{kind}/{parent_id}/video", summary="Stream private video")
async def stream_video(
    kind: ParentKind,
    parent_id: int = Path(..., ge=1),
    coordinator: AssetLifecycleCoordinator = Depends(get_coordinator),
) -> StreamingResponse:
    stream = await coordinator.open_video_stream(ParentRef(kind, parent_id))
    return StreamingResponse(
        stream.chunks,
        media_type=stream.content_type,
        headers={"Cache-Control": "no-store", "Content-Disposition": "inline"},
    )
