"""Aggregated v1 router (mounted under `settings.API_V1_STR`)."""

from fastapi import APIRouter

from reelbox.api.v1.routers import media

router = APIRouter()
router.include_router(media.admin_router)
router.include_router(media.stream_router)

__all__ = ["router"]
