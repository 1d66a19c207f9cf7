from __future__ import annotations

"""Response models for the media endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field

from reelbox.schemas.enums import ParentKind


class MediaColumnsOut(BaseModel):
    """A parent's denormalized media pointers after an operation."""
    kind: ParentKind
    parent_id: int
    poster_url: Optional[str] = None
    trailer_url: Optional[str] = None
    video_key: Optional[str] = None
    warnings: List[str] = Field(default_factory=list, description="Non-fatal consistency notes (already-absent objects)")


class RemoveResult(BaseModel):
    status: str = "deleted"
    kind: ParentKind
    parent_id: int
    purged_objects: int = 0
    removed_parents: int = 0
    warnings: List[str] = Field(default_factory=list)


class SignedUrlOut(BaseModel):
    url: str
    expires_in: int = Field(..., description="Seconds until the URL stops working")
