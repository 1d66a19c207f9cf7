from __future__ import annotations

"""
🎬 ReelBox — SingleMovie
========================

A standalone feature film. Carries all three media slots:

• `poster_url`  — public URL of the live POSTER asset (or NULL)
• `trailer_url` — public URL of the live TRAILER asset (or NULL)
• `video_key`   — private-bucket key of the live VIDEO asset (or NULL)

These columns are denormalized pointers; the authoritative list of stored
objects is `asset_records` (see `AssetRecord.single_movie_id`).
"""

from typing import Optional

from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reelbox.db.base_class import Base, PKMixin, PosterTrailerMixin, TimestampMixin


class SingleMovie(PKMixin, PosterTrailerMixin, TimestampMixin, Base):
    """A single (non-series) movie."""

    __tablename__ = "single_movies"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_key: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("length(trim(title)) > 0", name="title_not_blank"),
    )
