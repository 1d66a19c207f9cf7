from __future__ import annotations

"""
🗃️ ReelBox — AssetRecord (one row per stored media object)
==========================================================

Maps an owning parent + slot to the storage key of the object that fills it.

Design highlights
-----------------
• **Key-identified**: `file_key` is the primary key; keys are globally unique
  (random prefix) so a row never needs a surrogate id.
• **Scoped linking**: one nullable owner column per parent kind, exactly one
  non-null (CHECK), each with `ON DELETE CASCADE` so the database drops records
  together with their parent.
• **Single live asset per slot**: the media coordinator deletes the previous
  record before creating its replacement. There is deliberately no unique index
  on (owner, file_type): concurrent updates of the same slot are serialized by
  callers (see `reelbox.services.media.locks`), not by the table.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from reelbox.db.base_class import Base, BigIntPK
from reelbox.schemas.enums import FileType

OWNER_COLUMNS = ("single_movie_id", "series_movie_id", "series_season_id", "season_episode_id")


def _exactly_one_owner() -> str:
    terms = " + ".join(f"(CASE WHEN {c} IS NULL THEN 0 ELSE 1 END)" for c in OWNER_COLUMNS)
    return f"({terms}) = 1"


class AssetRecord(Base):
    """A stored media object owned by exactly one parent entity."""

    __tablename__ = "asset_records"

    file_key: Mapped[str] = mapped_column(String(1024), primary_key=True)
    file_type: Mapped[FileType] = mapped_column(
        SAEnum(FileType, name="media_file_type"),
        nullable=False,
        index=True,
    )

    # ── Scope (exactly one) ───────────────────────────────────
    single_movie_id: Mapped[Optional[int]] = mapped_column(
        BigIntPK, ForeignKey("single_movies.id", ondelete="CASCADE"), nullable=True
    )
    series_movie_id: Mapped[Optional[int]] = mapped_column(
        BigIntPK, ForeignKey("series_movies.id", ondelete="CASCADE"), nullable=True
    )
    series_season_id: Mapped[Optional[int]] = mapped_column(
        BigIntPK, ForeignKey("series_seasons.id", ondelete="CASCADE"), nullable=True
    )
    season_episode_id: Mapped[Optional[int]] = mapped_column(
        BigIntPK, ForeignKey("season_episodes.id", ondelete="CASCADE"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(_exactly_one_owner(), name="exactly_one_owner"),
        CheckConstraint("length(trim(file_key)) > 0", name="file_key_not_blank"),
        Index("ix_asset_records_single_movie_slot", "single_movie_id", "file_type"),
        Index("ix_asset_records_series_movie_slot", "series_movie_id", "file_type"),
        Index("ix_asset_records_series_season_slot", "series_season_id", "file_type"),
        Index("ix_asset_records_season_episode_slot", "season_episode_id", "file_type"),
    )

    @property
    def owner_id(self) -> Optional[int]:
        for column in OWNER_COLUMNS:
            value = getattr(self, column)
            if value is not None:
                return value
        return None

    def __repr__(self) -> str:  # pragma: no cover
        return f"<AssetRecord key={self.file_key} type={self.file_type} owner={self.owner_id}>"
