from __future__ import annotations

"""
🎞️ ReelBox — SeasonEpisode
==========================

An episode of a `SeriesSeason`. Episode numbers are unique per season.
Owns a poster (public tier) and the episode video (private tier); episodes
have no trailer slot.
"""

from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reelbox.db.base_class import Base, BigIntPK, PKMixin, TimestampMixin


class SeasonEpisode(PKMixin, TimestampMixin, Base):
    """One episode within a season."""

    __tablename__ = "season_episodes"

    season_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("series_seasons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    episode_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Media pointers ────────────────────────────────────────
    poster_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    video_key: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        UniqueConstraint("season_id", "episode_number", name="uq_season_episodes_season_number"),
        CheckConstraint("episode_number >= 0", name="episode_number_nonneg"),
    )
