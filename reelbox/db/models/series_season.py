from __future__ import annotations

"""
🗂️ ReelBox — SeriesSeason
=========================

A season of a `SeriesMovie`. Season numbers are unique per series.
Owns a poster and a trailer (public tier).
"""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reelbox.db.base_class import Base, BigIntPK, PKMixin, PosterTrailerMixin, TimestampMixin


class SeriesSeason(PKMixin, PosterTrailerMixin, TimestampMixin, Base):
    """One season of a series."""

    __tablename__ = "series_seasons"

    series_movie_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("series_movies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    season_number: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        UniqueConstraint("series_movie_id", "season_number", name="uq_series_seasons_series_number"),
        CheckConstraint("season_number >= 0", name="season_number_nonneg"),
    )
