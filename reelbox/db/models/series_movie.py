from __future__ import annotations

"""
📺 ReelBox — SeriesMovie
========================

The top of a series hierarchy: SeriesMovie → SeriesSeason → SeasonEpisode.
Owns a poster and a trailer (public tier); videos live on episodes.

Removing a series removes every season and episode below it, and with them
every media object they own (see the media coordinator's cascading remove).
"""

from typing import Optional

from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reelbox.db.base_class import Base, PKMixin, PosterTrailerMixin, TimestampMixin


class SeriesMovie(PKMixin, PosterTrailerMixin, TimestampMixin, Base):
    """A series (show) made of seasons."""

    __tablename__ = "series_movies"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("length(trim(title)) > 0", name="title_not_blank"),
    )
