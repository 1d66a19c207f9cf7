# reelbox/db/base.py
"""
ReelBox — SQLAlchemy Base registry
==================================

Import all ORM models so their tables are registered on `Base.metadata`.
This is what Alembic autogeneration and the test schema bootstrap read.

Tip: Keep this file import-only; no runtime logic.
"""

from reelbox.db.base_class import Base

# ───────────────────────────────────────────────────────────────
# Catalog parents
# ───────────────────────────────────────────────────────────────
from reelbox.db.models.single_movie import SingleMovie
from reelbox.db.models.series_movie import SeriesMovie
from reelbox.db.models.series_season import SeriesSeason
from reelbox.db.models.season_episode import SeasonEpisode

# ───────────────────────────────────────────────────────────────
# Media
# ───────────────────────────────────────────────────────────────
from reelbox.db.models.asset_record import AssetRecord

__all__ = [
    "Base",
    "SingleMovie",
    "SeriesMovie",
    "SeriesSeason",
    "SeasonEpisode",
    "AssetRecord",
]
