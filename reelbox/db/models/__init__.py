# reelbox/db/models/__init__.py
"""
ReelBox — ORM models
====================

Catalog parents (each owns media slots) and the asset record table.
"""

from .single_movie import SingleMovie
from .series_movie import SeriesMovie
from .series_season import SeriesSeason
from .season_episode import SeasonEpisode
from .asset_record import AssetRecord, OWNER_COLUMNS

__all__ = [
    "SingleMovie",
    "SeriesMovie",
    "SeriesSeason",
    "SeasonEpisode",
    "AssetRecord",
    "OWNER_COLUMNS",
]
