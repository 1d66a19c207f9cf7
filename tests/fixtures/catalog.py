# tests/fixtures/catalog.py
"""
🎬 Catalog factories: insert parents directly (catalog CRUD is not part of
the media API) and return their `ParentRef`.
"""

from typing import Optional

import pytest

from reelbox.db.models import SeasonEpisode, SeriesMovie, SeriesSeason, SingleMovie
from reelbox.schemas.enums import FileType, ParentKind
from reelbox.services.media.coordinator import UploadSlot
from reelbox.services.media.descriptors import ParentRef


def slot(name: str, filename: Optional[str] = None, data: bytes = b"media-bytes") -> UploadSlot:
    """Build an UploadSlot from a slot name: slot("poster", "A.png")."""
    return UploadSlot(file_type=FileType.from_slot(name), filename=filename or f"{name}.bin", data=data)


class Catalog:
    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def _add(self, row) -> int:
        async with self._session_factory() as db:
            db.add(row)
            await db.commit()
            return row.id

    async def single_movie(self, title: str = "Heat") -> ParentRef:
        return ParentRef(ParentKind.SINGLE_MOVIE, await self._add(SingleMovie(title=title)))

    async def series_movie(self, title: str = "Dark") -> ParentRef:
        return ParentRef(ParentKind.SERIES_MOVIE, await self._add(SeriesMovie(title=title)))

    async def season(self, series: ParentRef, number: int = 1) -> ParentRef:
        row = SeriesSeason(series_movie_id=series.id, season_number=number)
        return ParentRef(ParentKind.SERIES_SEASON, await self._add(row))

    async def episode(self, season: ParentRef, number: int = 1) -> ParentRef:
        row = SeasonEpisode(season_id=season.id, episode_number=number, title=f"Episode {number}")
        return ParentRef(ParentKind.SEASON_EPISODE, await self._add(row))


@pytest.fixture()
def catalog(session_factory) -> Catalog:
    return Catalog(session_factory)
