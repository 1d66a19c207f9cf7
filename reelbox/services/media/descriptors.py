from __future__ import annotations

"""
🎛️ ReelBox • Parent descriptors
===============================

The four catalog parents differ only in *data*: which table they live in,
which media slots they carry, which column mirrors each slot, which
`asset_records` owner column points at them, and which kind (if any) hangs
below them. One `ParentDescriptor` per kind captures that, and the media
coordinator is written once against it.

| kind            | poster | trailer | video | children        |
|-----------------|--------|---------|-------|-----------------|
| single movie    |   ✓    |    ✓    |   ✓   |                 |
| series movie    |   ✓    |    ✓    |       | series seasons  |
| series season   |   ✓    |    ✓    |       | season episodes |
| season episode  |   ✓    |         |   ✓   |                 |
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Type

from reelbox.db.base_class import Base
from reelbox.db.models import SeasonEpisode, SeriesMovie, SeriesSeason, SingleMovie
from reelbox.schemas.enums import FileType, ParentKind

# Slot → denormalized column on the parent row
SLOT_COLUMNS: Dict[FileType, str] = {
    FileType.POSTER: "poster_url",
    FileType.TRAILER: "trailer_url",
    FileType.VIDEO: "video_key",
}


@dataclass(frozen=True)
class ParentRef:
    """Identity of one parent entity: its kind plus its primary key."""
    kind: ParentKind
    id: int

    def __str__(self) -> str:
        return f"{self.kind.label}#{self.id}"


@dataclass(frozen=True)
class ParentDescriptor:
    kind: ParentKind
    model: Type[Base]
    owner_column: str  # AssetRecord column holding this kind's id
    columns: Mapping[FileType, str] = field(default_factory=dict)
    child_kind: Optional[ParentKind] = None
    child_fk: Optional[str] = None  # column on the child model pointing back here

    @property
    def slots(self) -> tuple[FileType, ...]:
        return tuple(self.columns)

    def supports(self, file_type: FileType) -> bool:
        return file_type in self.columns

    def column_for(self, file_type: FileType) -> str:
        return self.columns[file_type]


def _columns(*file_types: FileType) -> Dict[FileType, str]:
    return {ft: SLOT_COLUMNS[ft] for ft in file_types}


DESCRIPTORS: Dict[ParentKind, ParentDescriptor] = {
    ParentKind.SINGLE_MOVIE: ParentDescriptor(
        kind=ParentKind.SINGLE_MOVIE,
        model=SingleMovie,
        owner_column="single_movie_id",
        columns=_columns(FileType.POSTER, FileType.TRAILER, FileType.VIDEO),
    ),
    ParentKind.SERIES_MOVIE: ParentDescriptor(
        kind=ParentKind.SERIES_MOVIE,
        model=SeriesMovie,
        owner_column="series_movie_id",
        columns=_columns(FileType.POSTER, FileType.TRAILER),
        child_kind=ParentKind.SERIES_SEASON,
        child_fk="series_movie_id",
    ),
    ParentKind.SERIES_SEASON: ParentDescriptor(
        kind=ParentKind.SERIES_SEASON,
        model=SeriesSeason,
        owner_column="series_season_id",
        columns=_columns(FileType.POSTER, FileType.TRAILER),
        child_kind=ParentKind.SEASON_EPISODE,
        child_fk="season_id",
    ),
    ParentKind.SEASON_EPISODE: ParentDescriptor(
        kind=ParentKind.SEASON_EPISODE,
        model=SeasonEpisode,
        owner_column="season_episode_id",
        columns=_columns(FileType.POSTER, FileType.VIDEO),
    ),
}


def descriptor_for(kind: ParentKind) -> ParentDescriptor:
    return DESCRIPTORS[ParentKind(kind)]


def owner_descriptor(kind: ParentKind) -> Optional[ParentDescriptor]:
    """Descriptor of the kind that owns `kind` in the series hierarchy (None at the top)."""
    kind = ParentKind(kind)
    for desc in DESCRIPTORS.values():
        if desc.child_kind is kind:
            return desc
    return None


__all__ = ["SLOT_COLUMNS", "ParentRef", "ParentDescriptor", "DESCRIPTORS", "descriptor_for", "owner_descriptor"]
