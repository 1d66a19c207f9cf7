from __future__ import annotations

"""
Central enum definitions used across ReelBox.

Design notes
------------
• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (DB enums depend on them).
• `FileType` values are uppercase (DB enum); slot names are their lowercase
  form and are what clients send as multipart field names.
"""

from enum import Enum as PyEnum


# ──────────────────────────────────────────────────────────────
# Media slots & storage tiers
# ──────────────────────────────────────────────────────────────
class FileType(str, PyEnum):
    """Which logical media slot an asset record fills."""
    POSTER = "POSTER"
    TRAILER = "TRAILER"
    VIDEO = "VIDEO"

    @property
    def slot(self) -> str:
        """Client-facing slot name (`poster`, `trailer`, `video`)."""
        return self.value.lower()

    @classmethod
    def from_slot(cls, name: str) -> "FileType":
        """Resolve a slot name (any case) to its FileType; ValueError if unknown."""
        return cls(str(name).strip().upper())


class StorageTier(str, PyEnum):
    """Bucket classification: public objects are served by URL, private by key."""
    PUBLIC = "public"
    PRIVATE = "private"


# ──────────────────────────────────────────────────────────────
# Catalog
# ──────────────────────────────────────────────────────────────
class ParentKind(str, PyEnum):
    """Catalog entities that own media slots (values double as URL segments)."""
    SINGLE_MOVIE = "single-movies"
    SERIES_MOVIE = "series-movies"
    SERIES_SEASON = "series-seasons"
    SEASON_EPISODE = "season-episodes"

    @property
    def label(self) -> str:
        return {
            ParentKind.SINGLE_MOVIE: "SingleMovie",
            ParentKind.SERIES_MOVIE: "SeriesMovie",
            ParentKind.SERIES_SEASON: "SeriesSeason",
            ParentKind.SEASON_EPISODE: "SeasonEpisode",
        }[self]


__all__ = ["FileType", "StorageTier", "ParentKind"]
