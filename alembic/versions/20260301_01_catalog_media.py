"""
Catalog parents + asset records.

- single_movies, series_movies, series_seasons, season_episodes with their
  media pointer columns (poster_url / trailer_url / video_key).
- asset_records: one row per stored object, exactly one owner column set.
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic.
revision = "20260301_01_catalog_media"
down_revision = None
branch_labels = None
depends_on = None

_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
_OWNER_COLUMNS = ("single_movie_id", "series_movie_id", "series_season_id", "season_episode_id")


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "single_movies",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("poster_url", sa.String(length=2048), nullable=True),
        sa.Column("trailer_url", sa.String(length=2048), nullable=True),
        sa.Column("video_key", sa.String(length=1024), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("length(trim(title)) > 0", name="ck_single_movies_title_not_blank"),
    )
    op.create_index("ix_single_movies_title", "single_movies", ["title"])

    op.create_table(
        "series_movies",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("poster_url", sa.String(length=2048), nullable=True),
        sa.Column("trailer_url", sa.String(length=2048), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("length(trim(title)) > 0", name="ck_series_movies_title_not_blank"),
    )
    op.create_index("ix_series_movies_title", "series_movies", ["title"])

    op.create_table(
        "series_seasons",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("series_movie_id", _ID, sa.ForeignKey("series_movies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("season_number", sa.Integer(), nullable=False),
        sa.Column("poster_url", sa.String(length=2048), nullable=True),
        sa.Column("trailer_url", sa.String(length=2048), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("series_movie_id", "season_number", name="uq_series_seasons_series_number"),
        sa.CheckConstraint("season_number >= 0", name="ck_series_seasons_season_number_nonneg"),
    )
    op.create_index("ix_series_seasons_series_movie_id", "series_seasons", ["series_movie_id"])

    op.create_table(
        "season_episodes",
        sa.Column("id", _ID, primary_key=True, autoincrement=True),
        sa.Column("season_id", _ID, sa.ForeignKey("series_seasons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("episode_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("poster_url", sa.String(length=2048), nullable=True),
        sa.Column("video_key", sa.String(length=1024), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("season_id", "episode_number", name="uq_season_episodes_season_number"),
        sa.CheckConstraint("episode_number >= 0", name="ck_season_episodes_episode_number_nonneg"),
    )
    op.create_index("ix_season_episodes_season_id", "season_episodes", ["season_id"])

    owner_sum = " + ".join(f"(CASE WHEN {c} IS NULL THEN 0 ELSE 1 END)" for c in _OWNER_COLUMNS)
    op.create_table(
        "asset_records",
        sa.Column("file_key", sa.String(length=1024), primary_key=True),
        sa.Column("file_type", sa.Enum("POSTER", "TRAILER", "VIDEO", name="media_file_type"), nullable=False),
        sa.Column("single_movie_id", _ID, sa.ForeignKey("single_movies.id", ondelete="CASCADE"), nullable=True),
        sa.Column("series_movie_id", _ID, sa.ForeignKey("series_movies.id", ondelete="CASCADE"), nullable=True),
        sa.Column("series_season_id", _ID, sa.ForeignKey("series_seasons.id", ondelete="CASCADE"), nullable=True),
        sa.Column("season_episode_id", _ID, sa.ForeignKey("season_episodes.id", ondelete="CASCADE"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(f"({owner_sum}) = 1", name="ck_asset_records_exactly_one_owner"),
        sa.CheckConstraint("length(trim(file_key)) > 0", name="ck_asset_records_file_key_not_blank"),
    )
    op.create_index("ix_asset_records_file_type", "asset_records", ["file_type"])
    for owner in _OWNER_COLUMNS:
        op.create_index(f"ix_asset_records_{owner[:-3]}_slot", "asset_records", [owner, "file_type"])


def downgrade() -> None:
    for owner in _OWNER_COLUMNS:
        op.drop_index(f"ix_asset_records_{owner[:-3]}_slot", table_name="asset_records")
    op.drop_index("ix_asset_records_file_type", table_name="asset_records")
    op.drop_table("asset_records")
    sa.Enum(name="media_file_type").drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_season_episodes_season_id", table_name="season_episodes")
    op.drop_table("season_episodes")
    op.drop_index("ix_series_seasons_series_movie_id", table_name="series_seasons")
    op.drop_table("series_seasons")
    op.drop_index("ix_series_movies_title", table_name="series_movies")
    op.drop_table("series_movies")
    op.drop_index("ix_single_movies_title", table_name="single_movies")
    op.drop_table("single_movies")
