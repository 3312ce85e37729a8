"""
ORM Entities

SQLAlchemy models for the synced catalog, trending list, translations
and the sync settings row.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CatalogItemMixin:
    """Descriptive fields shared by movies, TV series and trending rows."""
    id = Column(Integer, primary_key=True)
    tmdb_id = Column(Integer, nullable=False, index=True)
    title = Column(String(500), nullable=False)
    overview = Column(Text)
    poster_path = Column(String(255))
    backdrop_path = Column(String(255))
    release_date = Column(Date)
    vote_average = Column(Float, default=0)
    vote_count = Column(Integer, default=0)
    popularity = Column(Float, default=0)
    genre_ids = Column(JSON, default=list)
    original_language = Column(String(16))
    created_at = Column(DateTime(timezone=True), default=utc_now)
    last_updated = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, index=True)


class Movie(CatalogItemMixin, Base):
    __tablename__ = "movies"
    __table_args__ = (UniqueConstraint("tmdb_id", name="uq_movies_tmdb_id"),)

    original_title = Column(String(500))
    adult = Column(Boolean, default=False)
    view_count = Column(Integer, default=0)
    is_blocked = Column(Boolean, default=False)
    block_reason = Column(Text)


class TVSeries(CatalogItemMixin, Base):
    __tablename__ = "tv_series"
    __table_args__ = (UniqueConstraint("tmdb_id", name="uq_tv_series_tmdb_id"),)

    original_title = Column(String(500))
    first_air_date = Column(Date)
    origin_country = Column(JSON, default=list)
    number_of_seasons = Column(Integer)
    number_of_episodes = Column(Integer)
    view_count = Column(Integer, default=0)
    is_blocked = Column(Boolean, default=False)
    block_reason = Column(Text)


class Trending(CatalogItemMixin, Base):
    __tablename__ = "trending"
    __table_args__ = (
        UniqueConstraint("tmdb_id", "media_type", name="uq_trending_tmdb_id_media_type"),
    )

    media_type = Column(String(10), nullable=False)  # 'movie' or 'tv'
    adult = Column(Boolean, default=False)
    is_hidden = Column(Boolean, default=False, nullable=False)
    hidden_reason = Column(Text)
    hidden_at = Column(DateTime(timezone=True))


class ContentTranslation(Base):
    __tablename__ = "content_translations"
    __table_args__ = (
        UniqueConstraint("tmdb_id", "content_type", "language", name="uq_translation_key"),
    )

    id = Column(Integer, primary_key=True)
    tmdb_id = Column(Integer, nullable=False, index=True)
    content_type = Column(String(10), nullable=False)
    language = Column(String(10), nullable=False)
    title = Column(String(500))
    overview = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class SyncSettings(Base):
    __tablename__ = "sync_settings"

    id = Column(Integer, primary_key=True, default=1)
    # NULL falls back to the configured default; negative means unlimited
    movie_catalog_limit = Column(Integer)
    tv_catalog_limit = Column(Integer)
    trending_catalog_limit = Column(Integer)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


CATALOG_MODELS = {
    "movie": Movie,
    "tv": TVSeries,
}
