"""
SQLAlchemy ORM models.

Every entity lives in one relational store. Column types stay portable
(no JSONB/CITEXT) so the same metadata runs on Postgres in production and on
SQLite in the test suite; the partial unique index on playlists is declared
for both dialects.

Profiles are keyed by the identity provider's subject id, media rows by the
external catalog id (TMDB).
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
    true,
)
from sqlalchemy.orm import DeclarativeBase, relationship


# ── Base ──────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Timestamp helper ──────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Models ────────────────────────────────────────────────────────────────────

class Profile(Base):
    """
    Application profile for one identity-provider account.

    watched / rated / want_to_watch are denormalized counters. They are
    recomputed from user_shows / ratings inside the transaction that changes
    the underlying rows and are never written directly by clients.
    """
    __tablename__ = "profiles"

    user_id = Column(
        String(64),
        primary_key=True,
        comment="Identity provider subject id",
    )
    username = Column(String(32), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    about = Column(String(500), nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    watched = Column(Integer, default=0, server_default=text("0"), nullable=False)
    rated = Column(Integer, default=0, server_default=text("0"), nullable=False)
    want_to_watch = Column(Integer, default=0, server_default=text("0"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "watched >= 0 AND rated >= 0 AND want_to_watch >= 0",
            name="chk_profile_counters_non_negative",
        ),
    )

    # Relationships
    playlists = relationship(
        "Playlist",
        back_populates="profile",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Profile user_id={self.user_id} username={self.username!r}>"


class Media(Base):
    """
    Local copy of the catalog fields a client already fetched from TMDB.

    Rows are created lazily the first time a title is favorited, listed,
    rated or reviewed, and are reused for every later reference.
    """
    __tablename__ = "media"

    tmdb_id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    poster_url = Column(String(500), nullable=True)
    release_year = Column(Integer, nullable=True)
    producer = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "release_year IS NULL OR release_year BETWEEN 1800 AND 2200",
            name="chk_media_release_year",
        ),
    )

    def __repr__(self) -> str:
        return f"<Media tmdb_id={self.tmdb_id} title={self.title!r}>"


class Playlist(Base):
    """
    A named list of titles owned by one profile.

    Exactly one row per profile may have is_favorite = true; the partial
    unique index below is the conflict target for find-or-create.
    """
    __tablename__ = "playlists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    is_favorite = Column(Boolean, default=False, server_default=text("false"), nullable=False)
    is_public = Column(Boolean, default=True, server_default=text("true"), nullable=False)
    profile_id = Column(
        String(64),
        ForeignKey("profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "length(trim(name)) >= 1",
            name="chk_playlist_name",
        ),
        Index(
            "uq_playlists_one_favorite",
            "profile_id",
            unique=True,
            postgresql_where=is_favorite == true(),
            sqlite_where=is_favorite == true(),
        ),
    )

    # Relationships
    profile = relationship("Profile", back_populates="playlists")
    playlist_media = relationship(
        "PlaylistMedia",
        back_populates="playlist",
        cascade="all, delete-orphan",
        order_by="PlaylistMedia.added_at",
    )

    def __repr__(self) -> str:
        return f"<Playlist id={self.id} name={self.name!r} favorite={self.is_favorite}>"


class PlaylistMedia(Base):
    """Join table: a title that belongs to a playlist (once)."""
    __tablename__ = "playlist_media"

    playlist_id = Column(
        Integer,
        ForeignKey("playlists.id", ondelete="CASCADE"),
        primary_key=True,
    )
    media_tmdb_id = Column(
        Integer,
        ForeignKey("media.tmdb_id", ondelete="CASCADE"),
        primary_key=True,
    )
    added_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    playlist = relationship("Playlist", back_populates="playlist_media")
    media = relationship("Media", lazy="joined")


class Rating(Base):
    """A user's star rating (and optional short review) of one title."""
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(
        String(64),
        ForeignKey("profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    media_tmdb_id = Column(
        Integer,
        ForeignKey("media.tmdb_id", ondelete="CASCADE"),
        nullable=False,
    )
    rating = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("profile_id", "media_tmdb_id", name="uq_rating_profile_media"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="chk_rating_range"),
    )

    media = relationship("Media")

    def __repr__(self) -> str:
        return f"<Rating profile={self.profile_id} media={self.media_tmdb_id} rating={self.rating}>"


class UserShow(Base):
    """
    Per (profile, title) watch state.

    watched and listed are independent flags; all four combinations are
    valid. listed means "want to watch".
    """
    __tablename__ = "user_shows"

    profile_id = Column(
        String(64),
        ForeignKey("profiles.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    media_tmdb_id = Column(
        Integer,
        ForeignKey("media.tmdb_id", ondelete="CASCADE"),
        primary_key=True,
    )
    watched = Column(Boolean, default=False, server_default=text("false"), nullable=False)
    listed = Column(Boolean, default=False, server_default=text("false"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("idx_user_shows_profile_watched", "profile_id", "watched"),
        Index("idx_user_shows_profile_listed", "profile_id", "listed"),
    )

    media = relationship("Media")

    def __repr__(self) -> str:
        return (
            f"<UserShow profile={self.profile_id} media={self.media_tmdb_id} "
            f"watched={self.watched} listed={self.listed}>"
        )


class Review(Base):
    """A written review of a show. One per user per show."""
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    profile_id = Column(
        String(64),
        ForeignKey("profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    media_tmdb_id = Column(
        Integer,
        ForeignKey("media.tmdb_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("profile_id", "media_tmdb_id", name="uq_review_profile_media"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="chk_review_rating_range"),
    )

    profile = relationship("Profile")
    media = relationship("Media")

    def __repr__(self) -> str:
        return f"<Review id={self.id} profile={self.profile_id} media={self.media_tmdb_id}>"
