"""
Playlist business logic — user playlists and the per-profile Favorites list.
"""
import logging
from typing import Any

from sqlalchemy import true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from sceneit.db.models import Playlist, PlaylistMedia
from sceneit.db.upsert import insert_for
from sceneit.services.media_service import ensure_media_from_payload
from sceneit.services.profile_service import get_profile_or_raise

logger = logging.getLogger(__name__)

FAVORITES_NAME = "Favorites"


class PlaylistNotFoundError(Exception):
    """Raised when a playlist does not exist (or is hidden from the viewer)."""


class NotPlaylistOwnerError(Exception):
    """Raised when a user tries to modify another user's playlist."""


class FavoritesPlaylistError(Exception):
    """Raised for operations the Favorites playlist does not allow."""


def _load_playlist(db: Session, playlist_id: int) -> Playlist | None:
    return (
        db.query(Playlist)
        .options(selectinload(Playlist.playlist_media).joinedload(PlaylistMedia.media))
        .filter(Playlist.id == playlist_id)
        .populate_existing()
        .first()
    )


def _get_owned_playlist_or_raise(db: Session, playlist_id: int, owner_id: str) -> Playlist:
    playlist = db.query(Playlist).filter(Playlist.id == playlist_id).first()
    if playlist is None:
        raise PlaylistNotFoundError(f"Playlist {playlist_id} not found")
    if playlist.profile_id != owner_id:
        raise NotPlaylistOwnerError("You can only modify your own playlists")
    return playlist


def _add_entry(db: Session, playlist_id: int, tmdb_id: int) -> bool:
    """Insert the membership row unless present. True when a row was added."""
    stmt = (
        insert_for(db, PlaylistMedia)
        .values(playlist_id=playlist_id, media_tmdb_id=tmdb_id)
        .on_conflict_do_nothing(
            index_elements=[PlaylistMedia.playlist_id, PlaylistMedia.media_tmdb_id],
        )
    )
    return db.execute(stmt).rowcount == 1


def ensure_favorites(db: Session, profile_id: str) -> Playlist:
    """
    Find-or-create the profile's Favorites playlist.

    The insert targets the partial unique index on (profile_id) WHERE
    is_favorite, so concurrent callers converge on the same row.
    """
    stmt = (
        insert_for(db, Playlist)
        .values(
            name=FAVORITES_NAME,
            is_favorite=True,
            is_public=False,
            profile_id=profile_id,
        )
        .on_conflict_do_nothing(
            index_elements=[Playlist.profile_id],
            index_where=Playlist.is_favorite == true(),
        )
    )
    db.execute(stmt)
    return (
        db.query(Playlist)
        .filter(Playlist.profile_id == profile_id, Playlist.is_favorite.is_(True))
        .one()
    )


def create_playlist(db: Session, owner_id: str, name: str, is_public: bool = True) -> Playlist:
    """Create a regular (non-favorites) playlist owned by *owner_id*."""
    get_profile_or_raise(db, owner_id)

    playlist = Playlist(name=name, is_public=is_public, is_favorite=False, profile_id=owner_id)
    db.add(playlist)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return _load_playlist(db, playlist.id)


def add_favorite(db: Session, profile_id: str, tmdb_id: int, media: Any) -> tuple[Playlist, bool]:
    """
    Put a title in the caller's Favorites, creating the playlist if needed.

    Returns (favorites_playlist, added). added is False when the title was
    already there; nothing is written in that case.
    """
    try:
        get_profile_or_raise(db, profile_id)
        ensure_media_from_payload(db, tmdb_id, media)
        favorites = ensure_favorites(db, profile_id)
        added = _add_entry(db, favorites.id, tmdb_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    if added:
        logger.debug("Added %s to favorites of %s", tmdb_id, profile_id)
    return _load_playlist(db, favorites.id), added


def remove_favorite(db: Session, profile_id: str, tmdb_id: int) -> bool:
    """Drop a title from the caller's Favorites. False when it was not there."""
    favorites = get_favorites(db, profile_id)
    if favorites is None:
        return False
    return remove_media(db, favorites.id, profile_id, tmdb_id) > 0


def get_favorites(db: Session, profile_id: str) -> Playlist | None:
    """The profile's Favorites playlist with entries, or None."""
    favorites = (
        db.query(Playlist.id)
        .filter(Playlist.profile_id == profile_id, Playlist.is_favorite.is_(True))
        .first()
    )
    if favorites is None:
        return None
    return _load_playlist(db, favorites.id)


def get_playlist(db: Session, playlist_id: int, viewer_id: str | None = None) -> Playlist:
    """
    One playlist with entries. Private playlists are visible to their owner
    only; everyone else gets PlaylistNotFoundError.
    """
    playlist = _load_playlist(db, playlist_id)
    if playlist is None:
        raise PlaylistNotFoundError(f"Playlist {playlist_id} not found")
    if not playlist.is_public and not playlist.is_favorite and playlist.profile_id != viewer_id:
        raise PlaylistNotFoundError(f"Playlist {playlist_id} not found")
    return playlist


def add_media(
    db: Session,
    playlist_id: int,
    owner_id: str,
    tmdb_id: int,
    media: Any,
) -> tuple[Playlist, bool]:
    """Add a title to a playlist the caller owns. Returns (playlist, added)."""
    try:
        _get_owned_playlist_or_raise(db, playlist_id, owner_id)
        ensure_media_from_payload(db, tmdb_id, media)
        added = _add_entry(db, playlist_id, tmdb_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return _load_playlist(db, playlist_id), added


def remove_media(db: Session, playlist_id: int, owner_id: str, tmdb_id: int) -> int:
    """Remove a title from a playlist the caller owns. Idempotent; returns rows removed."""
    _get_owned_playlist_or_raise(db, playlist_id, owner_id)
    try:
        removed = (
            db.query(PlaylistMedia)
            .filter(
                PlaylistMedia.playlist_id == playlist_id,
                PlaylistMedia.media_tmdb_id == tmdb_id,
            )
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return removed


def list_playlists(db: Session, profile_id: str, viewer_id: str | None = None) -> list[Playlist]:
    """
    A profile's playlists, Favorites first. The owner sees everything;
    other viewers see public playlists only.
    """
    query = (
        db.query(Playlist)
        .options(selectinload(Playlist.playlist_media).joinedload(PlaylistMedia.media))
        .filter(Playlist.profile_id == profile_id)
    )
    if viewer_id != profile_id:
        query = query.filter(Playlist.is_public.is_(True))
    return query.order_by(Playlist.is_favorite.desc(), Playlist.created_at.asc(), Playlist.id.asc()).all()


def delete_playlist(db: Session, playlist_id: int, owner_id: str) -> bool:
    """Delete a playlist the caller owns. Favorites cannot be deleted."""
    playlist = _get_owned_playlist_or_raise(db, playlist_id, owner_id)
    if playlist.is_favorite:
        raise FavoritesPlaylistError("The Favorites playlist cannot be deleted")

    try:
        db.delete(playlist)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return True


def favorite_media(db: Session, profile_id: str) -> list[dict]:
    """Flat list of the titles in a profile's Favorites."""
    favorites = get_favorites(db, profile_id)
    if favorites is None:
        return []
    return [
        {"media_tmdb_id": entry.media_tmdb_id, "added_at": entry.added_at, "media": entry.media}
        for entry in favorites.playlist_media
    ]
