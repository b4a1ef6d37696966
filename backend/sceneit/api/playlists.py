"""
Playlists API — /playlists
───────────────────────────
Mutations derive the acting user from the verified bearer token; a body
profileId/userId is only accepted when it names the caller.

Endpoints:
  POST   /playlists                              — Create a playlist
  POST   /playlists/favorites                    — Add a title to Favorites
  DELETE /playlists/favorites/{tmdb_id}          — Remove a title from Favorites
  GET    /playlists/favorites/{profile_id}       — A profile's Favorites
  GET    /playlists/user/{profile_id}            — A profile's playlists
  GET    /playlists/{playlist_id}                — One playlist
  DELETE /playlists/{playlist_id}                — Delete own playlist
  POST   /playlists/{playlist_id}/media          — Add a title
  DELETE /playlists/{playlist_id}/media/{tmdb_id} — Remove a title
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.core.security import Identity
from sceneit.db.models import Profile
from sceneit.db.session import get_db
from sceneit.deps.auth import get_current_profile, get_optional_identity
from sceneit.schemas.common import MessageResponse
from sceneit.schemas.playlists import (
    AddPlaylistMediaRequest,
    CreatePlaylistRequest,
    EmptyFavoritesResponse,
    FavoriteRequest,
    PlaylistListResponse,
    PlaylistResponse,
)
from sceneit.services.playlist_service import (
    FavoritesPlaylistError,
    NotPlaylistOwnerError,
    PlaylistNotFoundError,
    add_favorite,
    add_media,
    create_playlist,
    delete_playlist,
    get_favorites,
    get_playlist,
    list_playlists,
    remove_favorite,
    remove_media,
)
from sceneit.services.profile_service import ProfileNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def _server_error(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


def _assert_caller(claimed_id: str | None, current_profile: Profile) -> None:
    if claimed_id is not None and claimed_id != current_profile.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only modify your own playlists.",
        )


@router.post("", response_model=PlaylistResponse, status_code=status.HTTP_201_CREATED)
def create_user_playlist(
    payload: CreatePlaylistRequest,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> PlaylistResponse:
    _assert_caller(payload.user_id, current_profile)
    try:
        playlist = create_playlist(db, current_profile.user_id, payload.name, payload.is_public)
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error creating playlist")
        raise _server_error("Failed to create playlist.") from exc
    return PlaylistResponse.model_validate(playlist)


@router.post(
    "/favorites",
    response_model=PlaylistResponse | MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_to_favorites(
    payload: FavoriteRequest,
    response: Response,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> PlaylistResponse | MessageResponse:
    """201 + Favorites playlist when added; 200 + message when already there."""
    _assert_caller(payload.profile_id, current_profile)
    try:
        favorites, added = add_favorite(db, current_profile.user_id, payload.tmdb_id, payload)
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error adding favorite")
        raise _server_error("Failed to add favorite.") from exc

    if not added:
        response.status_code = status.HTTP_200_OK
        return MessageResponse(message="Media already in favorites.")
    return PlaylistResponse.model_validate(favorites)


@router.delete("/favorites/{tmdb_id}", response_model=MessageResponse)
def remove_from_favorites(
    tmdb_id: int = Path(..., ge=1),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> MessageResponse:
    try:
        removed = remove_favorite(db, current_profile.user_id, tmdb_id)
    except SQLAlchemyError as exc:
        logger.exception("Error removing favorite")
        raise _server_error("Failed to remove favorite.") from exc
    if not removed:
        return MessageResponse(message="Media was not in favorites.")
    return MessageResponse(message="Media removed from favorites.")


@router.get("/favorites/{profile_id}", response_model=PlaylistResponse | EmptyFavoritesResponse)
def get_profile_favorites(
    profile_id: str,
    db: Session = Depends(get_db),
) -> PlaylistResponse | EmptyFavoritesResponse:
    try:
        favorites = get_favorites(db, profile_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching favorites")
        raise _server_error("Failed to fetch favorites.") from exc
    if favorites is None:
        return EmptyFavoritesResponse()
    return PlaylistResponse.model_validate(favorites)


@router.get("/user/{profile_id}", response_model=PlaylistListResponse)
def get_profile_playlists(
    profile_id: str,
    identity: Identity | None = Depends(get_optional_identity),
    db: Session = Depends(get_db),
) -> PlaylistListResponse:
    viewer_id = identity.subject_id if identity else None
    try:
        playlists = list_playlists(db, profile_id, viewer_id=viewer_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching playlists")
        raise _server_error("Failed to fetch playlists.") from exc
    return PlaylistListResponse(playlists=[PlaylistResponse.model_validate(p) for p in playlists])


@router.get("/{playlist_id}", response_model=PlaylistResponse)
def get_one_playlist(
    playlist_id: int = Path(..., ge=1),
    identity: Identity | None = Depends(get_optional_identity),
    db: Session = Depends(get_db),
) -> PlaylistResponse:
    try:
        playlist = get_playlist(db, playlist_id, viewer_id=identity.subject_id if identity else None)
    except PlaylistNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Playlist not found.") from exc
    except SQLAlchemyError as exc:
        logger.exception("Error fetching playlist")
        raise _server_error("Failed to fetch playlist.") from exc
    return PlaylistResponse.model_validate(playlist)


@router.delete("/{playlist_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_playlist(
    playlist_id: int = Path(..., ge=1),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> None:
    try:
        delete_playlist(db, playlist_id, current_profile.user_id)
    except PlaylistNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Playlist not found.") from exc
    except NotPlaylistOwnerError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except FavoritesPlaylistError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error deleting playlist")
        raise _server_error("Failed to delete playlist.") from exc


@router.post(
    "/{playlist_id}/media",
    response_model=PlaylistResponse | MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_playlist_media(
    payload: AddPlaylistMediaRequest,
    response: Response,
    playlist_id: int = Path(..., ge=1),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> PlaylistResponse | MessageResponse:
    try:
        playlist, added = add_media(db, playlist_id, current_profile.user_id, payload.tmdb_id, payload)
    except PlaylistNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Playlist not found.") from exc
    except NotPlaylistOwnerError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error adding media")
        raise _server_error("Failed to add media.") from exc

    if not added:
        response.status_code = status.HTTP_200_OK
        return MessageResponse(message="Media already in playlist.")
    return PlaylistResponse.model_validate(playlist)


@router.delete("/{playlist_id}/media/{tmdb_id}", response_model=MessageResponse)
def remove_playlist_media(
    playlist_id: int = Path(..., ge=1),
    tmdb_id: int = Path(..., ge=1),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> MessageResponse:
    try:
        remove_media(db, playlist_id, current_profile.user_id, tmdb_id)
    except PlaylistNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Playlist not found.") from exc
    except NotPlaylistOwnerError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error removing media")
        raise _server_error("Failed to remove media.") from exc
    return MessageResponse(message="Media removed successfully.")
