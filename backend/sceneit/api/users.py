"""
Users API — /api/users
───────────────────────
Read-only views of another user's lists, served from the same store as
everything else. No auth; private playlists are never listed here.

Endpoints:
  GET /api/users/{user_id}/playlists
  GET /api/users/{user_id}/favorites
  GET /api/users/{user_id}/reviews
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.db.session import get_db
from sceneit.schemas.playlists import PlaylistEntryResponse, PlaylistResponse
from sceneit.schemas.reviews import ReviewResponse
from sceneit.services.playlist_service import favorite_media, list_playlists
from sceneit.services.review_service import list_reviews_for_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{user_id}/playlists", response_model=list[PlaylistResponse])
def get_user_playlists(user_id: str, db: Session = Depends(get_db)) -> list[PlaylistResponse]:
    try:
        playlists = list_playlists(db, user_id, viewer_id=None)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching playlists")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch playlists",
        ) from exc
    return [PlaylistResponse.model_validate(p) for p in playlists]


@router.get("/{user_id}/favorites", response_model=list[PlaylistEntryResponse])
def get_user_favorites(user_id: str, db: Session = Depends(get_db)) -> list[dict]:
    try:
        return favorite_media(db, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching favorites")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch favorites",
        ) from exc


@router.get("/{user_id}/reviews", response_model=list[ReviewResponse])
def get_user_reviews(user_id: str, db: Session = Depends(get_db)) -> list[dict]:
    try:
        return list_reviews_for_user(db, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching reviews")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch reviews",
        ) from exc
