"""
Ratings API — /ratings
───────────────────────
The rating owner is always the verified caller.

Endpoints:
  POST   /ratings                   — Save or overwrite the caller's rating
  GET    /ratings/{media_tmdb_id}   — Caller's rating for a title (or null)
  DELETE /ratings/{media_tmdb_id}   — Remove the caller's rating
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.db.models import Profile
from sceneit.db.session import get_db
from sceneit.deps.auth import get_current_profile
from sceneit.schemas.ratings import GetRatingResponse, SaveRatingRequest, SaveRatingResponse
from sceneit.services.profile_service import ProfileNotFoundError
from sceneit.services.rating_service import delete_rating, get_rating, save_rating

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=SaveRatingResponse)
def save_my_rating(
    payload: SaveRatingRequest,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> dict:
    try:
        row, rated = save_rating(
            db,
            current_profile.user_id,
            payload.media_tmdb_id,
            payload.rating,
            payload.review,
            media=payload,
        )
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error saving rating")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not save rating.",
        ) from exc
    return {"success": True, "rating": row, "rated": rated}


@router.get("/{media_tmdb_id}", response_model=GetRatingResponse)
def get_my_rating(
    media_tmdb_id: int = Path(..., ge=1),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> dict:
    try:
        row = get_rating(db, current_profile.user_id, media_tmdb_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching rating")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not fetch rating.",
        ) from exc
    return {"rating": row}


@router.delete("/{media_tmdb_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_my_rating(
    media_tmdb_id: int = Path(..., ge=1),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> None:
    try:
        deleted = delete_rating(db, current_profile.user_id, media_tmdb_id)
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error deleting rating")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not delete rating.",
        ) from exc
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rating not found.")
