"""
Media API — /media
───────────────────
Endpoints:
  GET /media/{tmdb_id}  — Cached catalog row for a title
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.db.session import get_db
from sceneit.schemas.media import MediaDetailResponse
from sceneit.services.media_service import MediaNotFoundError, get_media_or_raise, map_media_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{tmdb_id}", response_model=MediaDetailResponse)
def get_media_item(
    tmdb_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> MediaDetailResponse:
    """Fetch a cached media row by catalog id."""
    try:
        row = get_media_or_raise(db, tmdb_id)
    except MediaNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error fetching media")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch media.",
        ) from exc
    return map_media_response(row)
