"""
Reviews API — /api/reviews
───────────────────────────
Written show reviews. One review per user per show; posting again
overwrites it.

Endpoints:
  POST   /api/reviews                  — Create/update the caller's review
  GET    /api/reviews/show/{show_id}   — Reviews of a show
  GET    /api/reviews/user/{user_id}   — Reviews by a user
  DELETE /api/reviews/{review_id}      — Delete own review
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.db.models import Profile
from sceneit.db.session import get_db
from sceneit.deps.auth import get_current_profile
from sceneit.schemas.reviews import CreateReviewRequest, ReviewResponse
from sceneit.services.profile_service import ProfileNotFoundError
from sceneit.services.review_service import (
    NotReviewOwnerError,
    ReviewNotFoundError,
    create_or_update_review,
    delete_review,
    list_reviews_for_show,
    list_reviews_for_user,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: CreateReviewRequest,
    response: Response,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> dict:
    """201 when the review is new, 200 when an existing one was overwritten."""
    try:
        review, created = create_or_update_review(
            db,
            current_profile.user_id,
            payload.show_id,
            payload.rating,
            payload.comment,
            media=payload,
        )
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error creating review")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create review",
        ) from exc

    if not created:
        response.status_code = status.HTTP_200_OK
    return review


@router.get("/show/{show_id}", response_model=list[ReviewResponse])
def get_show_reviews(
    show_id: int = Path(..., ge=1),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return list_reviews_for_show(db, show_id, limit=limit, offset=offset)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching show reviews")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch show reviews",
        ) from exc


@router.get("/user/{user_id}", response_model=list[ReviewResponse])
def get_user_reviews(
    user_id: str,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return list_reviews_for_user(db, user_id, limit=limit, offset=offset)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching user reviews")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user reviews",
        ) from exc


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review_endpoint(
    review_id: UUID,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> None:
    try:
        delete_review(db, current_profile.user_id, review_id)
    except ReviewNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except NotReviewOwnerError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error deleting review")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete review",
        ) from exc
