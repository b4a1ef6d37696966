"""
Show review business logic.
"""
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.db.models import Media, Profile, Review
from sceneit.db.upsert import insert_for
from sceneit.services.media_service import ensure_media_from_payload
from sceneit.services.profile_service import get_profile_or_raise


class ReviewNotFoundError(Exception):
    """Raised when a review does not exist."""


class NotReviewOwnerError(Exception):
    """Raised when a user tries to modify another user's review."""


def _build_review_dict(review: Review, profile: Profile, media: Media) -> dict:
    return {
        "id": review.id,
        "show_id": media.tmdb_id,
        "show_title": media.title,
        "user_id": profile.user_id,
        "username": profile.username,
        "rating": review.rating,
        "comment": review.comment or "",
        "created_at": review.created_at,
        "updated_at": review.updated_at,
    }


def create_or_update_review(
    db: Session,
    profile_id: str,
    tmdb_id: int,
    rating: int,
    comment: str = "",
    media: Any = None,
) -> tuple[dict, bool]:
    """
    Create the caller's review of a show, or overwrite the existing one.

    Returns (review, created).
    """
    profile = get_profile_or_raise(db, profile_id)

    new_id = uuid4()
    try:
        media_row = ensure_media_from_payload(db, tmdb_id, media)
        stmt = insert_for(db, Review).values(
            id=new_id,
            profile_id=profile_id,
            media_tmdb_id=tmdb_id,
            rating=rating,
            comment=comment.strip(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Review.profile_id, Review.media_tmdb_id],
            set_={
                "rating": stmt.excluded.rating,
                "comment": stmt.excluded.comment,
                "updated_at": func.now(),
            },
        ).returning(Review.id)
        review_id = db.execute(stmt).scalar_one()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    review = db.query(Review).filter(Review.id == review_id).populate_existing().one()
    return _build_review_dict(review, profile, media_row), review_id == new_id


def _list_reviews(db: Session, *criteria, limit: int, offset: int) -> list[dict]:
    rows = (
        db.query(Review, Profile, Media)
        .join(Profile, Review.profile_id == Profile.user_id)
        .join(Media, Review.media_tmdb_id == Media.tmdb_id)
        .filter(*criteria)
        .order_by(Review.created_at.desc(), Review.id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [_build_review_dict(review, profile, media) for review, profile, media in rows]


def list_reviews_for_show(db: Session, tmdb_id: int, limit: int = 50, offset: int = 0) -> list[dict]:
    """All reviews of a show, newest first."""
    return _list_reviews(db, Review.media_tmdb_id == tmdb_id, limit=limit, offset=offset)


def list_reviews_for_user(db: Session, profile_id: str, limit: int = 50, offset: int = 0) -> list[dict]:
    """All reviews written by a profile, newest first."""
    return _list_reviews(db, Review.profile_id == profile_id, limit=limit, offset=offset)


def delete_review(db: Session, profile_id: str, review_id: UUID) -> bool:
    """Delete a review. Only the owner can delete."""
    review = db.query(Review).filter(Review.id == review_id).first()
    if not review:
        raise ReviewNotFoundError(f"Review {review_id} not found")
    if review.profile_id != profile_id:
        raise NotReviewOwnerError("You can only delete your own reviews")

    try:
        db.delete(review)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return True
