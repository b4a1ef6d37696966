"""
Rating business logic — one rating per (profile, title), upserted.
"""
import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.db.models import Rating
from sceneit.db.upsert import insert_for
from sceneit.services.media_service import ensure_media_from_payload
from sceneit.services.profile_service import counters_of, lock_profile, recompute_counters

logger = logging.getLogger(__name__)


def get_rating(db: Session, profile_id: str, tmdb_id: int) -> Rating | None:
    """Caller's rating for one title, if any."""
    return (
        db.query(Rating)
        .filter(Rating.profile_id == profile_id, Rating.media_tmdb_id == tmdb_id)
        .populate_existing()
        .first()
    )


def save_rating(
    db: Session,
    profile_id: str,
    tmdb_id: int,
    rating: int,
    review: str | None = None,
    media: Any = None,
) -> tuple[Rating, int]:
    """
    Create or overwrite the caller's rating for *tmdb_id*, then refresh the
    rated counter. A None review keeps the stored text.

    Returns (rating_row, rated_count).
    """
    try:
        lock_profile(db, profile_id)
        ensure_media_from_payload(db, tmdb_id, media)

        stmt = insert_for(db, Rating).values(
            profile_id=profile_id,
            media_tmdb_id=tmdb_id,
            rating=rating,
            review=review,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Rating.profile_id, Rating.media_tmdb_id],
            set_={
                "rating": stmt.excluded.rating,
                "review": func.coalesce(stmt.excluded.review, Rating.review),
                "updated_at": func.now(),
            },
        )
        db.execute(stmt)
        recompute_counters(db, profile_id, ratings=True)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    row = get_rating(db, profile_id, tmdb_id)
    rated = counters_of(db, profile_id)["rated"]
    logger.debug("Saved rating %s for %s/%s (rated=%s)", rating, profile_id, tmdb_id, rated)
    return row, rated


def delete_rating(db: Session, profile_id: str, tmdb_id: int) -> bool:
    """Remove the caller's rating. Returns False when there was none."""
    try:
        lock_profile(db, profile_id)
        deleted = (
            db.query(Rating)
            .filter(Rating.profile_id == profile_id, Rating.media_tmdb_id == tmdb_id)
            .delete(synchronize_session=False)
        )
        if deleted:
            recompute_counters(db, profile_id, ratings=True)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return bool(deleted)
