"""
Watch-state business logic — watched / want-to-watch flags per title.

Every mutation follows the same four steps inside one transaction:
  1. ensure the media row exists (catalog cache)
  2. ensure the (profile, title) user_shows row exists
  3. compare the stored flags with the requested ones; update only on change
  4. recompute the profile counters when something changed

The profile row is locked first, so two toggles from the same user cannot
interleave their read-modify-write or their counter recompute.
"""
import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from sceneit.db.models import Rating, UserShow
from sceneit.db.upsert import insert_for
from sceneit.services.media_service import ensure_media_from_payload
from sceneit.services.profile_service import counters_of, lock_profile, recompute_counters

logger = logging.getLogger(__name__)


def _ensure_user_show(db: Session, profile_id: str, tmdb_id: int) -> UserShow:
    """Create the (profile, title) row with both flags false if absent; return it locked."""
    stmt = (
        insert_for(db, UserShow)
        .values(profile_id=profile_id, media_tmdb_id=tmdb_id, watched=False, listed=False)
        .on_conflict_do_nothing(index_elements=[UserShow.profile_id, UserShow.media_tmdb_id])
    )
    db.execute(stmt)
    return (
        db.query(UserShow)
        .filter(UserShow.profile_id == profile_id, UserShow.media_tmdb_id == tmdb_id)
        .with_for_update()
        .populate_existing()
        .one()
    )


def _state_dict(
    db: Session,
    profile_id: str,
    tmdb_id: int,
    row: UserShow | None,
    changed: bool,
) -> dict:
    rating = (
        db.query(Rating)
        .filter(Rating.profile_id == profile_id, Rating.media_tmdb_id == tmdb_id)
        .first()
    )
    return {
        "tmdb_id": tmdb_id,
        "watched": bool(row.watched) if row is not None else False,
        "listed": bool(row.listed) if row is not None else False,
        "rating": rating.rating if rating is not None else None,
        "review": rating.review if rating is not None else None,
        "changed": changed,
        "counters": counters_of(db, profile_id),
    }


def _mutate(
    db: Session,
    profile_id: str,
    tmdb_id: int,
    media: Any,
    decide: Callable[[UserShow], dict[str, bool]],
) -> dict:
    """
    Run the four-step protocol. *decide* receives the locked row and returns
    the flag values it wants written.
    """
    try:
        lock_profile(db, profile_id)
        ensure_media_from_payload(db, tmdb_id, media)
        row = _ensure_user_show(db, profile_id, tmdb_id)

        changed = False
        for flag, wanted in decide(row).items():
            if getattr(row, flag) != wanted:
                setattr(row, flag, wanted)
                changed = True

        if changed:
            db.add(row)
            db.flush()
            recompute_counters(db, profile_id, shows=True)
            logger.debug(
                "Show state %s/%s -> watched=%s listed=%s",
                profile_id, tmdb_id, row.watched, row.listed,
            )

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(row)
    return _state_dict(db, profile_id, tmdb_id, row, changed)


def get_show_state(db: Session, profile_id: str, tmdb_id: int) -> dict:
    """Caller's flags (both false when never touched), rating and counters."""
    row = (
        db.query(UserShow)
        .filter(UserShow.profile_id == profile_id, UserShow.media_tmdb_id == tmdb_id)
        .first()
    )
    return _state_dict(db, profile_id, tmdb_id, row, changed=False)


def set_show_state(
    db: Session,
    profile_id: str,
    tmdb_id: int,
    media: Any,
    watched: bool | None = None,
    listed: bool | None = None,
) -> dict:
    """Explicitly set either flag. A request matching the stored state is a no-op."""
    wanted: dict[str, bool] = {}
    if watched is not None:
        wanted["watched"] = watched
    if listed is not None:
        wanted["listed"] = listed
    return _mutate(db, profile_id, tmdb_id, media, lambda _row: wanted)


def toggle_watched(db: Session, profile_id: str, tmdb_id: int, media: Any) -> dict:
    """Flip the watched flag."""
    return _mutate(db, profile_id, tmdb_id, media, lambda row: {"watched": not row.watched})


def toggle_listed(db: Session, profile_id: str, tmdb_id: int, media: Any) -> dict:
    """Flip the want-to-watch flag."""
    return _mutate(db, profile_id, tmdb_id, media, lambda row: {"listed": not row.listed})


def list_user_shows(
    db: Session,
    profile_id: str,
    watched: bool | None = None,
    listed: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[dict]:
    """A profile's titles, newest change first, optionally filtered by flag."""
    query = (
        db.query(UserShow)
        .options(joinedload(UserShow.media))
        .filter(UserShow.profile_id == profile_id)
    )
    if watched is not None:
        query = query.filter(UserShow.watched.is_(watched))
    if listed is not None:
        query = query.filter(UserShow.listed.is_(listed))

    rows = (
        query.order_by(UserShow.updated_at.desc(), UserShow.media_tmdb_id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [
        {
            "tmdb_id": row.media_tmdb_id,
            "watched": bool(row.watched),
            "listed": bool(row.listed),
            "media": row.media,
            "updated_at": row.updated_at,
        }
        for row in rows
    ]
