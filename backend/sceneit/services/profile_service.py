"""
Profile business logic — creation on first sign-up, edits, counters.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sceneit.core.security import Identity
from sceneit.db.models import Profile, Rating, UserShow

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when a profile does not exist."""


class DuplicateProfileError(Exception):
    """Raised when the account already has a profile or the username is taken."""


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def get_profile(db: Session, user_id: str) -> Profile | None:
    """Fetch one profile by identity subject id."""
    return db.query(Profile).filter(Profile.user_id == user_id).first()


def get_profile_or_raise(db: Session, user_id: str) -> Profile:
    profile = get_profile(db, user_id)
    if profile is None:
        raise ProfileNotFoundError(f"Profile {user_id} not found")
    return profile


def lock_profile(db: Session, user_id: str) -> Profile:
    """
    Load the profile with a row lock (SELECT .. FOR UPDATE).

    Every counter-maintaining mutation starts here, so concurrent mutations
    by the same user run one after another.
    """
    profile = (
        db.query(Profile)
        .filter(Profile.user_id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if profile is None:
        raise ProfileNotFoundError(f"Profile {user_id} not found")
    return profile


def _username_taken(db: Session, username: str, exclude_user_id: str | None = None) -> bool:
    query = db.query(Profile.user_id).filter(func.lower(Profile.username) == username.lower())
    if exclude_user_id is not None:
        query = query.filter(Profile.user_id != exclude_user_id)
    return query.first() is not None


def create_profile(
    db: Session,
    identity: Identity,
    username: str,
    email: str | None = None,
) -> Profile:
    """Create the profile for a freshly signed-up account."""
    if get_profile(db, identity.subject_id) is not None:
        raise DuplicateProfileError("Profile already exists for this account")
    if _username_taken(db, username):
        raise DuplicateProfileError("Username is already taken")

    profile = Profile(
        user_id=identity.subject_id,
        username=username,
        email=_optional_text(email) or identity.email,
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateProfileError("Username is already taken") from exc

    db.refresh(profile)
    logger.info("Created profile %s (%s)", profile.user_id, profile.username)
    return profile


def update_profile(db: Session, user_id: str, updates: dict) -> Profile:
    """Apply partial updates to editable profile fields."""
    profile = get_profile_or_raise(db, user_id)

    if updates.get("username") is not None and updates["username"] != profile.username:
        if _username_taken(db, updates["username"], exclude_user_id=user_id):
            raise DuplicateProfileError("Username is already taken")
        profile.username = updates["username"]
    if "about" in updates:
        profile.about = _optional_text(updates["about"])
    if "profile_image_url" in updates:
        profile.profile_image_url = _optional_text(updates["profile_image_url"])

    db.add(profile)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateProfileError("Username is already taken") from exc

    db.refresh(profile)
    return profile


def recompute_counters(
    db: Session,
    user_id: str,
    *,
    shows: bool = False,
    ratings: bool = False,
) -> None:
    """
    Overwrite the denormalized counters from the source tables.

    Runs as one UPDATE with scalar subqueries so the counted rows and the
    written value come from the same statement snapshot.
    """
    values = {}
    if shows:
        values[Profile.watched] = (
            select(func.count())
            .select_from(UserShow)
            .where(UserShow.profile_id == user_id, UserShow.watched.is_(True))
            .scalar_subquery()
        )
        values[Profile.want_to_watch] = (
            select(func.count())
            .select_from(UserShow)
            .where(UserShow.profile_id == user_id, UserShow.listed.is_(True))
            .scalar_subquery()
        )
    if ratings:
        values[Profile.rated] = (
            select(func.count())
            .select_from(Rating)
            .where(Rating.profile_id == user_id)
            .scalar_subquery()
        )
    if not values:
        return

    db.query(Profile).filter(Profile.user_id == user_id).update(
        values,
        synchronize_session=False,
    )


def counters_of(db: Session, user_id: str) -> dict:
    """Current counter values, read fresh from the database."""
    row = (
        db.query(Profile.watched, Profile.rated, Profile.want_to_watch)
        .filter(Profile.user_id == user_id)
        .one()
    )
    return {"watched": row.watched, "rated": row.rated, "want_to_watch": row.want_to_watch}
