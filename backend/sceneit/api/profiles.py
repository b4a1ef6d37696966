"""
Profiles API — /profiles
─────────────────────────
Endpoints:
  POST  /profiles                  — Create the caller's profile (first sign-up)
  GET   /profiles/me               — Caller's profile
  PATCH /profiles/me               — Edit username / about / profile image URL
  GET   /profiles/{user_id}        — Public profile header with counters
  GET   /profiles/{user_id}/shows  — Watched / want-to-watch titles
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.core.security import Identity
from sceneit.db.models import Profile
from sceneit.db.session import get_db
from sceneit.deps.auth import get_current_identity, get_current_profile
from sceneit.schemas.profiles import (
    CreateProfileRequest,
    ProfileResponse,
    PublicProfileResponse,
    UpdateProfileRequest,
)
from sceneit.schemas.shows import UserShowResponse
from sceneit.services.profile_service import (
    DuplicateProfileError,
    ProfileNotFoundError,
    create_profile,
    get_profile,
    update_profile,
)
from sceneit.services.show_state_service import list_user_shows

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_my_profile(
    payload: CreateProfileRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> Profile:
    try:
        return create_profile(db, identity, payload.username, payload.email)
    except DuplicateProfileError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error creating profile")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create profile.",
        ) from exc


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(current_profile: Profile = Depends(get_current_profile)) -> Profile:
    return current_profile


@router.patch("/me", response_model=ProfileResponse)
def update_my_profile(
    payload: UpdateProfileRequest,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> Profile:
    try:
        return update_profile(db, current_profile.user_id, payload.model_dump(exclude_unset=True))
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DuplicateProfileError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error updating profile")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile.",
        ) from exc


@router.get("/{user_id}", response_model=PublicProfileResponse)
def get_public_profile(user_id: str, db: Session = Depends(get_db)) -> Profile:
    try:
        profile = get_profile(db, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching profile")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not load profile.",
        ) from exc
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found.")
    return profile


@router.get("/{user_id}/shows", response_model=list[UserShowResponse])
def get_profile_shows(
    user_id: str,
    watched: bool | None = Query(None, description="Only titles with this watched flag"),
    listed: bool | None = Query(None, description="Only titles with this want-to-watch flag"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return list_user_shows(db, user_id, watched=watched, listed=listed, limit=limit, offset=offset)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching profile shows")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not load shows.",
        ) from exc
