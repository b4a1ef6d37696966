"""
Shows API — /shows
───────────────────
Caller's watch state per title. Every route requires a verified bearer token.

Endpoints:
  GET  /shows/{tmdb_id}/state    — watched / listed flags, rating, counters
  PUT  /shows/{tmdb_id}/state    — set either flag explicitly
  POST /shows/{tmdb_id}/watched  — toggle watched
  POST /shows/{tmdb_id}/listed   — toggle want-to-watch
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sceneit.db.models import Profile
from sceneit.db.session import get_db
from sceneit.deps.auth import get_current_profile
from sceneit.schemas.shows import ShowStateRequest, ShowStateResponse, ShowToggleRequest
from sceneit.services.profile_service import ProfileNotFoundError
from sceneit.services.show_state_service import (
    get_show_state,
    set_show_state,
    toggle_listed,
    toggle_watched,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _server_error(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@router.get("/{tmdb_id}/state", response_model=ShowStateResponse)
def read_state(
    tmdb_id: int = Path(..., ge=1),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return get_show_state(db, current_profile.user_id, tmdb_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching show state")
        raise _server_error("Could not fetch show state.") from exc


@router.put("/{tmdb_id}/state", response_model=ShowStateResponse)
def write_state(
    payload: ShowStateRequest,
    tmdb_id: int = Path(..., ge=1),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> dict:
    if payload.watched is None and payload.listed is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide watched and/or listed.",
        )
    try:
        return set_show_state(
            db,
            current_profile.user_id,
            tmdb_id,
            payload,
            watched=payload.watched,
            listed=payload.listed,
        )
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error updating show state")
        raise _server_error("Could not update show state.") from exc


@router.post("/{tmdb_id}/watched", response_model=ShowStateResponse)
def toggle_watched_state(
    tmdb_id: int = Path(..., ge=1),
    payload: ShowToggleRequest | None = None,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return toggle_watched(db, current_profile.user_id, tmdb_id, payload or ShowToggleRequest())
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error toggling watched")
        raise _server_error("Could not update watched state.") from exc


@router.post("/{tmdb_id}/listed", response_model=ShowStateResponse)
def toggle_listed_state(
    tmdb_id: int = Path(..., ge=1),
    payload: ShowToggleRequest | None = None,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return toggle_listed(db, current_profile.user_id, tmdb_id, payload or ShowToggleRequest())
    except ProfileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.exception("Error toggling listed")
        raise _server_error("Could not update list state.") from exc
