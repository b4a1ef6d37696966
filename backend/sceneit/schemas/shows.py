"""
Watch-state request/response schemas.
"""
from datetime import datetime

from pydantic import field_validator

from sceneit.schemas.common import CamelModel
from sceneit.schemas.media import UNKNOWN_TITLE, MediaFields, MediaResponse
from sceneit.schemas.profiles import ProfileCounters


class ShowToggleRequest(MediaFields):
    """Body for the watched/listed toggles. Title falls back to a placeholder."""

    title: str = UNKNOWN_TITLE

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        title = " ".join(value.strip().split())
        return title[:500] or UNKNOWN_TITLE


class ShowStateRequest(ShowToggleRequest):
    """Explicit set; omitted flags are left unchanged."""

    watched: bool | None = None
    listed: bool | None = None


class ShowStateResponse(CamelModel):
    """Caller's state for one title after (or without) a mutation."""

    tmdb_id: int
    watched: bool
    listed: bool
    rating: int | None = None
    review: str | None = None
    changed: bool = False
    counters: ProfileCounters


class UserShowResponse(CamelModel):
    """One row of a profile's watched / want-to-watch lists."""

    tmdb_id: int
    watched: bool
    listed: bool
    media: MediaResponse
    updated_at: datetime
