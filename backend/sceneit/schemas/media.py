"""
Media request/response schemas.
"""
from datetime import datetime

from pydantic import Field, field_validator

from sceneit.schemas.common import CamelModel

UNKNOWN_TITLE = "Unknown Show"


def _clean_title(value: str) -> str:
    title = " ".join(value.strip().split())
    if not title:
        raise ValueError("title cannot be empty")
    if len(title) > 500:
        raise ValueError("title cannot exceed 500 characters")
    return title


class MediaFields(CamelModel):
    """Optional catalog subset a client may send alongside any action."""

    poster_url: str | None = Field(default=None, max_length=500)
    description: str | None = None
    release_year: int | None = Field(default=None, ge=1800, le=2200)
    producer: str | None = Field(default=None, max_length=255)


class MediaPayload(MediaFields):
    """Catalog item reference with a required title (favorites, playlists)."""

    tmdb_id: int = Field(..., ge=1)
    title: str

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _clean_title(value)


class MediaResponse(CamelModel):
    """A cached catalog item."""

    tmdb_id: int
    title: str
    description: str | None = None
    poster_url: str | None = None
    release_year: int | None = None
    producer: str | None = None


class MediaDetailResponse(MediaResponse):
    """Media payload with timestamps."""

    created_at: datetime
    updated_at: datetime
