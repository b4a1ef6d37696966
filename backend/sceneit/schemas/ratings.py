"""
Rating request/response schemas.
"""
from datetime import datetime

from pydantic import Field

from sceneit.schemas.common import CamelModel
from sceneit.schemas.media import UNKNOWN_TITLE, MediaFields


class SaveRatingRequest(MediaFields):
    """Upsert the caller's rating for a title."""

    media_tmdb_id: int = Field(..., ge=1)
    rating: int = Field(..., ge=1, le=5)
    review: str | None = Field(default=None, max_length=2000)
    title: str = Field(default=UNKNOWN_TITLE, min_length=1, max_length=500)


class RatingResponse(CamelModel):
    """A stored rating."""

    id: int
    profile_id: str
    media_tmdb_id: int
    rating: int
    review: str | None = None
    created_at: datetime
    updated_at: datetime


class SaveRatingResponse(CamelModel):
    """Result of POST /ratings, including the refreshed rated counter."""

    success: bool = True
    rating: RatingResponse
    rated: int


class GetRatingResponse(CamelModel):
    """Caller's rating for one title, or null."""

    rating: RatingResponse | None = None
