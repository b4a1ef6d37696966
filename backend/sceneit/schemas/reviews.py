"""
Review request/response schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import Field

from sceneit.schemas.common import CamelModel
from sceneit.schemas.media import UNKNOWN_TITLE, MediaFields


class CreateReviewRequest(MediaFields):
    """Create or update the caller's review of a show."""

    show_id: int = Field(..., ge=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(default="", max_length=2000)
    title: str = Field(default=UNKNOWN_TITLE, min_length=1, max_length=500)


class ReviewResponse(CamelModel):
    """A single review."""

    id: UUID
    show_id: int
    show_title: str
    user_id: str
    username: str
    rating: int
    comment: str = ""
    created_at: datetime
    updated_at: datetime
