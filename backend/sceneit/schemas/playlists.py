"""
Playlist request/response schemas.
"""
from datetime import datetime

from pydantic import Field, field_validator

from sceneit.schemas.common import CamelModel
from sceneit.schemas.media import MediaPayload, MediaResponse


class CreatePlaylistRequest(CamelModel):
    """Create a user playlist. Owner is the verified caller."""

    name: str = Field(..., min_length=1, max_length=100)
    is_public: bool = True
    # Accepted for older clients; must match the caller when present.
    user_id: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        name = " ".join(value.strip().split())
        if not name:
            raise ValueError("name cannot be empty")
        return name


class FavoriteRequest(MediaPayload):
    """Add a title to the caller's Favorites playlist."""

    profile_id: str | None = None


class AddPlaylistMediaRequest(MediaPayload):
    """Add a title to a playlist the caller owns."""


class PlaylistEntryResponse(CamelModel):
    """A title inside a playlist."""

    media_tmdb_id: int
    added_at: datetime
    media: MediaResponse


class PlaylistResponse(CamelModel):
    """A playlist with its entries."""

    id: int
    name: str
    is_favorite: bool
    is_public: bool
    profile_id: str
    created_at: datetime
    playlist_media: list[PlaylistEntryResponse] = Field(default_factory=list)


class PlaylistListResponse(CamelModel):
    """Envelope for GET /playlists/user/{profileId}."""

    playlists: list[PlaylistResponse]


class EmptyFavoritesResponse(CamelModel):
    """Returned when a profile has never favorited anything."""

    playlist: None = None
    message: str = "No favorites playlist found."
