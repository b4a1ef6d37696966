"""
Profile request/response schemas.
"""
import re
from datetime import datetime

from pydantic import Field, field_validator

from sceneit.schemas.common import CamelModel

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,32}$")


def _validate_username(value: str) -> str:
    value = value.strip()
    if not _USERNAME_RE.match(value):
        raise ValueError("username must be 3-32 characters: letters, digits, underscore")
    return value


class CreateProfileRequest(CamelModel):
    """First sign-up: the identity comes from the bearer token."""

    username: str
    email: str | None = Field(default=None, max_length=255)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return _validate_username(value)


class UpdateProfileRequest(CamelModel):
    """Partial update of the caller's editable profile fields."""

    username: str | None = None
    about: str | None = Field(default=None, max_length=500)
    profile_image_url: str | None = Field(default=None, max_length=500)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_username(value)


class ProfileCounters(CamelModel):
    """Denormalized per-profile aggregates."""

    watched: int = 0
    rated: int = 0
    want_to_watch: int = 0


class PublicProfileResponse(ProfileCounters):
    """Profile header anyone can read. Never carries the email address."""

    user_id: str
    username: str
    about: str | None = None
    profile_image_url: str | None = None
    created_at: datetime


class ProfileResponse(PublicProfileResponse):
    """The caller's own profile."""

    email: str | None = None
