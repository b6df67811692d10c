"""Request/response schemas for user profile endpoints."""

from datetime import datetime

from pydantic import Field, field_validator

from app.core.security import NAME_MAX_LEN, NAME_MIN_LEN
from app.schemas.auth import Role, UserPublic
from app.schemas.base import ApiModel

BIO_MAX_LENGTH = 500


class UserProfile(ApiModel):
    """Public profile; the email is visible only through /auth/me and the admin list."""

    id: int
    name: str
    role: Role
    avatar: str | None = None
    bio: str | None = None
    created_at: datetime | None = None


class UserProfileResponse(ApiModel):
    user: UserProfile


class UserUpdate(ApiModel):
    """Profile changes; role may only be changed by an admin."""

    name: str | None = Field(default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    bio: str | None = Field(default=None, max_length=BIO_MAX_LENGTH)
    avatar: str | None = None
    role: Role | None = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class UserResponse(ApiModel):
    user: UserPublic


class UsersListResponse(ApiModel):
    """Response for GET /users (admin only)."""

    users: list[UserPublic]
