"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from app.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)
from app.schemas.base import ApiModel

Role = Literal["user", "admin"]


def normalize_email(value: str) -> str:
    """Login key form of an email: stripped and lower-cased."""
    return value.strip().lower()


class RegisterRequest(ApiModel):
    """New account details."""

    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN, description="Display name")
    email: EmailStr = Field(..., max_length=EMAIL_MAX_LEN, description="Login email")
    password: str = Field(
        ..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN, description="Password"
    )

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class LoginRequest(ApiModel):
    """Credentials for login."""

    email: EmailStr = Field(..., max_length=EMAIL_MAX_LEN, description="Login email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class UserPublic(ApiModel):
    """Account as returned to clients. Has no password field."""

    id: int
    name: str
    email: str
    role: Role
    avatar: str | None = None
    bio: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResponse(ApiModel):
    """Issued bearer token plus the public user record."""

    token: str = Field(..., description="JWT bearer token")
    user: UserPublic


class MeResponse(ApiModel):
    user: UserPublic


class MessageResponse(ApiModel):
    message: str
