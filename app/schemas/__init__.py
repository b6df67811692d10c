"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    UserPublic,
)
from app.schemas.health import HealthResponse
from app.schemas.posts import (
    LikeResponse,
    PostAuthor,
    PostCreate,
    PostListResponse,
    PostMutationResponse,
    PostOut,
    PostUpdate,
)
from app.schemas.users import (
    UserProfile,
    UserProfileResponse,
    UserResponse,
    UsersListResponse,
    UserUpdate,
)

__all__ = [
    "AuthResponse",
    "HealthResponse",
    "LikeResponse",
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "PostAuthor",
    "PostCreate",
    "PostListResponse",
    "PostMutationResponse",
    "PostOut",
    "PostUpdate",
    "RegisterRequest",
    "UserProfile",
    "UserProfileResponse",
    "UserPublic",
    "UserResponse",
    "UsersListResponse",
    "UserUpdate",
]
