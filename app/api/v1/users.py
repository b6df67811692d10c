"""User profile endpoints and the admin-only account list."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_editable_user, get_existing_user, get_optional_user, require_admin
from app.core.database import get_db
from app.core.permissions import is_owner_or_admin
from app.models import User
from app.schemas.auth import UserPublic
from app.schemas.posts import PostOut
from app.schemas.users import (
    UserProfile,
    UserProfileResponse,
    UserResponse,
    UsersListResponse,
    UserUpdate,
)
from app.services import posts as posts_service
from app.services import users as users_service

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[UserPublic, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users (admin only)."""
    return UsersListResponse(
        users=[UserPublic.model_validate(u) for u in users_service.list_users(db)]
    )


@router.get("/{user_id}", response_model=UserProfileResponse)
def get_profile(user: Annotated[User, Depends(get_existing_user)]) -> UserProfileResponse:
    return UserProfileResponse(user=UserProfile.model_validate(user))


@router.put("/{user_id}", response_model=UserResponse)
def update_profile(
    body: UserUpdate,
    current_user: Annotated[UserPublic, Depends(get_current_user)],
    user: Annotated[User, Depends(get_editable_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Edit name, bio or avatar of your own account; admins may edit anyone and change roles."""
    updated = users_service.update_profile(db, user, body, actor=current_user)
    return UserResponse(user=UserPublic.model_validate(updated))


@router.get("/{user_id}/posts", response_model=list[PostOut])
def get_user_posts(
    user: Annotated[User, Depends(get_existing_user)],
    viewer: Annotated[UserPublic | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[PostOut]:
    """Published posts of a user; the user themself and admins also see drafts."""
    posts = posts_service.list_user_posts(
        db, user.id, include_unpublished=is_owner_or_admin(viewer, user.id)
    )
    return [PostOut.model_validate(p) for p in posts]
