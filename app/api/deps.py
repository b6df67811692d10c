"""
Authentication and authorization dependencies.

resolve_identity() is the single resolution path: it reads the Bearer token,
verifies it and loads the account, returning an AuthResult that holds either
the user or the error. get_current_user (strict) raises that error;
get_optional_user (permissive) drops it and continues anonymously.
Role and ownership gates run after authentication, before the handler body.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import (
    AppError,
    ForbiddenError,
    InvalidTokenError,
    NotFoundError,
    UnauthenticatedError,
    UserNotFoundError,
)
from app.core.permissions import ROLE_ADMIN, ensure_role, is_owner_or_admin
from app.core.security import TokenConfig, TokenError, TokenService
from app.models import Post, User
from app.schemas.auth import UserPublic
from app.services import posts as posts_service
from app.services import users as users_service

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_service() -> TokenService:
    """Token service built once from process settings; override in tests."""
    return TokenService(TokenConfig.from_settings(get_settings()))


@dataclass(frozen=True)
class AuthResult:
    """Outcome of identity resolution: exactly one of user / error is set."""

    user: UserPublic | None = None
    error: AppError | None = None


def resolve_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    db: Session,
    tokens: TokenService,
) -> AuthResult:
    """Resolve the caller from the Authorization header and annotate request.state.user."""
    request.state.user = None
    if credentials is None or not credentials.credentials:
        return AuthResult(error=UnauthenticatedError())
    try:
        claims = tokens.verify(credentials.credentials)
    except TokenError as e:
        logger.info(
            "Bearer token rejected",
            extra={"reason": e.reason, "error_type": type(e).__name__, "path": request.url.path},
        )
        return AuthResult(error=InvalidTokenError(e.reason))
    user = users_service.get_user_by_id(db, claims.user_id)
    if user is None:
        logger.info("Bearer token for missing user", extra={"user_id": claims.user_id})
        return AuthResult(error=UserNotFoundError())
    identity = UserPublic.model_validate(user)
    request.state.user = identity
    return AuthResult(user=identity)


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> UserPublic:
    """Strict: require a valid Bearer JWT for an existing user. Raises 401/404 otherwise."""
    result = resolve_identity(request, credentials, db, tokens)
    if result.error is not None:
        raise result.error
    return result.user


def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> UserPublic | None:
    """Permissive: same resolution, but any failure yields an anonymous caller."""
    return resolve_identity(request, credentials, db, tokens).user


def require_role(*roles: str) -> Callable[..., UserPublic]:
    """Dependency factory: authenticated caller whose role is in roles, else 401/403."""
    allowed = frozenset(roles)

    def dependency(
        current_user: Annotated[UserPublic, Depends(get_current_user)],
    ) -> UserPublic:
        return ensure_role(current_user, allowed)

    return dependency


require_admin = require_role(ROLE_ADMIN)


def _load_visible_post(db: Session, post_id: int, viewer: UserPublic | None) -> Post:
    post = posts_service.get_post(db, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    if post.status != posts_service.PUBLISHED and not is_owner_or_admin(viewer, post.author_id):
        raise ForbiddenError()
    return post


def get_viewable_post(
    post_id: int,
    viewer: Annotated[UserPublic | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Post:
    """Load a post; unpublished posts are visible only to their author or an admin."""
    return _load_visible_post(db, post_id, viewer)


def get_viewable_post_strict(
    post_id: int,
    current_user: Annotated[UserPublic, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Post:
    """Same visibility rule, but the caller must be signed in (401 before 404)."""
    return _load_visible_post(db, post_id, current_user)


def get_editable_post(
    post_id: int,
    current_user: Annotated[UserPublic, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Post:
    """Load a post the caller may modify (author or admin)."""
    post = posts_service.get_post(db, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    if not is_owner_or_admin(current_user, post.author_id):
        raise ForbiddenError()
    return post


def get_existing_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> User:
    user = users_service.get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError()
    return user


def get_editable_user(
    current_user: Annotated[UserPublic, Depends(get_current_user)],
    target: Annotated[User, Depends(get_existing_user)],
) -> User:
    """Load an account the caller may edit (self or admin)."""
    if not is_owner_or_admin(current_user, target.id):
        raise ForbiddenError()
    return target
