"""Registration, login, current-user and logout endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_token_service
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.security import TokenService
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    UserPublic,
)
from app.services import users as users_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Create an account and return a bearer token for it.
    A second registration with the same email (any letter case) fails with 400.
    """
    user = users_service.create_user(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )
    token = tokens.issue(user.id, user.email)
    return AuthResponse(token=token, user=UserPublic.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns a JWT bearer token.
    Include the token in the Authorization header as: Bearer <token>
    """
    user = users_service.authenticate_user(
        db, body.email, body.password, bcrypt_rounds=settings.BCRYPT_ROUNDS
    )
    token = tokens.issue(user.id, user.email)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return AuthResponse(token=token, user=UserPublic.model_validate(user))


@router.get("/me", response_model=MeResponse)
def me(current_user: Annotated[UserPublic, Depends(get_current_user)]) -> MeResponse:
    """Return the account behind the presented bearer token."""
    return MeResponse(user=current_user)


@router.post("/logout", response_model=MessageResponse)
def logout() -> MessageResponse:
    """Tokens are stateless; the client discards its copy. Nothing is revoked server-side."""
    return MessageResponse(message="Logged out successfully")
