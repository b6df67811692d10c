"""Credential store: account lookup, registration and password authentication."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateEmailError, ForbiddenError, InvalidCredentialsError
from app.core.permissions import ROLE_ADMIN, ROLE_USER
from app.core.security import (
    DEFAULT_BCRYPT_ROUNDS,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from app.models import User
from app.schemas.auth import UserPublic, normalize_email
from app.schemas.users import UserUpdate

logger = logging.getLogger(__name__)


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(
    db: Session,
    *,
    name: str,
    email: str,
    password: str,
    role: str = ROLE_USER,
    bcrypt_rounds: int | None = None,
) -> User:
    """
    Insert a new account. Raises DuplicateEmailError if the email is taken.

    The unique index on users.email is the source of truth; the pre-check only
    avoids hashing a password for an obvious duplicate.
    """
    email = normalize_email(email)
    if get_user_by_email(db, email) is not None:
        raise DuplicateEmailError()
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateEmailError() from e
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id, "role": user.role})
    return user


def authenticate_user(db: Session, email: str, password: str, bcrypt_rounds: int | None = None) -> User:
    """
    Return the account for valid credentials, else raise InvalidCredentialsError.

    bcrypt always runs, against a dummy hash when the email is unknown, so an
    unknown email and a wrong password cost the same and look the same.
    """
    user = get_user_by_email(db, email)
    if user is None:
        verify_password(password, dummy_password_hash(bcrypt_rounds or DEFAULT_BCRYPT_ROUNDS))
        logger.info("Login failed", extra={"reason": "unknown_email"})
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        logger.info("Login failed", extra={"reason": "bad_password", "user_id": user.id})
        raise InvalidCredentialsError()
    return user


def update_profile(db: Session, user: User, changes: UserUpdate, *, actor: UserPublic) -> User:
    """Apply provided profile fields. Only an admin may change a role."""
    data = changes.model_dump(exclude_unset=True)
    if "role" in data and data["role"] != user.role and actor.role != ROLE_ADMIN:
        raise ForbiddenError("Only an admin can change roles")
    for field in ("name", "bio", "avatar", "role"):
        if field in data and (data[field] is not None or field in ("bio", "avatar")):
            setattr(user, field, data[field])
    db.commit()
    db.refresh(user)
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id).all()
