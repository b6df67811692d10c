"""Pure authorization predicates; the API layer turns them into dependencies."""

from collections.abc import Iterable
from typing import Protocol

from app.core.errors import ForbiddenError, UnauthenticatedError

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class Identity(Protocol):
    id: int
    role: str


def has_role(identity: Identity | None, allowed_roles: Iterable[str]) -> bool:
    """True if an identity is present and its role is one of allowed_roles."""
    if identity is None:
        return False
    return identity.role in set(allowed_roles)


def is_owner_or_admin(identity: Identity | None, owner_id: int | None) -> bool:
    """True if identity owns the resource (owner_id matches) or is an admin."""
    if identity is None:
        return False
    if identity.role == ROLE_ADMIN:
        return True
    return owner_id is not None and identity.id == owner_id


def ensure_role(identity: Identity | None, allowed_roles: Iterable[str]) -> Identity:
    """
    Gate check applied after authentication.

    Raises UnauthenticatedError without an identity, ForbiddenError when the
    role is not allowed; otherwise returns the identity unchanged.
    """
    if identity is None:
        raise UnauthenticatedError()
    if not has_role(identity, allowed_roles):
        raise ForbiddenError()
    return identity
