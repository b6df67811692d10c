"""ORM model for blog accounts (credential store and RBAC)."""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """
    Blog account keyed by email for JWT authentication and role-based access control.

    email is stored lower-cased; the unique index enforces case-insensitive uniqueness.
    role: 'admin' or 'user'
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    email = Column(String(100), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="user", server_default="user")
    avatar = Column(String(2048), nullable=True)
    bio = Column(Text, nullable=True)

    posts = relationship("Post", back_populates="author", passive_deletes=True)
