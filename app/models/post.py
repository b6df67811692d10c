"""ORM model for blog posts (the content store protected by auth)."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, false, func
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class Post(Base, TimestampMixin):
    """
    Blog post owned by a user.

    status: 'draft', 'published' or 'archived'; only published posts are public.
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(300), nullable=True)
    cover_image = Column(String(2048), nullable=True)
    category = Column(String(32), nullable=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default="draft", server_default="draft", index=True)
    featured = Column(Boolean, nullable=False, default=False, server_default=false())
    views = Column(Integer, nullable=False, default=0, server_default="0")
    likes = Column(Integer, nullable=False, default=0, server_default="0")
    author_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Listings sort newest first.
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    author = relationship("User", back_populates="posts", lazy="joined")
