"""Content store: query and mutate blog posts. Callers apply authorization first."""

import logging
import math
import re
import secrets
import time

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.permissions import ROLE_ADMIN
from app.models import Post
from app.schemas.auth import UserPublic
from app.schemas.posts import PostCreate, PostUpdate

logger = logging.getLogger(__name__)

PUBLISHED = "published"
EXCERPT_DEFAULT_CHARS = 150
TRENDING_LIMIT = 5
FEATURED_LIMIT = 5


def slugify(title: str) -> str:
    """Lower-case, drop punctuation, collapse whitespace and dashes into single dashes."""
    slug = title.lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def default_excerpt(content: str) -> str:
    return content[:EXCERPT_DEFAULT_CHARS] + "..."


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def visible_status_filter(viewer: UserPublic | None, requested_status: str | None) -> tuple[str, int | None]:
    """
    Decide which status a listing may show and whether it is limited to one author.

    Anonymous callers always get published posts. Admins may list any status.
    Other users may list their own drafts/archived posts.
    Returns (status, author_id or None).
    """
    status = requested_status or PUBLISHED
    if viewer is None or status == PUBLISHED:
        return PUBLISHED, None
    if viewer.role == ROLE_ADMIN:
        return status, None
    return status, viewer.id


def list_posts(
    db: Session,
    *,
    viewer: UserPublic | None,
    page: int,
    limit: int,
    category: str | None = None,
    status: str | None = None,
    search: str | None = None,
    featured: bool | None = None,
    author_id: int | None = None,
) -> tuple[list[Post], int]:
    """Return one page of posts (newest first) and the total matching count."""
    effective_status, owner_id = visible_status_filter(viewer, status)
    query = db.query(Post).filter(Post.status == effective_status)
    if owner_id is not None:
        query = query.filter(Post.author_id == owner_id)
    if author_id is not None:
        query = query.filter(Post.author_id == author_id)
    if category:
        query = query.filter(Post.category == category)
    if featured is not None:
        query = query.filter(Post.featured.is_(featured))
    if search:
        pattern = f"%{_escape_like(search)}%"
        query = query.filter(
            or_(
                Post.title.ilike(pattern, escape="\\"),
                Post.content.ilike(pattern, escape="\\"),
                Post.excerpt.ilike(pattern, escape="\\"),
            )
        )
    total = query.count()
    posts = (
        query.order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return posts, total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def list_user_posts(db: Session, author_id: int, *, include_unpublished: bool) -> list[Post]:
    query = db.query(Post).filter(Post.author_id == author_id)
    if not include_unpublished:
        query = query.filter(Post.status == PUBLISHED)
    return query.order_by(Post.created_at.desc(), Post.id.desc()).all()


def trending_posts(db: Session) -> list[Post]:
    return (
        db.query(Post)
        .filter(Post.status == PUBLISHED)
        .order_by(Post.views.desc(), Post.likes.desc(), Post.id.desc())
        .limit(TRENDING_LIMIT)
        .all()
    )


def featured_posts(db: Session) -> list[Post]:
    return (
        db.query(Post)
        .filter(Post.status == PUBLISHED, Post.featured.is_(True))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(FEATURED_LIMIT)
        .all()
    )


def get_post(db: Session, post_id: int) -> Post | None:
    return db.query(Post).filter(Post.id == post_id).first()


def create_post(db: Session, body: PostCreate, author: UserPublic) -> Post:
    post = Post(
        title=body.title,
        slug=f"{slugify(body.title)}-{int(time.time() * 1000)}{secrets.token_hex(2)}",
        content=body.content,
        excerpt=body.excerpt or default_excerpt(body.content),
        cover_image=body.cover_image,
        category=body.category,
        tags=list(body.tags),
        status=body.status,
        featured=body.featured,
        author_id=author.id,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("Post created", extra={"post_id": post.id, "author_id": author.id})
    return post


def update_post(db: Session, post: Post, body: PostUpdate) -> Post:
    """Apply only the fields present in the request body."""
    data = body.model_dump(exclude_unset=True)
    for field, value in data.items():
        if value is None and field not in ("excerpt", "cover_image"):
            continue
        setattr(post, field, list(value) if field == "tags" else value)
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post: Post) -> None:
    post_id = post.id
    db.delete(post)
    db.commit()
    logger.info("Post deleted", extra={"post_id": post_id})


def record_view(db: Session, post: Post) -> Post:
    post.views = Post.views + 1
    db.commit()
    db.refresh(post)
    return post


def like_post(db: Session, post: Post) -> int:
    post.likes = Post.likes + 1
    db.commit()
    db.refresh(post)
    return post.likes
