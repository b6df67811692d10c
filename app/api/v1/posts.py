"""Blog post endpoints. Access rules are applied by dependencies before each handler."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import (
    get_current_user,
    get_editable_post,
    get_optional_user,
    get_viewable_post,
    get_viewable_post_strict,
)
from app.core.database import get_db
from app.models import Post
from app.schemas.auth import MessageResponse, UserPublic
from app.schemas.posts import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    Category,
    LikeResponse,
    PostCreate,
    PostListResponse,
    PostMutationResponse,
    PostOut,
    PostStatus,
    PostUpdate,
)
from app.services import posts as posts_service

router = APIRouter()


@router.get("", response_model=PostListResponse)
def list_posts(
    db: Annotated[Session, Depends(get_db)],
    viewer: Annotated[UserPublic | None, Depends(get_optional_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_LIMIT)] = DEFAULT_PAGE_LIMIT,
    category: Category | None = None,
    status_filter: Annotated[PostStatus | None, Query(alias="status")] = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
    featured: bool | None = None,
) -> PostListResponse:
    """
    List posts newest first with filtering and pagination.

    Anonymous callers only see published posts. A signed-in user may ask for
    status=draft or archived to see their own; admins may list any status.
    """
    posts, total = posts_service.list_posts(
        db,
        viewer=viewer,
        page=page,
        limit=limit,
        category=category,
        status=status_filter,
        search=search.strip() if search else None,
        featured=featured,
    )
    return PostListResponse(
        posts=[PostOut.model_validate(p) for p in posts],
        total_pages=posts_service.total_pages(total, limit),
        current_page=page,
        total_posts=total,
    )


@router.get("/trending", response_model=list[PostOut])
def trending(db: Annotated[Session, Depends(get_db)]) -> list[PostOut]:
    """Top published posts by views, then likes."""
    return [PostOut.model_validate(p) for p in posts_service.trending_posts(db)]


@router.get("/featured", response_model=list[PostOut])
def featured(db: Annotated[Session, Depends(get_db)]) -> list[PostOut]:
    """Newest published posts flagged as featured."""
    return [PostOut.model_validate(p) for p in posts_service.featured_posts(db)]


@router.get("/{post_id}", response_model=PostOut)
def get_post(
    post: Annotated[Post, Depends(get_viewable_post)],
    db: Annotated[Session, Depends(get_db)],
) -> PostOut:
    """Return one post and count the view."""
    return PostOut.model_validate(posts_service.record_view(db, post))


@router.post("", response_model=PostMutationResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreate,
    current_user: Annotated[UserPublic, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> PostMutationResponse:
    post = posts_service.create_post(db, body, current_user)
    return PostMutationResponse(message="Post created successfully", post=PostOut.model_validate(post))


@router.put("/{post_id}", response_model=PostMutationResponse)
def update_post(
    body: PostUpdate,
    post: Annotated[Post, Depends(get_editable_post)],
    db: Annotated[Session, Depends(get_db)],
) -> PostMutationResponse:
    """Update the provided fields of a post (author or admin)."""
    post = posts_service.update_post(db, post, body)
    return PostMutationResponse(message="Post updated successfully", post=PostOut.model_validate(post))


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post: Annotated[Post, Depends(get_editable_post)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    posts_service.delete_post(db, post)
    return MessageResponse(message="Post deleted successfully")


@router.put("/{post_id}/like", response_model=LikeResponse)
@router.post("/{post_id}/like", response_model=LikeResponse)
def like_post(
    post: Annotated[Post, Depends(get_viewable_post_strict)],
    db: Annotated[Session, Depends(get_db)],
) -> LikeResponse:
    likes = posts_service.like_post(db, post)
    return LikeResponse(message="Post liked", likes=likes)
