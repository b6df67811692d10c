"""Request/response schemas for blog post endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from app.schemas.base import ApiModel

Category = Literal[
    "Technology",
    "Travel",
    "Food",
    "Lifestyle",
    "Health",
    "Business",
    "Entertainment",
    "Other",
]
PostStatus = Literal["draft", "published", "archived"]

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
CONTENT_MIN_LENGTH = 10
EXCERPT_MAX_LENGTH = 300
MAX_TAGS = 20
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 50


def _strip(v: object) -> object:
    return v.strip() if isinstance(v, str) else v


class PostCreate(ApiModel):
    """Fields accepted when creating a post."""

    title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    content: str = Field(..., min_length=CONTENT_MIN_LENGTH)
    excerpt: str | None = Field(default=None, max_length=EXCERPT_MAX_LENGTH)
    cover_image: str | None = None
    category: Category
    tags: list[str] = Field(default_factory=list, max_length=MAX_TAGS)
    status: PostStatus = "draft"
    featured: bool = False

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return _strip(v)


class PostUpdate(ApiModel):
    """Fields accepted when updating a post; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    content: str | None = Field(default=None, min_length=CONTENT_MIN_LENGTH)
    excerpt: str | None = Field(default=None, max_length=EXCERPT_MAX_LENGTH)
    cover_image: str | None = None
    category: Category | None = None
    tags: list[str] | None = Field(default=None, max_length=MAX_TAGS)
    status: PostStatus | None = None
    featured: bool | None = None

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return _strip(v)


class PostAuthor(ApiModel):
    """Author summary embedded in posts (no email, no password hash)."""

    id: int
    name: str
    avatar: str | None = None


class PostOut(ApiModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    cover_image: str | None = None
    category: str
    tags: list[str] = Field(default_factory=list)
    status: PostStatus
    featured: bool
    views: int
    likes: int
    author: PostAuthor
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PostListResponse(ApiModel):
    """One page of posts plus paging totals."""

    posts: list[PostOut]
    total_pages: int
    current_page: int
    total_posts: int


class PostMutationResponse(ApiModel):
    message: str
    post: PostOut


class LikeResponse(ApiModel):
    message: str
    likes: int
