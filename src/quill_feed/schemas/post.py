"""Post-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quill_feed.core.settings import settings
from quill_feed.schemas.user import ProfileOut

PostFilter = Literal["all", "mine"]


def validate_content(value: str) -> str:
    """Trim post content and enforce the length bounds."""
    value = value.strip()
    if not value:
        raise ValueError("Post content is required")
    if len(value) > settings.max_post_length:
        raise ValueError(
            f"Post content must be {settings.max_post_length} characters or less"
        )
    return value


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    content: str = Field(..., description="Post body (rich text)")

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return validate_content(v)


class PostUpdate(BaseModel):
    """Schema for replacing the content of an existing post."""

    content: str = Field(..., description="Replacement post body")

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        return validate_content(v)


class PostOut(BaseModel):
    """Post as shown in the feed, with like aggregates for the viewer."""

    id: str
    author_id: str
    content: str
    created_at: datetime
    updated_at: datetime
    author: ProfileOut | None = None
    likes_count: int = Field(0, ge=0)
    is_liked: bool = False

    model_config = ConfigDict(from_attributes=True)


class FeedQuery(BaseModel):
    """Search, filter and pagination parameters for one feed page."""

    search: str | None = Field(None, description="Case-insensitive content substring")
    filter: PostFilter = Field("all", description="'all' posts or only the viewer's ('mine')")
    cursor: str | None = Field(None, description="Opaque token from a previous page")
    limit: int = Field(
        default=settings.posts_per_page,
        ge=1,
        le=settings.max_posts_per_page,
        description="Maximum number of posts to return",
    )


class PostsPage(BaseModel):
    """One page of the feed."""

    posts: list[PostOut]
    next_cursor: str | None = Field(None, description="Token for the following page")
    has_more: bool = False
