"""Like-related Pydantic schemas."""

from pydantic import BaseModel, Field


class LikeToggleResponse(BaseModel):
    """Outcome of toggling the viewer's like on a post."""

    post_id: str
    liked: bool = Field(..., description="True if the viewer now likes the post")
    likes_count: int = Field(..., ge=0)
