# src/quill_feed/api/v1/endpoints/likes.py
"""Like endpoints for the Quill Feed API."""

from fastapi import APIRouter

from quill_feed.api.v1.dependencies import CurrentProfileDep, PostRepoDep
from quill_feed.schemas.like import LikeToggleResponse
from quill_feed.services import post_service

router = APIRouter(prefix="/posts", tags=["likes"])


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    post_id: str,
    current_profile: CurrentProfileDep,
    repo: PostRepoDep,
) -> LikeToggleResponse:
    """Toggle the caller's like on a post."""
    return post_service.toggle_like(repo, post_id=post_id, user_id=current_profile.id)
