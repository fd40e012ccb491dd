# src/quill_feed/api/v1/endpoints/posts.py
"""Post-related endpoints for the Quill Feed API."""

from typing import Annotated, Literal

from fastapi import APIRouter, Query, Response, status

from quill_feed.api.v1.dependencies import CurrentProfileDep, OptionalProfileDep, PostRepoDep
from quill_feed.core.settings import settings
from quill_feed.schemas.post import FeedQuery, PostCreate, PostOut, PostsPage, PostUpdate
from quill_feed.services import post_service
from quill_feed.services.feed import fetch_page

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=PostsPage)
async def list_posts(
    repo: PostRepoDep,
    viewer: OptionalProfileDep,
    search: Annotated[str | None, Query(description="Case-insensitive content search")] = None,
    filter: Annotated[Literal["all", "mine"], Query(description="'all' or 'mine'")] = "all",
    cursor: Annotated[str | None, Query(description="Opaque cursor from a previous page")] = None,
    limit: Annotated[
        int,
        Query(ge=1, le=settings.max_posts_per_page, description="Maximum number of posts"),
    ] = settings.posts_per_page,
) -> PostsPage:
    """List posts newest first with optional search, filter and cursor.

    An undecodable cursor restarts the scan from the newest post.
    """
    query = FeedQuery(search=search, filter=filter, cursor=cursor, limit=limit)
    return fetch_page(repo, query, viewer_id=viewer.id if viewer else None)


@router.post("", response_model=PostOut, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    current_profile: CurrentProfileDep,
    repo: PostRepoDep,
) -> PostOut:
    """Create a new post authored by the caller."""
    return post_service.create_post(repo, author_id=current_profile.id, content=payload.content)


@router.patch("/{post_id}", response_model=PostOut)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    current_profile: CurrentProfileDep,
    repo: PostRepoDep,
) -> PostOut:
    """Replace the content of one of the caller's posts."""
    return post_service.update_post(
        repo, post_id=post_id, author_id=current_profile.id, content=payload.content
    )


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    current_profile: CurrentProfileDep,
    repo: PostRepoDep,
) -> Response:
    """Delete one of the caller's posts."""
    post_service.delete_post(repo, post_id=post_id, author_id=current_profile.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
