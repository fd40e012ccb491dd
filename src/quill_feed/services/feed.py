"""Feed query layer: one page of posts with per-viewer like aggregates."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from quill_feed.core.errors import ERROR_MESSAGES, FetchFailed
from quill_feed.models.post import Post
from quill_feed.repositories.post_repo import PostRepository
from quill_feed.schemas.post import FeedQuery, PostOut, PostsPage
from quill_feed.services.cursor import encode_cursor, parse_cursor

logger = logging.getLogger(__name__)

__all__ = ["fetch_page", "to_post_out"]


def to_post_out(post: Post, *, likes_count: int = 0, is_liked: bool = False) -> PostOut:
    """Convert a Post ORM instance to an API schema."""
    out = PostOut.model_validate(post)
    return out.model_copy(update={"likes_count": likes_count, "is_liked": is_liked})


def fetch_page(
    repo: PostRepository,
    query: FeedQuery,
    *,
    viewer_id: str | None = None,
) -> PostsPage:
    """Return one page of the feed.

    Posts are ordered by ``(created_at DESC, id DESC)``. One row beyond
    ``query.limit`` is fetched to learn whether another page exists, then
    trimmed. ``filter="mine"`` without a viewer yields an empty page.

    Args:
        repo: Post repository bound to the current session.
        query: Validated search, filter, cursor and limit.
        viewer_id: Authenticated profile id, if any.

    Returns:
        The page, with ``next_cursor`` pointing at its last post when more remain.

    Raises:
        FetchFailed: If any storage call fails; partial pages are never returned.
    """
    if query.filter == "mine" and viewer_id is None:
        return PostsPage(posts=[], next_cursor=None, has_more=False)

    after = parse_cursor(query.cursor)
    author_id = viewer_id if query.filter == "mine" else None

    try:
        rows = repo.query_posts(
            limit=query.limit + 1,
            search=query.search or None,
            author_id=author_id,
            after=after,
        )
        has_more = len(rows) > query.limit
        rows = rows[: query.limit]
        post_ids = [row.id for row in rows]
        counts = repo.like_counts(post_ids)
        liked = repo.liked_post_ids(post_ids, viewer_id) if viewer_id else set()
    except SQLAlchemyError as exc:
        logger.error("Error fetching posts: %s", exc, exc_info=True)
        raise FetchFailed(ERROR_MESSAGES["FETCH_FAILED"]) from exc

    posts = [
        to_post_out(row, likes_count=counts.get(row.id, 0), is_liked=row.id in liked)
        for row in rows
    ]

    next_cursor = None
    if has_more and rows:
        last = rows[-1]
        next_cursor = encode_cursor(last.created_at, last.id)

    return PostsPage(posts=posts, next_cursor=next_cursor, has_more=has_more)
