"""Owner-scoped post mutations and like toggling."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from quill_feed.core.errors import ERROR_MESSAGES, MutationFailed, NotFoundOrForbidden
from quill_feed.db.time import utcnow
from quill_feed.repositories.post_repo import PostRepository
from quill_feed.schemas.like import LikeToggleResponse
from quill_feed.schemas.post import PostOut
from quill_feed.services.feed import to_post_out

logger = logging.getLogger(__name__)

__all__ = ["create_post", "delete_post", "toggle_like", "update_post"]


def create_post(repo: PostRepository, *, author_id: str, content: str) -> PostOut:
    """Persist a new post authored by ``author_id``.

    Args:
        repo: Repository used to persist the post.
        author_id: Authenticated profile id.
        content: Already validated, trimmed content.

    Returns:
        The created post with zero likes.

    Raises:
        MutationFailed: If the store rejects the insert.
    """
    try:
        post = repo.insert_post(author_id=author_id, content=content, now=utcnow())
        repo.commit()
        repo.session.refresh(post)
    except SQLAlchemyError as exc:
        repo.rollback()
        logger.error("Error creating post: %s", exc, exc_info=True)
        raise MutationFailed("Failed to create post") from exc
    logger.info("Post %s created by %s", post.id, author_id)
    return to_post_out(post)


def update_post(
    repo: PostRepository, *, post_id: str, author_id: str, content: str
) -> PostOut:
    """Replace the content of a post owned by ``author_id``.

    Raises:
        NotFoundOrForbidden: If the post is missing or owned by someone else.
        MutationFailed: If the store rejects the update.
    """
    try:
        post = repo.update_owned(
            post_id=post_id, author_id=author_id, content=content, now=utcnow()
        )
        if post is None:
            raise NotFoundOrForbidden(ERROR_MESSAGES["POST_NOT_FOUND"])
        repo.commit()
        repo.session.refresh(post)
        likes_count = repo.count_likes(post.id)
        is_liked = repo.exists_like(post.id, author_id)
    except SQLAlchemyError as exc:
        repo.rollback()
        logger.error("Error updating post: %s", exc, exc_info=True)
        raise MutationFailed("Failed to update post") from exc
    return to_post_out(post, likes_count=likes_count, is_liked=is_liked)


def delete_post(repo: PostRepository, *, post_id: str, author_id: str) -> None:
    """Delete a post owned by ``author_id``.

    Raises:
        NotFoundOrForbidden: If the post is missing or owned by someone else.
        MutationFailed: If the store rejects the delete.
    """
    try:
        deleted = repo.delete_owned(post_id=post_id, author_id=author_id)
        if not deleted:
            raise NotFoundOrForbidden(ERROR_MESSAGES["POST_NOT_FOUND"])
        repo.commit()
    except SQLAlchemyError as exc:
        repo.rollback()
        logger.error("Error deleting post: %s", exc, exc_info=True)
        raise MutationFailed("Failed to delete post") from exc
    logger.info("Post %s deleted by %s", post_id, author_id)


def toggle_like(repo: PostRepository, *, post_id: str, user_id: str) -> LikeToggleResponse:
    """Like the post if the viewer has not, otherwise remove the like.

    Raises:
        NotFoundOrForbidden: If the post does not exist.
        MutationFailed: If the store rejects the change.
    """
    try:
        if repo.get_by_id(post_id) is None:
            raise NotFoundOrForbidden(ERROR_MESSAGES["POST_NOT_FOUND"])
        if repo.exists_like(post_id, user_id):
            repo.delete_like(post_id, user_id)
            liked = False
        else:
            repo.insert_like(post_id, user_id, utcnow())
            liked = True
        repo.commit()
        likes_count = repo.count_likes(post_id)
    except SQLAlchemyError as exc:
        repo.rollback()
        logger.error("Error toggling like on %s: %s", post_id, exc, exc_info=True)
        raise MutationFailed("Failed to update like") from exc
    return LikeToggleResponse(post_id=post_id, liked=liked, likes_count=likes_count)
