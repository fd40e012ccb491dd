"""Data access helpers for working with posts and likes."""
from __future__ import annotations

from collections.abc import Collection
from datetime import datetime

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.orm import Session

from quill_feed.models.like import PostLike
from quill_feed.models.post import Post
from quill_feed.services.cursor import CursorKey

__all__ = ["PostRepository"]


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostRepository:
    """Thin wrapper around database access for post and like entities.

    Update and delete are always scoped to the owning author; callers cannot
    tell a missing row from a row they do not own.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def get_by_id(self, post_id: str) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def query_posts(
        self,
        *,
        limit: int,
        search: str | None = None,
        author_id: str | None = None,
        after: CursorKey | None = None,
    ) -> list[Post]:
        """Return posts in ``(created_at DESC, id DESC)`` order.

        Args:
            limit: Maximum number of rows to return.
            search: Case-insensitive substring matched against the content.
            author_id: Restrict to posts written by this profile.
            after: Resume strictly after this sort key.
        """
        stmt = select(Post)
        if search:
            stmt = stmt.where(Post.content.ilike(f"%{_escape_like(search)}%", escape="\\"))
        if author_id is not None:
            stmt = stmt.where(Post.author_id == author_id)
        if after is not None:
            stmt = stmt.where(
                or_(
                    Post.created_at < after.created_at,
                    and_(Post.created_at == after.created_at, Post.id < after.id),
                )
            )
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars().unique())

    def insert_post(self, *, author_id: str, content: str, now: datetime) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        post = Post(author_id=author_id, content=content, created_at=now, updated_at=now)
        self.session.add(post)
        self.session.flush()
        return post

    def update_owned(
        self, *, post_id: str, author_id: str, content: str, now: datetime
    ) -> Post | None:
        """Replace the content of a post owned by ``author_id``."""
        post = self.session.execute(
            select(Post).where(Post.id == post_id, Post.author_id == author_id)
        ).scalars().first()
        if post is None:
            return None
        post.content = content
        post.updated_at = now
        self.session.flush()
        return post

    def delete_owned(self, *, post_id: str, author_id: str) -> bool:
        """Delete a post owned by ``author_id`` together with its likes."""
        post = self.session.execute(
            select(Post).where(Post.id == post_id, Post.author_id == author_id)
        ).scalars().first()
        if post is None:
            return False
        self.session.execute(delete(PostLike).where(PostLike.post_id == post_id))
        self.session.delete(post)
        self.session.flush()
        return True

    def count_likes(self, post_id: str) -> int:
        """Return the number of likes on a post."""
        return self.session.execute(
            select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
        ).scalar_one()

    def like_counts(self, post_ids: Collection[str]) -> dict[str, int]:
        """Return like counts for many posts in one query; absent means zero."""
        if not post_ids:
            return {}
        rows = self.session.execute(
            select(PostLike.post_id, func.count())
            .where(PostLike.post_id.in_(list(post_ids)))
            .group_by(PostLike.post_id)
        ).all()
        return {post_id: count for post_id, count in rows}

    def exists_like(self, post_id: str, user_id: str) -> bool:
        """Return True if ``user_id`` likes ``post_id``."""
        return self.session.get(PostLike, (post_id, user_id)) is not None

    def liked_post_ids(self, post_ids: Collection[str], user_id: str) -> set[str]:
        """Return the subset of ``post_ids`` liked by ``user_id``."""
        if not post_ids:
            return set()
        rows = self.session.execute(
            select(PostLike.post_id).where(
                PostLike.user_id == user_id,
                PostLike.post_id.in_(list(post_ids)),
            )
        ).scalars()
        return set(rows)

    def insert_like(self, post_id: str, user_id: str, now: datetime) -> None:
        self.session.add(PostLike(post_id=post_id, user_id=user_id, created_at=now))
        self.session.flush()

    def delete_like(self, post_id: str, user_id: str) -> None:
        self.session.execute(
            delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        )
        self.session.flush()
