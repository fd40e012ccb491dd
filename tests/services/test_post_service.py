# mypy: ignore-errors
# tests/services/test_post_service.py
"""Tests for owner-scoped post mutations and like toggling."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from quill_feed.core.errors import MutationFailed, NotFoundOrForbidden
from quill_feed.models import Post, PostLike
from quill_feed.repositories import PostRepository
from quill_feed.services import post_service


def test_create_post_persists_and_returns_zero_likes(post_repo, db_session, test_user) -> None:
    created = post_service.create_post(post_repo, author_id=test_user.id, content="first!")

    assert created.content == "first!"
    assert created.author_id == test_user.id
    assert created.likes_count == 0
    assert created.is_liked is False
    assert created.created_at == created.updated_at
    assert db_session.get(Post, created.id) is not None


def test_update_post_by_owner(post_repo, test_post, test_user) -> None:
    updated = post_service.update_post(
        post_repo, post_id=test_post.id, author_id=test_user.id, content="edited"
    )

    assert updated.content == "edited"
    assert updated.updated_at >= updated.created_at


def test_update_post_by_other_user_is_not_found(post_repo, test_post, other_user) -> None:
    with pytest.raises(NotFoundOrForbidden):
        post_service.update_post(
            post_repo, post_id=test_post.id, author_id=other_user.id, content="hijack"
        )
    assert post_repo.get_by_id(test_post.id).content == "Test post content"


def test_update_missing_post_is_not_found(post_repo, test_user) -> None:
    with pytest.raises(NotFoundOrForbidden) as excinfo:
        post_service.update_post(
            post_repo, post_id="missing", author_id=test_user.id, content="x"
        )
    assert excinfo.value.message == "Post not found or permission denied"


def test_delete_post_removes_post_and_likes(
    post_repo, db_session, test_post, test_user, other_user, like
) -> None:
    like(test_post, other_user)

    post_service.delete_post(post_repo, post_id=test_post.id, author_id=test_user.id)

    assert db_session.get(Post, test_post.id) is None
    assert db_session.query(PostLike).count() == 0


def test_delete_post_by_other_user_is_not_found(post_repo, test_post, other_user) -> None:
    with pytest.raises(NotFoundOrForbidden):
        post_service.delete_post(post_repo, post_id=test_post.id, author_id=other_user.id)
    assert post_repo.get_by_id(test_post.id) is not None


def test_toggle_like_flips_state(post_repo, test_post, other_user) -> None:
    first = post_service.toggle_like(post_repo, post_id=test_post.id, user_id=other_user.id)
    second = post_service.toggle_like(post_repo, post_id=test_post.id, user_id=other_user.id)

    assert (first.liked, first.likes_count) == (True, 1)
    assert (second.liked, second.likes_count) == (False, 0)


def test_toggle_like_on_missing_post(post_repo, test_user) -> None:
    with pytest.raises(NotFoundOrForbidden):
        post_service.toggle_like(post_repo, post_id="missing", user_id=test_user.id)


class _BrokenInsertRepository(PostRepository):
    def insert_post(self, **kwargs):
        raise SQLAlchemyError("disk full")


def test_create_post_storage_failure(db_session, test_user) -> None:
    with pytest.raises(MutationFailed) as excinfo:
        post_service.create_post(
            _BrokenInsertRepository(db_session), author_id=test_user.id, content="hi"
        )
    assert excinfo.value.message == "Failed to create post"
