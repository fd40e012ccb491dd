# mypy: ignore-errors
# tests/client/test_dispatchers.py
"""Tests for mutation and like-toggle dispatchers."""

import asyncio
from datetime import UTC, datetime

import pytest

from quill_feed.client.dispatchers import (
    LikeState,
    LikeToggleDispatcher,
    MutationDispatcher,
    to_failure,
)
from quill_feed.core.errors import MutationFailed, NotFoundOrForbidden, ValidationFailed
from quill_feed.core.results import Failure, Ok
from quill_feed.schemas.like import LikeToggleResponse
from quill_feed.schemas.post import PostOut

NOW = datetime(2026, 5, 1, 9, 0, 0, tzinfo=UTC)


class GatedAction:
    """Async action whose calls stay pending until the test settles them."""

    def __init__(self):
        self.calls = []

    async def __call__(self, *args):
        future = asyncio.get_running_loop().create_future()
        self.calls.append((args, future))
        return await future

    def succeed(self, index, value=None):
        self.calls[index][1].set_result(value)

    def fail(self, index, exc):
        self.calls[index][1].set_exception(exc)


def _post(*, is_liked=False, likes_count=0):
    return PostOut(
        id="p1",
        author_id="author-1",
        content="hello",
        created_at=NOW,
        updated_at=NOW,
        likes_count=likes_count,
        is_liked=is_liked,
    )


def _liked_response(liked, count):
    return LikeToggleResponse(post_id="p1", liked=liked, likes_count=count)


def test_to_failure_keeps_domain_errors() -> None:
    failure = to_failure(ValidationFailed("Too long", field="content"), fallback="nope")

    assert failure == Failure(error_kind="ValidationFailed", detail="Too long", field="content")


def test_to_failure_hides_unexpected_errors() -> None:
    failure = to_failure(KeyError("internal"), fallback="Failed to create post")

    assert failure == Failure(error_kind="MutationFailed", detail="Failed to create post")


@pytest.mark.asyncio
async def test_mutate_success() -> None:
    async def action(value):
        return value * 2

    dispatcher = MutationDispatcher(action)
    result = await dispatcher.mutate(21)

    assert result == Ok(42)
    assert dispatcher.loading is False
    assert dispatcher.error is None


@pytest.mark.asyncio
async def test_mutate_failure_sets_error() -> None:
    async def action():
        raise NotFoundOrForbidden("Post not found or permission denied")

    dispatcher = MutationDispatcher(action)
    result = await dispatcher.mutate()

    assert isinstance(result, Failure)
    assert result.error_kind == "NotFoundOrForbidden"
    assert dispatcher.error == "Post not found or permission denied"
    assert dispatcher.loading is False


@pytest.mark.asyncio
async def test_mutate_unexpected_error_uses_fallback() -> None:
    async def action():
        raise RuntimeError("socket closed")

    dispatcher = MutationDispatcher(action, fallback_error="Failed to update post")
    result = await dispatcher.mutate()

    assert result == Failure(error_kind="MutationFailed", detail="Failed to update post")


@pytest.mark.asyncio
async def test_loading_tracks_latest_call() -> None:
    action = GatedAction()
    dispatcher = MutationDispatcher(action)

    first = asyncio.create_task(dispatcher.mutate("a"))
    await asyncio.sleep(0)
    second = asyncio.create_task(dispatcher.mutate("b"))
    await asyncio.sleep(0)
    assert dispatcher.loading is True
    assert dispatcher.latest_sequence == 2

    action.succeed(0, "a")
    assert await first == Ok("a")
    assert dispatcher.loading is True

    action.succeed(1, "b")
    assert await second == Ok("b")
    assert dispatcher.loading is False


@pytest.mark.asyncio
async def test_superseded_failure_does_not_overwrite_state() -> None:
    """A late failure from an older call never clobbers the newer outcome."""
    action = GatedAction()
    dispatcher = MutationDispatcher(action)

    first = asyncio.create_task(dispatcher.mutate())
    await asyncio.sleep(0)
    second = asyncio.create_task(dispatcher.mutate())
    await asyncio.sleep(0)

    action.succeed(1, "ok")
    await second
    action.fail(0, MutationFailed("Failed to update post"))
    result = await first

    assert isinstance(result, Failure)
    assert dispatcher.error is None
    assert dispatcher.loading is False


@pytest.mark.asyncio
async def test_like_toggle_is_optimistic() -> None:
    action = GatedAction()
    dispatcher = LikeToggleDispatcher(action)
    post = _post()

    task = asyncio.create_task(dispatcher.toggle(post))
    await asyncio.sleep(0)

    assert dispatcher.view(post) == LikeState(is_liked=True, likes_count=1)
    assert dispatcher.pending("p1") is True
    assert dispatcher.loading is True

    action.succeed(0, _liked_response(True, 1))
    assert isinstance(await task, Ok)
    assert dispatcher.view(post) == LikeState(is_liked=True, likes_count=1)
    assert dispatcher.pending("p1") is False
    assert dispatcher.loading is False


@pytest.mark.asyncio
async def test_like_toggle_failure_reverts() -> None:
    async def action(post_id):
        raise MutationFailed("Failed to update like")

    dispatcher = LikeToggleDispatcher(action)
    post = _post(is_liked=True, likes_count=3)

    result = await dispatcher.toggle(post)

    assert isinstance(result, Failure)
    assert dispatcher.view(post) == LikeState(is_liked=True, likes_count=3)
    assert dispatcher.error == "Failed to update like"


@pytest.mark.asyncio
async def test_unlike_never_goes_negative() -> None:
    async def action(post_id):
        return _liked_response(False, 0)

    dispatcher = LikeToggleDispatcher(action)
    post = _post(is_liked=True, likes_count=0)

    await dispatcher.toggle(post)

    assert dispatcher.view(post) == LikeState(is_liked=False, likes_count=0)


@pytest.mark.asyncio
async def test_double_toggle_settles_on_last_request() -> None:
    """Like then unlike: a late failure of the first must not re-apply the like."""
    action = GatedAction()
    dispatcher = LikeToggleDispatcher(action)
    post = _post()

    like = asyncio.create_task(dispatcher.toggle(post))
    await asyncio.sleep(0)
    unlike = asyncio.create_task(dispatcher.toggle(post))
    await asyncio.sleep(0)
    assert dispatcher.view(post) == LikeState(is_liked=False, likes_count=0)

    action.succeed(1, _liked_response(False, 0))
    await unlike
    action.fail(0, MutationFailed("Failed to update like"))
    await like

    assert dispatcher.view(post) == LikeState(is_liked=False, likes_count=0)
    assert dispatcher.error is None
    assert dispatcher.loading is False


@pytest.mark.asyncio
async def test_failure_of_latest_toggle_restores_its_own_start() -> None:
    action = GatedAction()
    dispatcher = LikeToggleDispatcher(action)
    post = _post()

    like = asyncio.create_task(dispatcher.toggle(post))
    await asyncio.sleep(0)
    unlike = asyncio.create_task(dispatcher.toggle(post))
    await asyncio.sleep(0)

    action.succeed(0, _liked_response(True, 1))
    await like
    action.fail(1, MutationFailed("Failed to update like"))
    await unlike

    assert dispatcher.view(post) == LikeState(is_liked=True, likes_count=1)


@pytest.mark.asyncio
async def test_latest_success_shows_server_answer_after_older_failure() -> None:
    """Toggles are relative on the server, so its answer wins over local arithmetic."""
    action = GatedAction()
    dispatcher = LikeToggleDispatcher(action)
    post = _post(likes_count=3)

    like = asyncio.create_task(dispatcher.toggle(post))
    await asyncio.sleep(0)
    unlike = asyncio.create_task(dispatcher.toggle(post))
    await asyncio.sleep(0)

    action.fail(0, MutationFailed("Failed to update like"))
    await like
    action.succeed(1, _liked_response(True, 4))
    await unlike

    assert dispatcher.view(post) == LikeState(is_liked=True, likes_count=4)


@pytest.mark.asyncio
async def test_reconcile_hands_settled_posts_back_to_the_page() -> None:
    """A page fetched after the toggle settled is the source of truth, even if it disagrees."""
    async def action(post_id):
        return _liked_response(True, 1)

    dispatcher = LikeToggleDispatcher(action)
    await dispatcher.toggle(_post())

    dispatcher.reconcile([_post(is_liked=False, likes_count=5)])

    assert dispatcher.apply(_post()) == _post()
    assert dispatcher.view(_post(likes_count=5)) == LikeState(is_liked=False, likes_count=5)


@pytest.mark.asyncio
async def test_reconcile_keeps_override_newer_than_the_page() -> None:
    async def action(post_id):
        return _liked_response(True, 1)

    dispatcher = LikeToggleDispatcher(action)
    issued_at = dispatcher.settled_count
    await dispatcher.toggle(_post())

    dispatcher.reconcile([_post()], fetched_after=issued_at)

    assert dispatcher.apply(_post()).is_liked is True


@pytest.mark.asyncio
async def test_reconcile_skips_pending_toggles() -> None:
    action = GatedAction()
    dispatcher = LikeToggleDispatcher(action)

    task = asyncio.create_task(dispatcher.toggle(_post()))
    await asyncio.sleep(0)
    dispatcher.reconcile([_post()])

    assert dispatcher.apply(_post()).is_liked is True

    action.succeed(0, _liked_response(True, 1))
    await task
