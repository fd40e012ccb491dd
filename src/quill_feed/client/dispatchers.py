"""Request/response wrappers that track in-flight state for each mutation.

A dispatcher owns one "slot". Every call takes the next sequence number for
that slot; when a call settles, only the most recently issued call may update
``loading`` and ``error``. Results of superseded calls are still returned to
their own caller, but never overwrite newer state.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from quill_feed.core.errors import ERROR_MESSAGES, FeedError
from quill_feed.core.results import Failure, Ok, Result
from quill_feed.schemas.like import LikeToggleResponse
from quill_feed.schemas.post import PostOut

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["LikeState", "LikeToggleDispatcher", "MutationDispatcher", "to_failure"]


def to_failure(exc: Exception, *, fallback: str) -> Failure:
    """Convert an exception raised by an action into a failure result.

    Domain errors keep their kind and message; anything else is logged and
    replaced with ``fallback`` so internal detail never reaches the caller.
    """
    if isinstance(exc, FeedError):
        return Failure(error_kind=exc.kind, detail=exc.message, field=exc.field)
    logger.error("Unexpected mutation failure: %s", exc, exc_info=exc)
    return Failure(error_kind="MutationFailed", detail=fallback)


class MutationDispatcher(Generic[T]):
    """Run one kind of mutation and expose its ``loading`` and ``error``.

    Args:
        action: Coroutine function performing the server call.
        fallback_error: Message used for unexpected failures.
    """

    def __init__(
        self,
        action: Callable[..., Awaitable[T]],
        *,
        fallback_error: str = ERROR_MESSAGES["UNKNOWN_ERROR"],
    ) -> None:
        self._action = action
        self._fallback_error = fallback_error
        self._issued = 0
        self.loading = False
        self.error: str | None = None

    @property
    def latest_sequence(self) -> int:
        return self._issued

    async def mutate(self, *args: Any, **kwargs: Any) -> Result[T]:
        """Call the action; never raises for failures of the action itself."""
        self._issued += 1
        seq = self._issued
        self.loading = True
        self.error = None

        try:
            value = await self._action(*args, **kwargs)
        except Exception as exc:
            result: Result[T] = to_failure(exc, fallback=self._fallback_error)
        else:
            result = Ok(value)

        if seq == self._issued:
            self.loading = False
            self.error = result.detail if isinstance(result, Failure) else None
        return result


@dataclass(frozen=True)
class LikeState:
    """Displayed like status of one post."""

    is_liked: bool
    likes_count: int


class LikeToggleDispatcher:
    """Optimistic like toggling, independent of the post overlay.

    Each post id has its own slot. A toggle flips the displayed state at once,
    then calls the server. Only the latest toggle for a post may settle the
    display: on success it shows the server's answer, on failure the state from
    before that toggle. Results of older toggles are ignored.

    An override lasts until a page fetched after it settled arrives; see
    :meth:`reconcile`.
    """

    def __init__(
        self,
        action: Callable[[str], Awaitable[Any]],
        *,
        fallback_error: str = "Failed to update like",
    ) -> None:
        self._action = action
        self._fallback_error = fallback_error
        self._overrides: dict[str, LikeState] = {}
        self._issued: dict[str, int] = {}
        self._in_flight: dict[str, int] = {}
        self._settled_at: dict[str, int] = {}
        self.settled_count = 0
        self.loading = False
        self.error: str | None = None

    def view(self, post: PostOut) -> LikeState:
        """Return the state to display for ``post``."""
        override = self._overrides.get(post.id)
        if override is not None:
            return override
        return LikeState(is_liked=post.is_liked, likes_count=post.likes_count)

    def apply(self, post: PostOut) -> PostOut:
        """Return ``post`` with the displayed like state applied."""
        state = self._overrides.get(post.id)
        if state is None:
            return post
        return post.model_copy(
            update={"is_liked": state.is_liked, "likes_count": state.likes_count}
        )

    def pending(self, post_id: str) -> bool:
        return self._in_flight.get(post_id, 0) > 0

    async def toggle(self, post: PostOut) -> Result[Any]:
        """Flip the like on ``post`` optimistically and confirm with the server."""
        post_id = post.id
        before = self.view(post)
        liked = not before.is_liked
        self._overrides[post_id] = LikeState(
            is_liked=liked,
            likes_count=max(0, before.likes_count + (1 if liked else -1)),
        )

        seq = self._issued.get(post_id, 0) + 1
        self._issued[post_id] = seq
        self._in_flight[post_id] = self._in_flight.get(post_id, 0) + 1
        self.loading = True
        self.error = None

        try:
            value = await self._action(post_id)
        except Exception as exc:
            result: Result[Any] = to_failure(exc, fallback=self._fallback_error)
        else:
            result = Ok(value)
        finally:
            self._in_flight[post_id] -= 1
            if not self._in_flight[post_id]:
                del self._in_flight[post_id]

        self.settled_count += 1
        self._settled_at[post_id] = self.settled_count
        if seq == self._issued[post_id]:
            if isinstance(result, Failure):
                self._overrides[post_id] = before
                self.error = result.detail
            elif isinstance(result.value, LikeToggleResponse):
                self._overrides[post_id] = LikeState(
                    is_liked=result.value.liked, likes_count=result.value.likes_count
                )
        self.loading = bool(self._in_flight)
        return result

    def reconcile(self, posts: Iterable[PostOut], *, fetched_after: int | None = None) -> None:
        """Let a fetched page take over the like state of its posts.

        Args:
            posts: Posts of the fetched page.
            fetched_after: :attr:`settled_count` when the fetch was issued.
                Overrides settled later than that are kept, since the page may
                predate them. None treats the page as fetched just now.
        """
        if fetched_after is None:
            fetched_after = self.settled_count
        for post in posts:
            if post.id not in self._overrides or self.pending(post.id):
                continue
            if self._settled_at.get(post.id, 0) <= fetched_after:
                del self._overrides[post.id]
