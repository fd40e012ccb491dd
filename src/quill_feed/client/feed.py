"""Client-side feed state: paginated base list plus optimistic overlays."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, Protocol

from pydantic import ValidationError

from quill_feed.client.dispatchers import LikeToggleDispatcher, MutationDispatcher
from quill_feed.client.overlay import (
    CreateConfirmed,
    CreateFailed,
    CreateStarted,
    DeleteConfirmed,
    DeleteReverted,
    DeleteStarted,
    OverlayEvent,
    OverlayState,
    PageFetched,
    StaleTempsSwept,
    UpdateReverted,
    UpdateStarted,
    is_temp_id,
    merge,
    new_temp_id,
    reduce,
)
from quill_feed.core.errors import ERROR_MESSAGES, FeedError
from quill_feed.core.results import Failure, Ok, Result
from quill_feed.core.settings import settings
from quill_feed.db.time import utcnow
from quill_feed.schemas.like import LikeToggleResponse
from quill_feed.schemas.post import (
    FeedQuery,
    PostCreate,
    PostFilter,
    PostOut,
    PostsPage,
    PostUpdate,
)
from quill_feed.schemas.user import ProfileOut

logger = logging.getLogger(__name__)

__all__ = ["FeedBackend", "FeedSession"]

_STILL_PUBLISHING = "Post is still being published"


class FeedBackend(Protocol):
    """Server calls the feed session depends on (see ``FeedApiClient``)."""

    async def fetch_page(self, query: FeedQuery) -> PostsPage: ...

    async def create_post(self, content: str) -> PostOut: ...

    async def update_post(self, post_id: str, content: str) -> PostOut: ...

    async def delete_post(self, post_id: str) -> None: ...

    async def toggle_like(self, post_id: str) -> LikeToggleResponse: ...


def _validation_failure(exc: ValidationError) -> Failure:
    first = exc.errors()[0]
    detail = str(first.get("msg", ERROR_MESSAGES["INVALID_INPUT"])).removeprefix("Value error, ")
    return Failure(error_kind="ValidationFailed", detail=detail, field="content")


class FeedSession:
    """Feed as seen by one viewer.

    Holds the fetched pages, the optimistic overlay and the mutation
    dispatchers. :meth:`display` is the list to render.

    Fetches are numbered; a response whose number is not the latest issued is
    discarded, so the last issued fetch always wins. A failed fetch keeps the
    current list and sets :attr:`error` until the next :meth:`refresh`.
    """

    def __init__(
        self,
        backend: FeedBackend,
        *,
        viewer: ProfileOut | None = None,
        limit: int = settings.posts_per_page,
        clock: Callable[[], datetime] = utcnow,
        temp_grace_seconds: float = settings.temp_post_grace_seconds,
    ) -> None:
        self.backend = backend
        self.viewer = viewer
        self.query = FeedQuery(limit=limit)
        self.posts: list[PostOut] = []
        self.has_more = False
        self.next_cursor: str | None = None
        self.loading = False
        self.error: str | None = None
        self.overlay = OverlayState()

        self._clock = clock
        self._temp_grace = timedelta(seconds=temp_grace_seconds)
        self._fetch_issued = 0
        self._edit_issued: dict[str, int] = {}
        self._delete_issued: dict[str, int] = {}
        self._creating: set[str] = set()

        self.create = MutationDispatcher(backend.create_post, fallback_error="Failed to create post")
        self.update = MutationDispatcher(backend.update_post, fallback_error="Failed to update post")
        self.delete = MutationDispatcher(backend.delete_post, fallback_error="Failed to delete post")
        self.likes = LikeToggleDispatcher(backend.toggle_like)

    def dispatch(self, event: OverlayEvent) -> OverlayState:
        self.overlay = reduce(self.overlay, event)
        return self.overlay

    def display(self) -> list[PostOut]:
        """Return the posts to render, overlays and like state applied."""
        merged = merge(self.posts, self.overlay, self._clock())
        return [self.likes.apply(post) for post in merged]

    def is_publishing(self, post_id: str) -> bool:
        """True while a locally created post awaits server confirmation."""
        return post_id in self.overlay.added_ids and post_id not in self.overlay.published

    # Fetching

    async def _fetch(self, query: FeedQuery, *, append: bool) -> bool:
        self._fetch_issued += 1
        seq = self._fetch_issued
        likes_settled = self.likes.settled_count
        self.loading = True
        self.error = None

        try:
            page = await self.backend.fetch_page(query)
        except FeedError as exc:
            if seq == self._fetch_issued:
                self.loading = False
                self.error = exc.message
            return False
        except Exception as exc:
            logger.error("Unexpected error fetching posts: %s", exc, exc_info=exc)
            if seq == self._fetch_issued:
                self.loading = False
                self.error = ERROR_MESSAGES["FETCH_FAILED"]
            return False

        if seq != self._fetch_issued:
            logger.debug("Discarding superseded feed page %d", seq)
            return False

        self.posts = [*self.posts, *page.posts] if append else list(page.posts)
        self.has_more = page.has_more
        self.next_cursor = page.next_cursor
        self.loading = False
        self.dispatch(PageFetched(tuple(self.posts)))
        self.likes.reconcile(page.posts, fetched_after=likes_settled)
        return True

    async def refresh(self) -> bool:
        """Reload the first page for the current search and filter."""
        self.query = self.query.model_copy(update={"cursor": None})
        return await self._fetch(self.query, append=False)

    async def load_more(self) -> bool:
        """Append the next page; a no-op while loading or when nothing remains."""
        if self.loading or not self.has_more or not self.next_cursor:
            return False
        return await self._fetch(
            self.query.model_copy(update={"cursor": self.next_cursor}), append=True
        )

    async def update_params(
        self, *, search: str | None = None, filter: PostFilter | None = None
    ) -> bool:
        """Change search and/or filter and restart from the first page."""
        changes: dict[str, Any] = {"cursor": None}
        if search is not None:
            changes["search"] = search or None
        if filter is not None:
            changes["filter"] = filter
        self.query = self.query.model_copy(update=changes)
        return await self._fetch(self.query, append=False)

    # Mutations

    async def create_post(self, content: str) -> Result[PostOut]:
        """Show the post immediately, then confirm or roll back."""
        if self.viewer is None:
            return Failure(error_kind="Unauthorized", detail=ERROR_MESSAGES["UNAUTHORIZED"])
        try:
            content = PostCreate(content=content).content
        except ValidationError as exc:
            return _validation_failure(exc)

        now = self._clock()
        temp_id = new_temp_id(now)
        self.dispatch(
            CreateStarted(
                PostOut(
                    id=temp_id,
                    author_id=self.viewer.id,
                    content=content,
                    created_at=now,
                    updated_at=now,
                    author=self.viewer,
                    likes_count=0,
                    is_liked=False,
                )
            )
        )

        self._creating.add(temp_id)
        try:
            result = await self.create.mutate(content)
        finally:
            self._creating.discard(temp_id)
        if isinstance(result, Ok):
            self.dispatch(CreateConfirmed(temp_id, result.value))
        else:
            self.dispatch(CreateFailed(temp_id))
        self.dispatch(
            StaleTempsSwept(self._clock(), self._temp_grace, frozenset(self._creating))
        )
        return result

    async def update_post(self, post_id: str, content: str) -> Result[PostOut]:
        """Show the new content immediately; revert if the server refuses."""
        if is_temp_id(post_id):
            return Failure(error_kind="ValidationFailed", detail=_STILL_PUBLISHING)
        try:
            content = PostUpdate(content=content).content
        except ValidationError as exc:
            return _validation_failure(exc)

        seq = self._edit_issued.get(post_id, 0) + 1
        self._edit_issued[post_id] = seq
        self.dispatch(UpdateStarted(post_id, content))

        result = await self.update.mutate(post_id, content)
        if isinstance(result, Failure) and seq == self._edit_issued[post_id]:
            self.dispatch(UpdateReverted(post_id))
        return result

    async def delete_post(self, post_id: str) -> Result[None]:
        """Hide the post immediately; show it again if the server refuses."""
        if is_temp_id(post_id):
            return Failure(error_kind="ValidationFailed", detail=_STILL_PUBLISHING)

        seq = self._delete_issued.get(post_id, 0) + 1
        self._delete_issued[post_id] = seq
        self.dispatch(DeleteStarted(post_id))

        result = await self.delete.mutate(post_id)
        if isinstance(result, Ok):
            self.dispatch(DeleteConfirmed(post_id))
        elif seq == self._delete_issued[post_id]:
            self.dispatch(DeleteReverted(post_id))
        return result

    async def toggle_like(self, post: PostOut) -> Result[Any]:
        if self.viewer is None:
            return Failure(error_kind="Unauthorized", detail=ERROR_MESSAGES["UNAUTHORIZED"])
        if is_temp_id(post.id):
            return Failure(error_kind="ValidationFailed", detail=_STILL_PUBLISHING)
        return await self.likes.toggle(post)
