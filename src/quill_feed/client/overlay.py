"""Optimistic overlay state for the feed.

Locally initiated mutations that the server has not confirmed yet are kept
in an immutable :class:`OverlayState`. Every user action or settled request
is expressed as an event and folded in with :func:`reduce`, which always
returns a new state. :func:`merge` lays the overlay over the last fetched
page to produce the list that is displayed.

Overlay entries take precedence over the base list for matching ids until a
fresh page shows that the server has caught up (see :class:`PageFetched`).
"""
from __future__ import annotations

import itertools
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from types import MappingProxyType

from quill_feed.schemas.post import PostOut

__all__ = [
    "TEMP_ID_PREFIX",
    "CreateConfirmed",
    "CreateFailed",
    "CreateStarted",
    "DeleteConfirmed",
    "DeleteReverted",
    "DeleteStarted",
    "OverlayEvent",
    "OverlayState",
    "PageFetched",
    "StaleTempsSwept",
    "UpdateReverted",
    "UpdateStarted",
    "is_temp_id",
    "merge",
    "new_temp_id",
    "reduce",
    "reduce_all",
]

TEMP_ID_PREFIX = "temp-"

_temp_sequence = itertools.count(1)


def new_temp_id(now: datetime) -> str:
    """Return a placeholder id that can never collide with a server UUID."""
    millis = int(now.timestamp() * 1000)
    return f"{TEMP_ID_PREFIX}{millis}-{next(_temp_sequence)}"


def is_temp_id(post_id: str) -> bool:
    return post_id.startswith(TEMP_ID_PREFIX)


def _frozen(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class OverlayState:
    """Unconfirmed local changes layered over the server feed.

    Attributes:
        added: Locally created posts not yet seen in a fetched page, newest first.
        updated: Pending content replacement per post id.
        deleted: Ids hidden locally until the server confirms the delete.
        published: Ids of created posts the server has acknowledged. Advisory
            UI state only; :func:`merge` ignores it.
    """

    added: tuple[PostOut, ...] = ()
    updated: Mapping[str, str] = field(default_factory=lambda: _frozen({}))
    deleted: frozenset[str] = frozenset()
    published: frozenset[str] = frozenset()

    @property
    def added_ids(self) -> frozenset[str]:
        return frozenset(post.id for post in self.added)

    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.deleted or self.published)


# Events


@dataclass(frozen=True)
class CreateStarted:
    post: PostOut


@dataclass(frozen=True)
class CreateConfirmed:
    """The server accepted a create; ``post`` is the canonical row if returned."""

    temp_id: str
    post: PostOut | None = None


@dataclass(frozen=True)
class CreateFailed:
    temp_id: str


@dataclass(frozen=True)
class UpdateStarted:
    post_id: str
    content: str


@dataclass(frozen=True)
class UpdateReverted:
    post_id: str


@dataclass(frozen=True)
class DeleteStarted:
    post_id: str


@dataclass(frozen=True)
class DeleteConfirmed:
    post_id: str


@dataclass(frozen=True)
class DeleteReverted:
    post_id: str


@dataclass(frozen=True)
class PageFetched:
    """A fresh server page arrived; ``posts`` is the full base list now shown."""

    posts: tuple[PostOut, ...]


@dataclass(frozen=True)
class StaleTempsSwept:
    """Drop temporary creates older than ``grace`` at time ``now``.

    Ids in ``in_flight`` belong to creates still awaiting the server and are
    never swept.
    """

    now: datetime
    grace: timedelta
    in_flight: frozenset[str] = frozenset()


OverlayEvent = (
    CreateStarted
    | CreateConfirmed
    | CreateFailed
    | UpdateStarted
    | UpdateReverted
    | DeleteStarted
    | DeleteConfirmed
    | DeleteReverted
    | PageFetched
    | StaleTempsSwept
)


def _without_key(mapping: Mapping[str, str], *keys: str) -> Mapping[str, str]:
    return _frozen({k: v for k, v in mapping.items() if k not in keys})


def _create_confirmed(state: OverlayState, event: CreateConfirmed) -> OverlayState:
    pending = next((p for p in state.added if p.id == event.temp_id), None)
    if pending is None:
        # The temporary entry is gone; still show the confirmed post once.
        if event.post is None or event.post.id in state.added_ids:
            return state
        return replace(
            state,
            added=(event.post, *state.added),
            published=state.published | {event.post.id},
        )
    if event.post is None:
        return replace(state, published=state.published | {event.temp_id})

    real = event.post
    if real.author is None and pending.author is not None:
        real = real.model_copy(update={"author": pending.author})
    added = tuple(real if p.id == event.temp_id else p for p in state.added)

    updated = dict(state.updated)
    if event.temp_id in updated:
        updated[real.id] = updated.pop(event.temp_id)
    return replace(
        state,
        added=added,
        updated=_frozen(updated),
        published=state.published | {real.id},
    )


def _page_fetched(state: OverlayState, event: PageFetched) -> OverlayState:
    server = {post.id: post for post in event.posts}

    added = tuple(post for post in state.added if post.id not in server)
    added_ids = {post.id for post in added}

    updated = {}
    for post_id, content in state.updated.items():
        if post_id in server:
            # Retire the edit once the server shows it.
            if server[post_id].content != content:
                updated[post_id] = content
        elif post_id in added_ids:
            updated[post_id] = content

    deleted = frozenset(
        post_id for post_id in state.deleted if post_id in server or post_id in added_ids
    )
    published = frozenset(post_id for post_id in state.published if post_id in added_ids)
    return OverlayState(
        added=added,
        updated=_frozen(updated),
        deleted=deleted,
        published=published,
    )


def _stale_temps_swept(state: OverlayState, event: StaleTempsSwept) -> OverlayState:
    cutoff = event.now - event.grace
    stale = {
        post.id
        for post in state.added
        if is_temp_id(post.id)
        and post.id not in event.in_flight
        and post.created_at < cutoff
    }
    if not stale:
        return state
    return replace(
        state,
        added=tuple(post for post in state.added if post.id not in stale),
        updated=_without_key(state.updated, *stale),
        published=state.published - stale,
    )


def reduce(state: OverlayState, event: OverlayEvent) -> OverlayState:
    """Return the overlay state that results from applying ``event``."""
    if isinstance(event, CreateStarted):
        return replace(state, added=(event.post, *state.added))
    if isinstance(event, CreateConfirmed):
        return _create_confirmed(state, event)
    if isinstance(event, CreateFailed):
        return replace(
            state,
            added=tuple(post for post in state.added if post.id != event.temp_id),
            updated=_without_key(state.updated, event.temp_id),
            published=state.published - {event.temp_id},
        )
    if isinstance(event, UpdateStarted):
        # Last writer wins: a second edit replaces the pending one.
        return replace(state, updated=_frozen({**state.updated, event.post_id: event.content}))
    if isinstance(event, UpdateReverted):
        return replace(state, updated=_without_key(state.updated, event.post_id))
    if isinstance(event, DeleteStarted):
        return replace(state, deleted=state.deleted | {event.post_id})
    if isinstance(event, DeleteConfirmed):
        # The id stays in ``deleted`` until a fetched page no longer has it.
        return replace(
            state,
            added=tuple(post for post in state.added if post.id != event.post_id),
            updated=_without_key(state.updated, event.post_id),
            published=state.published - {event.post_id},
        )
    if isinstance(event, DeleteReverted):
        return replace(state, deleted=state.deleted - {event.post_id})
    if isinstance(event, PageFetched):
        return _page_fetched(state, event)
    if isinstance(event, StaleTempsSwept):
        return _stale_temps_swept(state, event)
    raise TypeError(f"Unknown overlay event: {event!r}")


def reduce_all(state: OverlayState, events: Iterable[OverlayEvent]) -> OverlayState:
    for event in events:
        state = reduce(state, event)
    return state


def merge(base: Sequence[PostOut], state: OverlayState, now: datetime) -> list[PostOut]:
    """Lay ``state`` over the fetched ``base`` list.

    Deleted ids are hidden, pending edits replace content and bump
    ``updated_at`` to ``now``, and ``added`` is prepended newest first. A
    base item that is also in ``added`` is shown once, from ``added``.
    """

    def apply_edit(post: PostOut) -> PostOut:
        content = state.updated.get(post.id)
        if content is None:
            return post
        return post.model_copy(update={"content": content, "updated_at": now})

    added_ids = state.added_ids
    head = [apply_edit(post) for post in state.added if post.id not in state.deleted]
    tail = [
        apply_edit(post)
        for post in base
        if post.id not in state.deleted and post.id not in added_ids
    ]
    return head + tail
