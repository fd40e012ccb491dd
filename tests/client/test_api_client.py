# mypy: ignore-errors
# tests/client/test_api_client.py
"""Tests for the HTTP client, run against the in-process application."""

import httpx
import pytest

from quill_feed.client.api import FeedApiClient
from quill_feed.client.feed import FeedSession
from quill_feed.core.errors import (
    FetchFailed,
    MutationFailed,
    NotFoundOrForbidden,
    Unauthorized,
    ValidationFailed,
)
from quill_feed.core.results import Ok
from quill_feed.core.security import create_access_token
from quill_feed.schemas.post import FeedQuery
from quill_feed.schemas.user import ProfileOut


def _asgi_client(app, token=None):
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    return FeedApiClient(client=http, access_token=token)


def _mock_client(handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return FeedApiClient(client=http)


@pytest.mark.asyncio
async def test_sign_up_sign_in_and_me(app) -> None:
    async with _asgi_client(app) as api:
        profile = await api.sign_up(email="dave@example.com", password="secret1", username="dave")
        token = await api.sign_in(email="dave@example.com", password="secret1")
        me = await api.me()

    assert api.access_token == token.access_token
    assert me.id == profile.id
    assert me.username == "dave"


@pytest.mark.asyncio
async def test_post_lifecycle(app, test_user) -> None:
    async with _asgi_client(app, create_access_token(test_user.id)) as api:
        created = await api.create_post("hello from the client")
        page = await api.fetch_page(FeedQuery())
        updated = await api.update_post(created.id, "edited")
        liked = await api.toggle_like(created.id)
        await api.delete_post(created.id)
        after = await api.fetch_page(FeedQuery())

    assert [post.id for post in page.posts] == [created.id]
    assert updated.content == "edited"
    assert liked.liked is True
    assert liked.likes_count == 1
    assert after.posts == []


@pytest.mark.asyncio
async def test_server_errors_map_to_typed_errors(app, test_post, other_user) -> None:
    async with _asgi_client(app, create_access_token(other_user.id)) as api:
        with pytest.raises(NotFoundOrForbidden):
            await api.update_post(test_post.id, "not mine")
        with pytest.raises(ValidationFailed) as excinfo:
            await api.create_post("   ")

    assert excinfo.value.field == "content"
    assert excinfo.value.message == "Post content is required"


@pytest.mark.asyncio
async def test_anonymous_mutation_is_unauthorized(app) -> None:
    async with _asgi_client(app) as api:
        with pytest.raises(Unauthorized):
            await api.create_post("hello")


@pytest.mark.asyncio
async def test_network_error_on_fetch() -> None:
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _mock_client(handler) as api:
        with pytest.raises(FetchFailed) as excinfo:
            await api.fetch_page(FeedQuery())

    assert excinfo.value.message == "Network error, please try again"


@pytest.mark.asyncio
async def test_network_error_on_mutation() -> None:
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with _mock_client(handler) as api:
        with pytest.raises(MutationFailed):
            await api.delete_post("p1")


@pytest.mark.asyncio
async def test_error_without_structured_body() -> None:
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    async with _mock_client(handler) as api:
        with pytest.raises(FetchFailed) as excinfo:
            await api.fetch_page(FeedQuery())

    assert excinfo.value.message == "An unexpected error occurred"


@pytest.mark.asyncio
async def test_fetch_sends_only_set_parameters() -> None:
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"posts": [], "next_cursor": None, "has_more": False})

    async with _mock_client(handler) as api:
        await api.fetch_page(FeedQuery(search="cat", limit=5))

    assert seen[0].url.path == "/api/v1/posts"
    assert dict(seen[0].url.params) == {"search": "cat", "filter": "all", "limit": "5"}


@pytest.mark.asyncio
async def test_feed_session_over_http(app, test_user, make_post) -> None:
    """The client session works end to end against the real endpoints."""
    make_post(test_user, "existing")
    viewer = ProfileOut.model_validate(test_user)

    async with _asgi_client(app, create_access_token(test_user.id)) as api:
        session = FeedSession(api, viewer=viewer)
        await session.refresh()
        result = await session.create_post("fresh post")
        await session.refresh()

    assert isinstance(result, Ok)
    assert [post.content for post in session.display()] == ["fresh post", "existing"]
    assert session.overlay.is_empty()
