"""Async HTTP client for the Quill Feed API.

Failure bodies produced by the server are mapped back onto the
:mod:`quill_feed.core.errors` taxonomy so dispatchers can classify them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from quill_feed.core.errors import (
    ERROR_MESSAGES,
    FeedError,
    FetchFailed,
    MutationFailed,
    error_from_kind,
)
from quill_feed.schemas.like import LikeToggleResponse
from quill_feed.schemas.post import FeedQuery, PostOut, PostsPage
from quill_feed.schemas.user import ProfileOut, TokenResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class FeedApiClient:
    """HTTP client wrapper for the feed endpoints.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``.
        client: Pre-built ``httpx.AsyncClient``; takes precedence over ``base_url``.
        access_token: Bearer token for authenticated calls.
        timeout_seconds: Request timeout for the client built here.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        client: httpx.AsyncClient | None = None,
        access_token: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=httpx.Timeout(timeout_seconds)
        )
        self.access_token = access_token

    async def __aenter__(self) -> FeedApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @dataclass
    class RequestParams:
        """Parameters for HTTP requests."""

        method: str
        path: str
        json_data: Any | None = None
        params: Mapping[str, Any] | None = None
        failure: type[FeedError] = MutationFailed

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    async def _request(self, params: RequestParams) -> httpx.Response:
        try:
            response = await self._client.request(
                params.method,
                f"{API_PREFIX}{params.path}",
                json=params.json_data,
                params=params.params,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", params.method, params.path, exc)
            raise params.failure(ERROR_MESSAGES["NETWORK_ERROR"]) from exc

        if response.is_success:
            return response
        raise self._error_from_response(response, params.failure)

    @staticmethod
    def _error_from_response(response: httpx.Response, failure: type[FeedError]) -> FeedError:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and "error_kind" in body:
            return error_from_kind(body.get("error_kind"), body.get("detail"), body.get("field"))
        logger.warning("Unexpected %s response without error body", response.status_code)
        return failure()

    async def fetch_page(self, query: FeedQuery) -> PostsPage:
        """Fetch one feed page.

        Raises:
            FetchFailed: On network failure or a server-side read failure.
        """
        params = query.model_dump(exclude_none=True)
        response = await self._request(
            self.RequestParams(method="GET", path="/posts", params=params, failure=FetchFailed)
        )
        return PostsPage.model_validate(response.json())

    async def create_post(self, content: str) -> PostOut:
        response = await self._request(
            self.RequestParams(method="POST", path="/posts", json_data={"content": content})
        )
        return PostOut.model_validate(response.json())

    async def update_post(self, post_id: str, content: str) -> PostOut:
        response = await self._request(
            self.RequestParams(
                method="PATCH", path=f"/posts/{post_id}", json_data={"content": content}
            )
        )
        return PostOut.model_validate(response.json())

    async def delete_post(self, post_id: str) -> None:
        await self._request(self.RequestParams(method="DELETE", path=f"/posts/{post_id}"))

    async def toggle_like(self, post_id: str) -> LikeToggleResponse:
        response = await self._request(
            self.RequestParams(method="POST", path=f"/posts/{post_id}/like")
        )
        return LikeToggleResponse.model_validate(response.json())

    async def sign_up(self, *, email: str, password: str, username: str) -> ProfileOut:
        response = await self._request(
            self.RequestParams(
                method="POST",
                path="/auth/signup",
                json_data={"email": email, "password": password, "username": username},
            )
        )
        return ProfileOut.model_validate(response.json())

    async def sign_in(self, *, email: str, password: str) -> TokenResponse:
        """Sign in and keep the returned token for subsequent calls."""
        response = await self._request(
            self.RequestParams(
                method="POST",
                path="/auth/signin",
                json_data={"email": email, "password": password},
            )
        )
        token = TokenResponse.model_validate(response.json())
        self.access_token = token.access_token
        return token

    async def me(self) -> ProfileOut:
        response = await self._request(self.RequestParams(method="GET", path="/auth/me"))
        return ProfileOut.model_validate(response.json())
