"""Error taxonomy shared by the server actions and the client dispatchers."""

from __future__ import annotations

from typing import ClassVar

__all__ = [
    "ERROR_MESSAGES",
    "Conflict",
    "FeedError",
    "FetchFailed",
    "InvalidCursor",
    "MutationFailed",
    "NotFoundOrForbidden",
    "Unauthorized",
    "ValidationFailed",
    "error_from_kind",
]

ERROR_MESSAGES = {
    "INVALID_INPUT": "Invalid input provided",
    "UNAUTHORIZED": "You must be signed in to perform this action",
    "USER_NOT_FOUND": "User profile not found",
    "USERNAME_TAKEN": "Username is already taken",
    "EMAIL_TAKEN": "An account with this email already exists",
    "INVALID_CREDENTIALS": "Invalid email or password",
    "POST_NOT_FOUND": "Post not found or permission denied",
    "FETCH_FAILED": "Failed to fetch posts",
    "UNKNOWN_ERROR": "An unexpected error occurred",
    "NETWORK_ERROR": "Network error, please try again",
}


class FeedError(RuntimeError):
    """Base exception for every failure surfaced to callers.

    Subclasses carry a stable ``kind`` used on the wire and in failure
    results, and the HTTP status the API answers with.
    """

    kind: ClassVar[str] = "MutationFailed"
    status_code: ClassVar[int] = 500

    def __init__(self, message: str | None = None, *, field: str | None = None) -> None:
        super().__init__(message or ERROR_MESSAGES["UNKNOWN_ERROR"])
        self.message = message or ERROR_MESSAGES["UNKNOWN_ERROR"]
        self.field = field


class ValidationFailed(FeedError):
    """Input violates content, length or format constraints."""

    kind = "ValidationFailed"
    status_code = 422


class Unauthorized(FeedError):
    """No authenticated identity for an action requiring one."""

    kind = "Unauthorized"
    status_code = 401


class NotFoundOrForbidden(FeedError):
    """Mutation target is absent or not owned by the caller.

    The two cases are deliberately indistinguishable so other users'
    resources are never revealed.
    """

    kind = "NotFoundOrForbidden"
    status_code = 404


class Conflict(FeedError):
    """Unique constraint violation, e.g. a duplicate username."""

    kind = "Conflict"
    status_code = 409


class FetchFailed(FeedError):
    """Upstream failure while reading the feed."""

    kind = "FetchFailed"
    status_code = 503


class MutationFailed(FeedError):
    """Upstream failure while writing."""

    kind = "MutationFailed"
    status_code = 500


class InvalidCursor(FeedError):
    """Pagination token could not be decoded."""

    kind = "InvalidCursor"
    status_code = 400


_ERRORS_BY_KIND: dict[str, type[FeedError]] = {
    cls.kind: cls
    for cls in (
        ValidationFailed,
        Unauthorized,
        NotFoundOrForbidden,
        Conflict,
        FetchFailed,
        MutationFailed,
        InvalidCursor,
    )
}


def error_from_kind(kind: str | None, message: str | None, field: str | None = None) -> FeedError:
    """Rebuild a typed error from its wire representation."""
    error_cls = _ERRORS_BY_KIND.get(kind or "", MutationFailed)
    return error_cls(message, field=field)
