"""Opaque pagination cursors.

A cursor is URL-safe base64 of a small JSON object carrying the sort key
``(created_at, id)`` of the last post on a page. Clients must treat the token
as opaque; only this module knows its structure.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime
from typing import NamedTuple

from quill_feed.core.errors import InvalidCursor

logger = logging.getLogger(__name__)

__all__ = ["CursorKey", "decode_cursor", "encode_cursor", "parse_cursor"]


class CursorKey(NamedTuple):
    """Sort key of the last item seen in a descending scan."""

    created_at: datetime
    id: str


def encode_cursor(created_at: datetime, post_id: str) -> str:
    """Encode a ``(created_at, id)`` pair into an opaque token."""
    payload = json.dumps(
        {"created_at": created_at.isoformat(), "id": post_id},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode().rstrip("=")


def decode_cursor(token: str) -> CursorKey:
    """Decode a token produced by :func:`encode_cursor`.

    Raises:
        InvalidCursor: If the token is malformed or carries the wrong shape.
    """
    padding = "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(token + padding, altchars=b"-_", validate=True)
        payload = json.loads(raw.decode("utf-8"))
        created_at = datetime.fromisoformat(payload["created_at"])
        post_id = payload["id"]
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
        raise InvalidCursor("Invalid cursor format") from exc
    if not isinstance(post_id, str) or not post_id:
        raise InvalidCursor("Invalid cursor format")
    return CursorKey(created_at, post_id)


def parse_cursor(token: str | None) -> CursorKey | None:
    """Return the decoded key, or None to start from the beginning."""
    if not token:
        return None
    try:
        return decode_cursor(token)
    except InvalidCursor:
        logger.debug("Ignoring undecodable cursor %r", token)
        return None
