"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Structured failure body returned by every error handler."""

    ok: Literal[False] = False
    error_kind: str = Field(..., description="Stable error category, e.g. ValidationFailed")
    detail: str = Field(..., description="User-facing message")
    field: str | None = Field(None, description="Offending input field, when known")
