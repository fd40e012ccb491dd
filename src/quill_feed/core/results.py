"""Tagged success/failure results returned by the client dispatchers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying the action's value."""

    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Failure:
    """Failed outcome; ``error_kind`` matches ``FeedError.kind``."""

    error_kind: str
    detail: str
    field: str | None = None
    ok: Literal[False] = False


Result = Ok[T] | Failure
