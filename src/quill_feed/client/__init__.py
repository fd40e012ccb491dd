"""Client-side feed state, optimistic overlays and the HTTP client."""

from .api import FeedApiClient
from .dispatchers import LikeState, LikeToggleDispatcher, MutationDispatcher
from .feed import FeedBackend, FeedSession
from .overlay import OverlayState, merge, reduce

__all__ = [
    "FeedApiClient",
    "FeedBackend",
    "FeedSession",
    "LikeState",
    "LikeToggleDispatcher",
    "MutationDispatcher",
    "OverlayState",
    "merge",
    "reduce",
]
