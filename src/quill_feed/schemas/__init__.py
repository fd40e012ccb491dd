"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import ErrorResponse
from .like import LikeToggleResponse
from .post import FeedQuery, PostCreate, PostOut, PostsPage, PostUpdate
from .user import (
    ProfileOut,
    ProfileUpdateRequest,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
)

__all__ = [
    "ErrorResponse",
    "FeedQuery", "PostCreate", "PostOut", "PostsPage", "PostUpdate",
    "LikeToggleResponse",
    "ProfileOut", "ProfileUpdateRequest", "SignInRequest", "SignUpRequest", "TokenResponse",
]
