"""SQLAlchemy models for the Quill Feed application."""

from .like import PostLike
from .post import Post
from .profile import Profile

__all__ = ["Post", "PostLike", "Profile"]
