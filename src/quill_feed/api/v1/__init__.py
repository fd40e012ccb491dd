# src/quill_feed/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import auth_router, likes_router, posts_router

__all__ = ["auth_router", "likes_router", "posts_router"]
