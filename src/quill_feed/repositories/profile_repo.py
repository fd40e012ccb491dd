"""Data access helpers for profiles."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from quill_feed.models.profile import Profile

__all__ = ["ProfileRepository"]


class ProfileRepository:
    """Thin wrapper around database access for profile entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, profile_id: str) -> Profile | None:
        return self.session.get(Profile, profile_id)

    def get_by_email(self, email: str) -> Profile | None:
        return self.session.execute(
            select(Profile).where(Profile.email == email)
        ).scalars().first()

    def get_by_username(self, username: str) -> Profile | None:
        return self.session.execute(
            select(Profile).where(Profile.username == username)
        ).scalars().first()

    def create(self, *, email: str, username: str, password_hash: str) -> Profile:
        """Insert a profile; uniqueness violations surface on flush."""
        profile = Profile(email=email, username=username, password_hash=password_hash)
        self.session.add(profile)
        self.session.flush()
        return profile
