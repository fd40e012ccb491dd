# mypy: ignore-errors
# tests/conftest.py
"""Shared fixtures: an in-memory database per test and an API client bound to it."""

from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from quill_feed.core.security import create_access_token, hash_password  # noqa: E402
from quill_feed.db.session import Base  # noqa: E402
from quill_feed.db.session import get_db as app_get_session  # noqa: E402
from quill_feed.main import app as fastapi_app  # noqa: E402
from quill_feed.models import Post, PostLike, Profile  # noqa: E402
from quill_feed.repositories import PostRepository  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct-horse"
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

_profile_counter = count(1)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    TestingSessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def post_repo(db_session: Session) -> PostRepository:
    return PostRepository(db_session)


def _create_profile(db_session: Session, prefix: str) -> Profile:
    username = f"{prefix}{next(_profile_counter)}"
    profile = Profile(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture()
def test_user(db_session: Session) -> Profile:
    """Create and return a persisted profile."""
    return _create_profile(db_session, "alice")


@pytest.fixture()
def other_user(db_session: Session) -> Profile:
    """Create and return a second persisted profile."""
    return _create_profile(db_session, "bob")


@pytest.fixture()
def auth_token(test_user: Profile) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest.fixture()
def other_auth_token(other_user: Profile) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Return a factory that inserts posts with controlled timestamps.

    ``minutes`` offsets ``created_at`` from a fixed base time so tests can
    build exact orderings, including ties.
    """

    def _make(
        author: Profile,
        content: str = "hello feed",
        *,
        minutes: int = 0,
        post_id: str | None = None,
    ) -> Post:
        created_at = BASE_TIME + timedelta(minutes=minutes)
        post = Post(
            author_id=author.id,
            content=content,
            created_at=created_at,
            updated_at=created_at,
        )
        if post_id is not None:
            post.id = post_id
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make


@pytest.fixture()
def test_post(make_post, test_user) -> Post:
    """Create and return a post authored by the primary test user."""
    return make_post(test_user, "Test post content")


@pytest.fixture()
def like(db_session: Session) -> Callable[[Post, Profile], PostLike]:
    """Return a helper that records a like directly in the database."""

    def _like(post: Post, profile: Profile) -> PostLike:
        row = PostLike(post_id=post.id, user_id=profile.id)
        db_session.add(row)
        db_session.commit()
        return row

    return _like
