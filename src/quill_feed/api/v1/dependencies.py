"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from quill_feed.core.errors import ERROR_MESSAGES, Unauthorized
from quill_feed.core.security import decode_access_token
from quill_feed.db.session import get_db
from quill_feed.models import Profile
from quill_feed.repositories import PostRepository, ProfileRepository

# HTTP Bearer scheme for JWT authentication; anonymous reads are allowed.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_post_repo(db: SessionDep) -> PostRepository:
    """Return a post repository bound to the request session."""
    return PostRepository(db)


def get_profile_repo(db: SessionDep) -> ProfileRepository:
    """Return a profile repository bound to the request session."""
    return ProfileRepository(db)


PostRepoDep = Annotated[PostRepository, Depends(get_post_repo)]
ProfileRepoDep = Annotated[ProfileRepository, Depends(get_profile_repo)]


def get_optional_profile(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    repo: ProfileRepoDep,
) -> Profile | None:
    """Resolve the viewer from a bearer token, or None when anonymous.

    A token that is present but invalid is rejected rather than silently
    treated as anonymous.

    Raises:
        Unauthorized: If the token is invalid or names an unknown profile.
    """
    if credentials is None:
        return None
    subject = decode_access_token(credentials.credentials)
    if subject is None:
        raise Unauthorized("Could not validate credentials")
    profile = repo.get(subject)
    if profile is None:
        raise Unauthorized(ERROR_MESSAGES["USER_NOT_FOUND"])
    return profile


OptionalProfileDep = Annotated[Profile | None, Depends(get_optional_profile)]


def get_current_profile(profile: OptionalProfileDep) -> Profile:
    """Require an authenticated viewer.

    Raises:
        Unauthorized: If the request carries no valid credentials.
    """
    if profile is None:
        raise Unauthorized(ERROR_MESSAGES["UNAUTHORIZED"])
    return profile


# Type alias for current profile dependency
CurrentProfileDep = Annotated[Profile, Depends(get_current_profile)]
