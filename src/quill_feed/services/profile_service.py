"""Account sign-up, sign-in and profile maintenance."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from quill_feed.core import security
from quill_feed.core.errors import (
    ERROR_MESSAGES,
    Conflict,
    MutationFailed,
    Unauthorized,
)
from quill_feed.models.profile import Profile
from quill_feed.repositories.profile_repo import ProfileRepository
from quill_feed.schemas.user import ProfileUpdateRequest, SignUpRequest

logger = logging.getLogger(__name__)

__all__ = ["authenticate", "sign_up", "update_profile"]


def sign_up(repo: ProfileRepository, request: SignUpRequest) -> Profile:
    """Create an account and its profile.

    Raises:
        Conflict: If the username or email is already registered.
        MutationFailed: If the store rejects the insert for another reason.
    """
    if repo.get_by_username(request.username) is not None:
        raise Conflict(ERROR_MESSAGES["USERNAME_TAKEN"], field="username")
    if repo.get_by_email(request.email) is not None:
        raise Conflict(ERROR_MESSAGES["EMAIL_TAKEN"], field="email")

    try:
        profile = repo.create(
            email=request.email,
            username=request.username,
            password_hash=security.hash_password(request.password),
        )
        repo.session.commit()
        repo.session.refresh(profile)
    except IntegrityError as exc:
        # Lost a race with a concurrent sign-up for the same username.
        repo.session.rollback()
        raise Conflict(ERROR_MESSAGES["USERNAME_TAKEN"], field="username") from exc
    except SQLAlchemyError as exc:
        repo.session.rollback()
        logger.error("Error creating profile: %s", exc, exc_info=True)
        raise MutationFailed("Failed to create account") from exc
    logger.info("Profile %s registered", profile.id)
    return profile


def authenticate(repo: ProfileRepository, *, email: str, password: str) -> Profile:
    """Return the profile matching the credentials.

    Raises:
        Unauthorized: If the email is unknown or the password does not match.
    """
    profile = repo.get_by_email(email)
    if profile is None or not security.verify_password(password, profile.password_hash):
        raise Unauthorized(ERROR_MESSAGES["INVALID_CREDENTIALS"])
    return profile


def update_profile(
    repo: ProfileRepository, profile: Profile, request: ProfileUpdateRequest
) -> Profile:
    """Apply partial updates to the caller's profile.

    Raises:
        Conflict: If the new username belongs to another profile.
    """
    if request.username is not None and request.username != profile.username:
        existing = repo.get_by_username(request.username)
        if existing is not None and existing.id != profile.id:
            raise Conflict(ERROR_MESSAGES["USERNAME_TAKEN"], field="username")
        profile.username = request.username

    try:
        repo.session.commit()
        repo.session.refresh(profile)
    except IntegrityError as exc:
        repo.session.rollback()
        raise Conflict(ERROR_MESSAGES["USERNAME_TAKEN"], field="username") from exc
    except SQLAlchemyError as exc:
        repo.session.rollback()
        logger.error("Update profile error: %s", exc, exc_info=True)
        raise MutationFailed("Failed to update profile") from exc
    return profile
