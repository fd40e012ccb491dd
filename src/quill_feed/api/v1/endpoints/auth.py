# src/quill_feed/api/v1/endpoints/auth.py
"""Authentication and profile endpoints for the Quill Feed API."""

from __future__ import annotations

from fastapi import APIRouter, status

from quill_feed.api.v1.dependencies import CurrentProfileDep, ProfileRepoDep
from quill_feed.core.security import create_access_token
from quill_feed.models import Profile
from quill_feed.schemas.user import (
    ProfileOut,
    ProfileUpdateRequest,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
)
from quill_feed.services import profile_service

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/signup", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpRequest, repo: ProfileRepoDep) -> Profile:
    """Register a new account and its public profile."""
    return profile_service.sign_up(repo, payload)


@router.post("/signin", response_model=TokenResponse)
async def sign_in(payload: SignInRequest, repo: ProfileRepoDep) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    profile = profile_service.authenticate(repo, email=payload.email, password=payload.password)
    return TokenResponse(access_token=create_access_token(profile.id))


@router.get("/me", response_model=ProfileOut)
async def get_me(current_profile: CurrentProfileDep) -> Profile:
    """Return the caller's profile."""
    return current_profile


@router.patch("/me", response_model=ProfileOut)
async def update_me(
    payload: ProfileUpdateRequest,
    current_profile: CurrentProfileDep,
    repo: ProfileRepoDep,
) -> Profile:
    """Update the caller's username."""
    return profile_service.update_profile(repo, current_profile, payload)
